"""
Pytest configuration for accounts tests.

Settings are read at import time, so test defaults must be in the environment
before any accounts module is imported.
"""
import os

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("APP_ENV", "dev")
# Minimum bcrypt cost keeps the suite fast.
os.environ.setdefault("BCRYPT_ROUNDS", "4")
