"""SQLAlchemy ORM models."""

from accounts.models.base import Base
from accounts.models.user import KNOWN_ROLES, ROLE_ADMIN, ROLE_USER, User

__all__ = ["Base", "KNOWN_ROLES", "ROLE_ADMIN", "ROLE_USER", "User"]
