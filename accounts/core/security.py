"""Password hashing and JWT issuance/verification for authentication."""

from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
import jwt

# Bcrypt cost (rounds); 12 is a good default for security vs speed.
BCRYPT_ROUNDS = 12
# bcrypt only looks at the first 72 bytes of the password.
BCRYPT_MAX_BYTES = 72

# Keys every session token must carry; registered JWT fields (iat, exp) are extra.
CLAIM_KEYS = ("role", "username", "fname", "lname", "email", "address")


class ConfigurationError(Exception):
    """Raised when security primitives are built from unusable configuration."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class InvalidTokenError(Exception):
    """Raised when a bearer token is malformed, tampered with or expired."""

    def __init__(self, message: str = "Invalid or expired token") -> None:
        self.message = message
        super().__init__(message)


def _encode_password(plain_password: str) -> bytes:
    return plain_password.encode("utf-8")[:BCRYPT_MAX_BYTES]


class PasswordHasher:
    """bcrypt hashing with a per-call random salt and constant-time verification."""

    def __init__(self, rounds: int = BCRYPT_ROUNDS) -> None:
        self.rounds = rounds
        # Built up front so the first unknown-user login costs the same as later ones.
        self._dummy_hash = self.hash("dummy-password-for-timing")

    def hash(self, plain_password: str) -> str:
        """Hash a plain-text password for storage. Do not store plain passwords."""
        return bcrypt.hashpw(
            _encode_password(plain_password), bcrypt.gensalt(rounds=self.rounds)
        ).decode("utf-8")

    def verify(self, hashed: str, plain_password: str) -> bool:
        """Verify a plain password against a stored hash."""
        try:
            return bcrypt.checkpw(_encode_password(plain_password), hashed.encode("utf-8"))
        except (ValueError, TypeError, AttributeError):
            return False

    def dummy_verify(self, plain_password: str) -> bool:
        """
        Spend the same work as verify() against a throwaway hash; always False.
        Used when no stored hash exists so a lookup miss costs as much as a mismatch.
        """
        self.verify(self._dummy_hash, plain_password)
        return False


class TokenIssuer:
    """Signs session claims into a JWT and verifies bearer tokens."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expire_minutes: int | None = None,
    ) -> None:
        if not secret or not secret.strip():
            raise ConfigurationError("Token signing secret must be set and non-empty")
        self._secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def issue(self, claims: Mapping[str, Any]) -> str:
        """Create a signed JWT carrying the claims plus iat (and exp when configured)."""
        now = datetime.now(UTC)
        payload: dict[str, Any] = dict(claims)
        payload["iat"] = now
        if self.expire_minutes is not None:
            payload["exp"] = now + timedelta(minutes=self.expire_minutes)
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> dict[str, Any]:
        """
        Decode and validate a JWT; return exactly the session claims it was issued with.
        Raises InvalidTokenError on bad signature, expiry, or missing claims.
        """
        required = ["iat", "exp"] if self.expire_minutes is not None else ["iat"]
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": required},
            )
        except jwt.PyJWTError as e:
            raise InvalidTokenError() from e
        missing = [key for key in CLAIM_KEYS if key not in payload]
        if missing:
            raise InvalidTokenError("Invalid token payload")
        return {key: payload[key] for key in CLAIM_KEYS}
