"""Login, registration, protected access and profile update over the credential store."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from accounts.core.security import PasswordHasher, TokenIssuer
from accounts.models import KNOWN_ROLES, ROLE_USER, User
from accounts.services.credential_store import (
    CredentialStore,
    DuplicateFieldError,
    StorageError,
)

logger = logging.getLogger(__name__)

INVALID_LOGIN_MESSAGE = "Invalid username or password"
INTERNAL_ERROR_MESSAGE = "Internal server error"
PROFILE_UPDATE_FAILED_MESSAGE = "Profile update failed"

DUPLICATE_MESSAGES = {
    "username": "Username already exists",
    "email": "Email already exists",
    "unknown": "Email or username already exists",
}


class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    INVALID_CREDENTIALS = "invalid_credentials"
    USER_NOT_FOUND = "user_not_found"
    DUPLICATE_FIELD = "duplicate_field"
    INTERNAL_FAILURE = "internal_failure"


@dataclass(frozen=True)
class AuthOutcome:
    """
    Result of a workflow operation.

    user and token are set on SUCCESS (token only for login and profile update);
    field is set on DUPLICATE_FIELD. message is safe to show to the caller.
    """

    status: OutcomeStatus
    message: str = ""
    user: User | None = None
    token: str | None = None
    field: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS

    @classmethod
    def success(cls, user: User, token: str | None = None, message: str = "") -> "AuthOutcome":
        return cls(OutcomeStatus.SUCCESS, message=message, user=user, token=token)

    @classmethod
    def invalid_credentials(cls) -> "AuthOutcome":
        return cls(OutcomeStatus.INVALID_CREDENTIALS, message=INVALID_LOGIN_MESSAGE)

    @classmethod
    def user_not_found(cls, message: str = INVALID_LOGIN_MESSAGE) -> "AuthOutcome":
        return cls(OutcomeStatus.USER_NOT_FOUND, message=message)

    @classmethod
    def duplicate_field(cls, field: str) -> "AuthOutcome":
        if field not in DUPLICATE_MESSAGES:
            field = "unknown"
        return cls(OutcomeStatus.DUPLICATE_FIELD, message=DUPLICATE_MESSAGES[field], field=field)

    @classmethod
    def internal_failure(cls) -> "AuthOutcome":
        return cls(OutcomeStatus.INTERNAL_FAILURE, message=INTERNAL_ERROR_MESSAGE)


def user_claims(user: User) -> dict[str, Any]:
    """Session claims for a user; never includes the password hash."""
    return {
        "role": user.role,
        "username": user.username,
        "fname": user.first_name,
        "lname": user.last_name,
        "email": user.email,
        "address": user.address,
    }


class AuthWorkflow:
    """Composes the credential store, password hasher and token issuer."""

    def __init__(
        self,
        store: CredentialStore,
        hasher: PasswordHasher,
        issuer: TokenIssuer,
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.issuer = issuer

    def login(self, username: str, password: str) -> AuthOutcome:
        """
        Check credentials and issue a fresh token.

        A missing user and a wrong password share the same message, and the miss
        path still runs a full bcrypt comparison so timing does not reveal which.
        """
        try:
            user = self.store.find_by_username(username)
        except StorageError:
            logger.exception("Login failed on storage lookup")
            return AuthOutcome.internal_failure()

        if user is None:
            self.hasher.dummy_verify(password)
            return AuthOutcome.user_not_found()

        if not self.hasher.verify(user.hashed_password, password):
            return AuthOutcome.invalid_credentials()

        if user.role not in KNOWN_ROLES:
            logger.warning("Login refused for user_id=%s: unknown role %r", user.id, user.role)
            return AuthOutcome.invalid_credentials()

        token = self.issuer.issue(user_claims(user))
        logger.info("Successful login: user_id=%s", user.id)
        return AuthOutcome.success(user, token=token)

    def register(
        self,
        username: str,
        password: str,
        first_name: str,
        last_name: str,
        email: str,
        address: str,
    ) -> AuthOutcome:
        """Create a 'user'-role account. Does not log the new user in."""
        hashed = self.hasher.hash(password)
        try:
            user = self.store.create(
                username=username,
                hashed_password=hashed,
                first_name=first_name,
                last_name=last_name,
                email=email,
                address=address,
                role=ROLE_USER,
            )
        except DuplicateFieldError as e:
            return AuthOutcome.duplicate_field(e.field)
        except StorageError:
            logger.exception("Registration failed on storage write")
            return AuthOutcome.internal_failure()

        logger.info("Registered user_id=%s", user.id)
        return AuthOutcome.success(user, message="Account created successfully")

    def fetch_protected(self, claims: dict[str, Any]) -> dict[str, Any]:
        """Claims were verified upstream; they are the authenticated identity."""
        return claims

    def update_profile(
        self,
        username: str,
        first_name: str,
        last_name: str,
        address: str,
    ) -> AuthOutcome:
        """
        Change first name, last name and address, then reissue the token.

        Username, email, role and password hash are never touched here. Tokens
        issued before the update stay valid until they expire.
        """
        try:
            user = self.store.find_by_username(username)
            if user is None:
                return AuthOutcome.user_not_found(message=PROFILE_UPDATE_FAILED_MESSAGE)
            user.first_name = first_name
            user.last_name = last_name
            user.address = address
            user = self.store.save(user)
        except StorageError:
            logger.exception("Profile update failed on storage write")
            return AuthOutcome.internal_failure()

        token = self.issuer.issue(user_claims(user))
        logger.info("Profile updated: user_id=%s", user.id)
        return AuthOutcome.success(user, token=token, message="Profile updated successfully")
