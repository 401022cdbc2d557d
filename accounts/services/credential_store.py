"""Persistence for user accounts: lookup, create under unique constraints, save."""

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from accounts.models import ROLE_USER, User

logger = logging.getLogger(__name__)

UNIQUE_FIELDS = ("username", "email")


class StorageError(Exception):
    """Raised when the database fails for a reason other than a duplicate key."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class DuplicateFieldError(Exception):
    """Raised when an insert violates the unique index on username or email."""

    field = "unknown"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or f"Duplicate value for {self.field}"
        super().__init__(self.message)


class DuplicateUsernameError(DuplicateFieldError):
    field = "username"


class DuplicateEmailError(DuplicateFieldError):
    field = "email"


class DuplicateUnknownError(DuplicateFieldError):
    """Unique constraint fired but the driver did not say which one."""

    field = "unknown"


_DUPLICATE_ERRORS: dict[str, type[DuplicateFieldError]] = {
    "username": DuplicateUsernameError,
    "email": DuplicateEmailError,
}


# SQLSTATE for unique_violation.
PG_UNIQUE_VIOLATION = "23505"


def _first_line(orig: object) -> str:
    return (str(orig).splitlines() or [""])[0]


def _is_unique_violation(exc: IntegrityError) -> bool:
    """
    True only for unique-key violations; NOT NULL, CHECK and foreign-key
    failures are IntegrityErrors too but are not duplicates.
    """
    pgcode = getattr(exc.orig, "pgcode", None)
    if pgcode:
        return pgcode == PG_UNIQUE_VIOLATION
    # SQLite: "UNIQUE constraint failed: ...", PostgreSQL: "... violates unique constraint ..."
    return "unique constraint" in _first_line(exc.orig).lower()


def _violated_field(exc: IntegrityError) -> str | None:
    """
    Work out which unique field an IntegrityError refers to.

    PostgreSQL (psycopg2) exposes the constraint name on orig.diag; SQLite only
    reports "UNIQUE constraint failed: users.<column>". Only the first line of the
    message is inspected so offending values in DETAIL lines are ignored.
    Returns None when zero or several fields match.
    """
    orig = exc.orig
    diag = getattr(orig, "diag", None)
    source = getattr(diag, "constraint_name", None) or _first_line(orig)
    source = source.lower()
    matches = [field for field in UNIQUE_FIELDS if field in source]
    if len(matches) == 1:
        return matches[0]
    return None


class CredentialStore:
    """User lookups and writes over a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def find_by_username(self, username: str) -> User | None:
        try:
            return self.session.query(User).filter(User.username == username).first()
        except SQLAlchemyError as e:
            logger.error("User lookup failed: %s", type(e).__name__)
            raise StorageError("Error looking up user") from e

    def create(
        self,
        username: str,
        hashed_password: str,
        first_name: str,
        last_name: str,
        email: str,
        address: str,
        role: str = ROLE_USER,
    ) -> User:
        """
        Insert a new user in a single transaction.

        Uniqueness is left to the database indexes; there is no check-then-insert.
        Raises DuplicateFieldError (subclass per field) or StorageError; the session
        is rolled back on either.
        """
        user = User(
            role=role,
            username=username,
            hashed_password=hashed_password,
            first_name=first_name,
            last_name=last_name,
            email=email,
            address=address,
        )
        try:
            self.session.add(user)
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            if not _is_unique_violation(e):
                raise StorageError("Error creating user") from e
            field = _violated_field(e)
            logger.info("Registration rejected: duplicate %s", field or "unknown field")
            raise _DUPLICATE_ERRORS.get(field, DuplicateUnknownError)() from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StorageError("Error creating user") from e
        self.session.refresh(user)
        return user

    def save(self, user: User) -> User:
        try:
            self.session.add(user)
            self.session.commit()
            self.session.refresh(user)
        except SQLAlchemyError as e:
            self.session.rollback()
            raise StorageError("Error saving user") from e
        return user
