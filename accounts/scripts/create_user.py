"""
Create a user account, including admins (registration only creates 'user' roles).
Run from project root:
  python -m accounts.scripts.create_user USERNAME PASSWORD EMAIL [--role admin]
Example:
  python -m accounts.scripts.create_user root your-secure-password root@example.com --role admin
"""
import argparse
import logging
import sys

from accounts.core.config import get_settings
from accounts.core.database import SessionLocal
from accounts.core.security import PasswordHasher
from accounts.models import KNOWN_ROLES, ROLE_USER
from accounts.schemas.auth import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)
from accounts.services.credential_store import (
    CredentialStore,
    DuplicateFieldError,
    StorageError,
)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create an account (e.g. the first admin).")
    parser.add_argument("username", help=f"Username ({USERNAME_MIN_LEN}-{USERNAME_MAX_LEN} chars)")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("email", help="Email address (must be unique)")
    parser.add_argument("--role", default=ROLE_USER, choices=sorted(KNOWN_ROLES))
    parser.add_argument("--first-name", default="")
    parser.add_argument("--last-name", default="")
    parser.add_argument("--address", default="")
    return parser


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s %(message)s")
    args = build_parser().parse_args(argv)

    username = args.username.strip()
    if not (USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN):
        logger.error("Invalid username length.")
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        logger.error("Password must be %s-%s characters.", PASSWORD_MIN_LEN, PASSWORD_MAX_LEN)
        return 1
    email = args.email.strip()
    if "@" not in email:
        logger.error("Invalid email address.")
        return 1

    hasher = PasswordHasher(rounds=settings.BCRYPT_ROUNDS)
    db = SessionLocal()
    try:
        CredentialStore(db).create(
            username=username,
            hashed_password=hasher.hash(args.password),
            first_name=args.first_name,
            last_name=args.last_name,
            email=email,
            address=args.address,
            role=args.role,
        )
    except DuplicateFieldError as e:
        logger.error("Cannot create '%s': %s already exists.", username, e.field)
        return 1
    except StorageError as e:
        logger.error("Cannot create '%s': %s", username, e.message)
        return 1
    finally:
        db.close()
    logger.info("Created user '%s' with role '%s'.", username, args.role)
    return 0


if __name__ == "__main__":
    sys.exit(main())
