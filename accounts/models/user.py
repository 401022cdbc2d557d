"""ORM model for user accounts."""

from sqlalchemy import Column, Integer, String

from accounts.models.base import Base

ROLE_USER = "user"
ROLE_ADMIN = "admin"
KNOWN_ROLES = frozenset({ROLE_USER, ROLE_ADMIN})


class User(Base):
    """
    User account with login credentials and profile fields.

    role: 'admin' or 'user'. username and email are unique; the
    database indexes enforce this, not application code.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    role = Column(String(32), nullable=False, default=ROLE_USER)
    username = Column(String(255), nullable=False, unique=True, index=True)
    hashed_password = Column(String(255), nullable=False)
    first_name = Column("fname", String(255), nullable=False)
    last_name = Column("lname", String(255), nullable=False)
    email = Column(String(320), nullable=False, unique=True, index=True)
    address = Column(String(1024), nullable=False)

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username!r} role={self.role!r}>"
