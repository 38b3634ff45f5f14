"""ORM model for blog accounts (credentials, lockout state, profile)."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text, func

from blogauth.models.base import Base

ROLES = ("user", "moderator", "admin")


class User(Base):
    """
    Registered account used for JWT authentication and role-based access control.

    role: 'user', 'moderator' or 'admin'

    Lockout fields (failed_login_attempts, locked_until) are written only by
    the auth service. ``version`` is the optimistic-concurrency counter: every
    flush issues ``UPDATE ... WHERE version = :old`` and a concurrent writer
    makes the flush fail with StaleDataError instead of losing an update.
    """

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(30), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(50), nullable=False, default="")
    last_name = Column(String(50), nullable=False, default="")
    bio = Column(Text, nullable=False, default="")
    avatar = Column(String(1024), nullable=False, default="")
    role = Column(String(32), nullable=False, default="user")
    is_active = Column(Boolean, nullable=False, default=True)
    email_verified = Column(Boolean, nullable=False, default=False)

    failed_login_attempts = Column(Integer, nullable=False, default=0)
    locked_until = Column(DateTime(timezone=True), nullable=True)
    last_login_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
