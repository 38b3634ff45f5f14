"""SQLAlchemy ORM models."""

from blogauth.models.base import Base
from blogauth.models.user import ROLES, User

__all__ = ["Base", "ROLES", "User"]
