"""Core app configuration, database and security primitives."""

from blogauth.core.config import Settings, get_settings
from blogauth.core.database import get_db

__all__ = ["Settings", "get_settings", "get_db"]
