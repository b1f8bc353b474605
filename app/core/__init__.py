"""Core app configuration, database, errors and security helpers."""

from app.core.config import get_settings, settings
from app.core.database import SessionLocal

__all__ = ["get_settings", "settings", "SessionLocal"]
