"""Database package for ORM models, session management, and the store."""

from .base import Base
from .session import build_engine, get_engine, get_session_factory

__all__ = [
    "Base",
    "build_engine",
    "get_engine",
    "get_session_factory",
]
