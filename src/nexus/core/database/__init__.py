"""Database layer - session management, base models, and mixins."""

from nexus.core.database.base import Base, TimestampMixin, UUIDMixin, WorkspaceMixin
from nexus.core.database.session import (
    async_engine,
    async_session_factory,
    get_db,
)


__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "WorkspaceMixin",
    "async_engine",
    "async_session_factory",
    "get_db",
]
