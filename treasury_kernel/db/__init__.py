"""Database layer - engine, base classes, and append-only enforcement."""

from treasury_kernel.db.base import UUID, Base, UUIDString
from treasury_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    get_session_factory,
    session_scope,
)

__all__ = [
    "get_engine",
    "get_session",
    "get_session_factory",
    "session_scope",
    "create_tables",
    "Base",
    "UUIDString",
    "UUID",
]
