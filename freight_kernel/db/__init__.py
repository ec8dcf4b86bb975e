"""Database layer - engine, base class and session scope."""

from freight_kernel.db.base import UUID, Base, UUIDString
from freight_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    read_only_session,
    reset_engine,
    session_scope,
)

__all__ = [
    "Base",
    "UUID",
    "UUIDString",
    "create_tables",
    "drop_tables",
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "read_only_session",
    "reset_engine",
    "session_scope",
]
