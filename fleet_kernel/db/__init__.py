"""Database layer - engine, base classes and column types."""

from fleet_kernel.db.base import Base, TrackedBase, UUIDString
from fleet_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)
from fleet_kernel.db.types import round_money, to_money

__all__ = [
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
    "round_money",
    "to_money",
]
