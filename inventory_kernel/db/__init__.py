"""Database layer - engine, base classes and the document table."""

from inventory_kernel.db.base import Base, TrackedBase
from inventory_kernel.db.engine import (
    build_engine,
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)
from inventory_kernel.db.models import DocumentModel

__all__ = [
    "build_engine",
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "Base",
    "TrackedBase",
    "DocumentModel",
]
