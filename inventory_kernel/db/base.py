"""
Module: inventory_kernel.db.base
Responsibility: Declarative base for the documents table behind the SQL
    document store, and the TrackedBase mixin for row timestamps.
Architecture position: Kernel > DB.  Lowest-level import target within the
    kernel's persistence code.  MUST NOT import from services or modules.

Invariants enforced:
    - datetime columns are DateTime(timezone=True).
    - Money never gets a column of its own; it travels as decimal strings
      inside the JSON document body.
"""

from datetime import datetime
from typing import ClassVar

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base; ``Mapped[datetime]`` columns are timezone-aware."""

    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
    }


class TrackedBase(Base):
    """
    Abstract base with row timestamps.

    Guarantees:
        - created_at is set on INSERT and never changes.
        - updated_at is set on INSERT and refreshed on every UPDATE.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
