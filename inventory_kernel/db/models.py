"""
Module: inventory_kernel.db.models
Responsibility: ORM mapping for stored documents.  Every collection
    (inventory items, purchase orders, requisitions, suppliers, stock
    transactions) shares one table keyed by (collection, doc_id); the
    document body is a JSON column.
Architecture position: Kernel > DB.  Imported only by the SQL document store.

Invariants enforced:
    - (collection, doc_id) is unique.
    - ``data`` holds only JSON-safe primitives (the store encodes before
      writing).
"""

from typing import Any

from sqlalchemy import JSON, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import TrackedBase


class DocumentModel(TrackedBase):
    """One stored document."""

    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_collection", "collection"),
    )

    collection: Mapped[str] = mapped_column(String(100), primary_key=True)
    doc_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    def __repr__(self) -> str:
        return f"<DocumentModel {self.collection}/{self.doc_id}>"
