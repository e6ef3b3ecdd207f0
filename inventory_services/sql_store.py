"""
inventory_services.sql_store -- SQLAlchemy-backed document store.

Responsibility:
    A ``RemoteStore`` implementation over a relational database.  Every
    collection shares the ``documents`` table (``DocumentModel``); the field
    map is held in a JSON column.

Architecture position:
    Services layer.  Imports inventory_kernel.db for the ORM model and
    session scope.  The session factory is injected so tests can point the
    store at an in-memory SQLite engine.

Invariants enforced:
    - Values are encoded to JSON-safe primitives before writing: ``Decimal``
      as string, ``date`` / ``datetime`` as ISO strings, enums by value.
    - Listeners receive a snapshot only after the write has committed.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Mapping

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from inventory_kernel.db.engine import get_session_factory, session_scope
from inventory_kernel.db.models import DocumentModel
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.codecs import Document
from inventory_kernel.exceptions import DocumentNotFoundError
from inventory_kernel.logging_config import get_logger
from inventory_services.remote_store import (
    ListenerRegistry,
    WhereClause,
    new_document_id,
    query_documents,
)

logger = get_logger("services.sql_store")


def to_json_safe(value: Any) -> Any:
    """Recursively convert a field value into something the JSON column accepts."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): to_json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json_safe(v) for v in value]
    return value


class SqlDocumentStore(ListenerRegistry):
    """
    Document store persisted through SQLAlchemy.

    Contract:
        Satisfies ``RemoteStore``.  One transaction per write.  Without a
        session factory the process-wide one from ``init_engine_from_url``
        is used.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
        id_factory: Callable[[], str] = new_document_id,
    ):
        super().__init__()
        self._session_factory = session_factory or get_session_factory()
        self._clock = clock or SystemClock()
        self._id_factory = id_factory

    def _snapshot(self, collection: str, order_by: str | None) -> list[Document]:
        return self.get_all(collection, order_by=order_by)

    def get_all(
        self,
        collection: str,
        order_by: str | None = None,
        descending: bool = False,
        where: WhereClause | None = None,
    ) -> list[Document]:
        with session_scope(self._session_factory) as session:
            rows = session.scalars(
                select(DocumentModel)
                .where(DocumentModel.collection == collection)
                .order_by(DocumentModel.doc_id)
            ).all()
            docs = [Document(id=row.doc_id, data=dict(row.data)) for row in rows]
        return query_documents(docs, order_by, descending, where)

    def get(self, collection: str, doc_id: str) -> Document | None:
        with session_scope(self._session_factory) as session:
            row = session.get(DocumentModel, (collection, doc_id))
            if row is None:
                return None
            return Document(id=row.doc_id, data=dict(row.data))

    def create(
        self,
        collection: str,
        data: Mapping[str, Any],
        doc_id: str | None = None,
    ) -> Document:
        stamp = self._clock.now().isoformat()
        stored = to_json_safe(dict(data))
        stored["createdAt"] = stamp
        stored["updatedAt"] = stamp
        new_id = doc_id or self._id_factory()
        with session_scope(self._session_factory) as session:
            session.add(DocumentModel(collection=collection, doc_id=new_id, data=stored))
        logger.debug("store_document_created", extra={"collection": collection, "doc_id": new_id})
        self._publish(collection)
        return Document(id=new_id, data=stored)

    def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> Document:
        with session_scope(self._session_factory) as session:
            row = session.get(DocumentModel, (collection, doc_id))
            if row is None:
                raise DocumentNotFoundError(collection, doc_id)
            merged = dict(row.data)
            merged.update(to_json_safe(dict(fields)))
            merged["updatedAt"] = self._clock.now().isoformat()
            # Reassign so the JSON column is flagged dirty.
            row.data = merged
        logger.debug("store_document_updated", extra={"collection": collection, "doc_id": doc_id})
        self._publish(collection)
        return Document(id=doc_id, data=merged)

    def delete(self, collection: str, doc_id: str) -> None:
        with session_scope(self._session_factory) as session:
            row = session.get(DocumentModel, (collection, doc_id))
            if row is None:
                raise DocumentNotFoundError(collection, doc_id)
            session.delete(row)
        logger.debug("store_document_deleted", extra={"collection": collection, "doc_id": doc_id})
        self._publish(collection)
