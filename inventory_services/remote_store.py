"""
inventory_services.remote_store -- Remote document store contract.

Responsibility:
    Defines the narrow read / write / subscribe contract the core consumes
    (``RemoteStore``), the listener fan-out shared by implementations, and
    ``InMemoryDocumentStore``, a thread-safe in-process implementation used
    for local runs and tests.

Architecture position:
    Services layer.  Imports only inventory_kernel (domain, exceptions,
    logging).  The production document store is an external collaborator
    that satisfies ``RemoteStore``; the core never depends on anything
    beyond this protocol.

Invariants enforced:
    - ``create`` assigns the id and stamps ``createdAt`` / ``updatedAt``.
    - ``update`` merges fields and stamps ``updatedAt``.
    - After every successful write, each listener on that collection gets a
      full snapshot, in write order.
    - Callers never receive references to stored data (copies only).

Failure modes:
    - DocumentNotFoundError on update/delete of a missing document.
    - Listener exceptions are logged and do not affect the write or other
      listeners.
"""

from __future__ import annotations

import copy
import threading
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Mapping, Protocol, Sequence, runtime_checkable
from uuid import uuid4

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.codecs import Document
from inventory_kernel.exceptions import DocumentNotFoundError
from inventory_kernel.logging_config import get_logger

logger = get_logger("services.remote_store")

SnapshotCallback = Callable[[list[Document]], None]
ErrorCallback = Callable[[Exception], None]
Unsubscribe = Callable[[], None]
WhereClause = tuple[str, Any]


@runtime_checkable
class RemoteStore(Protocol):
    """The operations the core needs from a document store."""

    def get_all(
        self,
        collection: str,
        order_by: str | None = None,
        descending: bool = False,
        where: WhereClause | None = None,
    ) -> list[Document]:
        ...

    def get(self, collection: str, doc_id: str) -> Document | None:
        ...

    def create(self, collection: str, data: Mapping[str, Any]) -> Document:
        ...

    def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> Document:
        ...

    def delete(self, collection: str, doc_id: str) -> None:
        ...

    def subscribe(
        self,
        collection: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
        order_by: str | None = None,
    ) -> Unsubscribe:
        ...


def new_document_id() -> str:
    """Twenty-character random id, the shape document stores hand out."""
    return uuid4().hex[:20]


def _order_value(value: Any) -> tuple[int, Any]:
    if value is None:
        return (0, "")
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return (1, value)
    if isinstance(value, datetime):
        return (2, value.isoformat())
    if isinstance(value, date):
        return (2, value.isoformat())
    return (2, str(value))


def query_documents(
    docs: Sequence[Document],
    order_by: str | None = None,
    descending: bool = False,
    where: WhereClause | None = None,
) -> list[Document]:
    """Single-field equality filter and single-field ordering."""
    result = list(docs)
    if where is not None:
        field_name, expected = where
        result = [d for d in result if d.data.get(field_name) == expected]
    if order_by is not None:
        result.sort(key=lambda d: _order_value(d.data.get(order_by)), reverse=descending)
    return result


@dataclass
class _Listener:
    collection: str
    on_snapshot: SnapshotCallback
    on_error: ErrorCallback | None
    order_by: str | None
    active: bool = True


class ListenerRegistry:
    """
    Collection listeners with snapshot fan-out.

    Implementations call ``_publish(collection)`` after each committed write.
    """

    def __init__(self) -> None:
        self._listeners: list[_Listener] = []
        self._listeners_lock = threading.Lock()

    def _snapshot(self, collection: str, order_by: str | None) -> list[Document]:
        raise NotImplementedError

    def subscribe(
        self,
        collection: str,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback | None = None,
        order_by: str | None = None,
    ) -> Unsubscribe:
        """
        Register a listener and deliver the current snapshot immediately.

        Returns a callable that detaches the listener (idempotent).
        """
        listener = _Listener(collection, on_snapshot, on_error, order_by)
        with self._listeners_lock:
            self._listeners.append(listener)
        logger.debug("store_listener_added", extra={"collection": collection})
        self._deliver(listener)

        def unsubscribe() -> None:
            with self._listeners_lock:
                if not listener.active:
                    return
                listener.active = False
                self._listeners.remove(listener)
            logger.debug("store_listener_removed", extra={"collection": collection})

        return unsubscribe

    def listener_count(self, collection: str | None = None) -> int:
        with self._listeners_lock:
            return sum(
                1 for l in self._listeners
                if collection is None or l.collection == collection
            )

    def _publish(self, collection: str) -> None:
        with self._listeners_lock:
            targets = [l for l in self._listeners if l.collection == collection]
        for listener in targets:
            self._deliver(listener)

    def _deliver(self, listener: _Listener) -> None:
        if not listener.active:
            return
        try:
            snapshot = self._snapshot(listener.collection, listener.order_by)
        except Exception as exc:
            logger.warning(
                "store_snapshot_failed",
                extra={"collection": listener.collection},
                exc_info=True,
            )
            if listener.on_error is not None:
                listener.on_error(exc)
            return
        try:
            listener.on_snapshot(snapshot)
        except Exception:
            logger.error(
                "store_listener_callback_failed",
                extra={"collection": listener.collection},
                exc_info=True,
            )


class InMemoryDocumentStore(ListenerRegistry):
    """
    Thread-safe in-process document store.

    Contract:
        Satisfies ``RemoteStore``.  Stored values are deep-copied in and out.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        id_factory: Callable[[], str] = new_document_id,
    ):
        super().__init__()
        self._clock = clock or SystemClock()
        self._id_factory = id_factory
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = threading.RLock()

    # -- reads ---------------------------------------------------------------

    def _snapshot(self, collection: str, order_by: str | None) -> list[Document]:
        return self.get_all(collection, order_by=order_by)

    def get_all(
        self,
        collection: str,
        order_by: str | None = None,
        descending: bool = False,
        where: WhereClause | None = None,
    ) -> list[Document]:
        with self._lock:
            docs = [
                Document(id=doc_id, data=copy.deepcopy(data))
                for doc_id, data in self._collections.get(collection, {}).items()
            ]
        return query_documents(docs, order_by, descending, where)

    def get(self, collection: str, doc_id: str) -> Document | None:
        with self._lock:
            data = self._collections.get(collection, {}).get(doc_id)
            if data is None:
                return None
            return Document(id=doc_id, data=copy.deepcopy(data))

    # -- writes --------------------------------------------------------------

    def create(
        self,
        collection: str,
        data: Mapping[str, Any],
        doc_id: str | None = None,
    ) -> Document:
        now = self._clock.now()
        stored = copy.deepcopy(dict(data))
        stored["createdAt"] = now
        stored["updatedAt"] = now
        with self._lock:
            docs = self._collections.setdefault(collection, {})
            new_id = doc_id or self._id_factory()
            while doc_id is None and new_id in docs:
                new_id = self._id_factory()
            docs[new_id] = stored
            result = Document(id=new_id, data=copy.deepcopy(stored))
        logger.debug("store_document_created", extra={"collection": collection, "doc_id": new_id})
        self._publish(collection)
        return result

    def update(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> Document:
        with self._lock:
            current = self._collections.get(collection, {}).get(doc_id)
            if current is None:
                raise DocumentNotFoundError(collection, doc_id)
            current.update(copy.deepcopy(dict(fields)))
            current["updatedAt"] = self._clock.now()
            result = Document(id=doc_id, data=copy.deepcopy(current))
        logger.debug("store_document_updated", extra={"collection": collection, "doc_id": doc_id})
        self._publish(collection)
        return result

    def delete(self, collection: str, doc_id: str) -> None:
        with self._lock:
            docs = self._collections.get(collection, {})
            if doc_id not in docs:
                raise DocumentNotFoundError(collection, doc_id)
            del docs[doc_id]
        logger.debug("store_document_deleted", extra={"collection": collection, "doc_id": doc_id})
        self._publish(collection)
