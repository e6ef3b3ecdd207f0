"""
inventory_services.realtime_sync -- Standing subscription to a collection.

Responsibility:
    Opens a subscription on the remote store, decodes each snapshot into
    domain objects, overwrites the shared CacheStore and hands the new
    collection to the consumer callback.

Architecture position:
    Services layer.  Composes a RemoteStore and a CacheStore; knows nothing
    about which entity type it carries beyond the decoder it is given.

Invariants enforced:
    - At most one live session per RealtimeSync.  Opening a new one closes
      the old one first.
    - Once a Subscription is closed, snapshots still in flight are dropped:
      no callback fires and the cache is not touched.
    - A transport error reaches ``on_error`` and leaves the cache alone.
    - Malformed documents are skipped (logged), never fatal to a snapshot.
"""

from __future__ import annotations

import threading
from itertools import count
from typing import Any, Callable, Generic, TypeVar

from inventory_kernel.domain.codecs import Document, decode_all
from inventory_kernel.logging_config import get_logger
from inventory_services.cache_store import CacheStore
from inventory_services.remote_store import RemoteStore, Unsubscribe

logger = get_logger("services.realtime_sync")

T = TypeVar("T")

_session_ids = count(1)


class Subscription:
    """
    Cancellable handle for one live session.

    ``unsubscribe()`` is idempotent.  Usable as a context manager.
    """

    def __init__(self, collection: str):
        self.collection = collection
        self.session_id = next(_session_ids)
        self._detach: Unsubscribe | None = None
        self._active = True
        self._lock = threading.RLock()

    @property
    def active(self) -> bool:
        return self._active

    def _attach(self, detach: Unsubscribe) -> None:
        with self._lock:
            if self._active:
                self._detach = detach
                return
        # Closed while the first snapshot was being delivered.
        detach()

    def unsubscribe(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
            detach, self._detach = self._detach, None
        if detach is not None:
            detach()
        logger.info(
            "realtime_unsubscribed",
            extra={"collection": self.collection, "session_id": self.session_id},
        )

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.unsubscribe()

    def __repr__(self) -> str:
        state = "active" if self._active else "closed"
        return f"<Subscription {self.collection} #{self.session_id} {state}>"


class RealtimeSync(Generic[T]):
    """
    Keeps a CacheStore in step with remote snapshots of one collection.

    ``sort_key`` orders each decoded snapshot before it is published
    (items are ordered by name).
    """

    def __init__(
        self,
        store: RemoteStore,
        collection: str,
        decoder: Callable[[Document], T],
        cache: CacheStore[T],
        sort_key: Callable[[T], Any] | None = None,
        order_by: str | None = None,
    ):
        self._store = store
        self._collection = collection
        self._decoder = decoder
        self._cache = cache
        self._sort_key = sort_key
        self._order_by = order_by
        self._current: Subscription | None = None
        self._lock = threading.Lock()

    @property
    def session(self) -> Subscription | None:
        """The live session, if one is open."""
        current = self._current
        return current if current is not None and current.active else None

    def subscribe(
        self,
        on_items: Callable[[list[T]], None],
        on_error: Callable[[Exception], None] | None = None,
    ) -> Subscription:
        """Open a session, replacing any session already open."""
        subscription = Subscription(self._collection)
        with self._lock:
            previous, self._current = self._current, subscription
        if previous is not None and previous.active:
            logger.info(
                "realtime_session_replaced",
                extra={
                    "collection": self._collection,
                    "closed_session_id": previous.session_id,
                    "session_id": subscription.session_id,
                },
            )
            previous.unsubscribe()

        def handle_snapshot(docs: list[Document]) -> None:
            self._on_snapshot(subscription, docs, on_items)

        def handle_error(exc: Exception) -> None:
            self._on_error(subscription, exc, on_error)

        logger.info(
            "realtime_subscribed",
            extra={"collection": self._collection, "session_id": subscription.session_id},
        )
        detach = self._store.subscribe(
            self._collection,
            handle_snapshot,
            handle_error,
            order_by=self._order_by,
        )
        subscription._attach(detach)
        return subscription

    def close(self) -> None:
        current = self.session
        if current is not None:
            current.unsubscribe()

    def _on_snapshot(
        self,
        subscription: Subscription,
        docs: list[Document],
        on_items: Callable[[list[T]], None],
    ) -> None:
        with subscription._lock:
            if not subscription.active:
                logger.debug(
                    "realtime_late_snapshot_ignored",
                    extra={"collection": self._collection, "session_id": subscription.session_id},
                )
                return
            items = decode_all(docs, self._decoder, self._collection)
            if self._sort_key is not None:
                items.sort(key=self._sort_key)
            self._cache.replace(items)
            logger.debug(
                "realtime_snapshot_applied",
                extra={"collection": self._collection, "count": len(items)},
            )
            on_items(list(items))

    def _on_error(
        self,
        subscription: Subscription,
        exc: Exception,
        on_error: Callable[[Exception], None] | None,
    ) -> None:
        if not subscription.active:
            return
        logger.warning(
            "realtime_sync_error",
            extra={"collection": self._collection, "session_id": subscription.session_id},
            exc_info=exc,
        )
        if on_error is not None:
            on_error(exc)
