"""
inventory_services.cache_store -- Time-bounded collection cache.

Responsibility:
    Holds the last known full collection of one entity type and the moment
    it was loaded.  Serves reads from memory while younger than the TTL,
    refetches otherwise, and supports optimistic local edits that a caller
    can revert.

Architecture position:
    Services layer.  One instance per composed data layer; every consumer of
    that layer shares it.  The fetch callable, TTL and clock are injected.

Invariants enforced:
    - A failed fetch leaves both the cached collection and its timestamp
      untouched.
    - The slot is guarded by a lock; the fetch itself runs outside the lock.
    - ``restore`` only reverts an optimistic edit while the slot still holds
      the value that edit wrote.  A newer snapshot always wins.

Failure modes:
    - FetchError wraps whatever the fetch callable raised.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Generic, Iterable, TypeVar

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.exceptions import FetchError
from inventory_kernel.logging_config import get_logger

logger = get_logger("services.cache_store")

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 300.0


def _entity_id(entity: Any) -> str:
    return entity.id


class CacheStore(Generic[T]):
    """
    Cached copy of one remote collection.

    Contract:
        ``read()`` returns a new list each call; entities are immutable, so
        callers cannot disturb the slot.
    """

    def __init__(
        self,
        fetch: Callable[[], Iterable[T]],
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Clock | None = None,
        collection: str = "collection",
        key: Callable[[T], str] = _entity_id,
    ):
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive (got {ttl_seconds})")
        self._fetch = fetch
        self._ttl_seconds = float(ttl_seconds)
        self._clock = clock or SystemClock()
        self._collection = collection
        self._key = key
        self._items: list[T] = []
        self._loaded_at: float | None = None
        self._has_data = False
        self._lock = threading.Lock()

    # -- state ---------------------------------------------------------------

    @property
    def collection(self) -> str:
        return self._collection

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    @property
    def age_seconds(self) -> float | None:
        """Seconds since the slot was last filled, or None if never (or invalidated)."""
        with self._lock:
            if self._loaded_at is None:
                return None
            return self._clock.monotonic() - self._loaded_at

    @property
    def is_fresh(self) -> bool:
        age = self.age_seconds
        return age is not None and age < self._ttl_seconds

    @property
    def has_data(self) -> bool:
        with self._lock:
            return self._has_data

    def snapshot(self) -> list[T]:
        """Current contents without any fetch."""
        with self._lock:
            return list(self._items)

    # -- reads ---------------------------------------------------------------

    def read(self, force_refresh: bool = False) -> list[T]:
        """
        The collection, refetched when stale or when forced.

        Raises:
            FetchError: the fetch failed; the previous contents remain.
        """
        if not force_refresh and self.is_fresh:
            logger.debug(
                "cache_hit",
                extra={"collection": self._collection, "age_seconds": self.age_seconds},
            )
            return self.snapshot()

        try:
            fetched = list(self._fetch())
        except FetchError:
            logger.warning(
                "cache_fetch_failed",
                extra={"collection": self._collection},
                exc_info=True,
            )
            raise
        except Exception as exc:
            logger.warning(
                "cache_fetch_failed",
                extra={"collection": self._collection},
                exc_info=True,
            )
            raise FetchError(self._collection, str(exc)) from exc

        self.replace(fetched)
        logger.info(
            "cache_refreshed",
            extra={
                "collection": self._collection,
                "count": len(fetched),
                "forced": force_refresh,
            },
        )
        return list(fetched)

    def find(self, entity_id: str) -> T | None:
        """
        Look up one entity through ``read``.

        A stale slot is refetched first.  A miss against a fresh slot forces
        one more fetch, since the entity may have been created elsewhere
        inside the TTL window.

        Raises:
            FetchError: a fetch failed.
        """
        was_fresh = self.is_fresh
        for entity in self.read():
            if self._key(entity) == entity_id:
                return entity
        if not was_fresh:
            return None
        logger.debug(
            "cache_miss_refetch",
            extra={"collection": self._collection, "entity_id": entity_id},
        )
        for entity in self.read(force_refresh=True):
            if self._key(entity) == entity_id:
                return entity
        return None

    def invalidate(self) -> None:
        """Force the next ``read`` to refetch.  Contents are kept."""
        with self._lock:
            self._loaded_at = None
        logger.debug("cache_invalidated", extra={"collection": self._collection})

    def replace(self, items: Iterable[T]) -> None:
        """Overwrite the whole slot and restart the TTL window."""
        new_items = list(items)
        with self._lock:
            self._items = new_items
            self._loaded_at = self._clock.monotonic()
            self._has_data = True

    # -- optimistic edits ----------------------------------------------------

    def _index_of(self, entity_id: str) -> int | None:
        for index, entity in enumerate(self._items):
            if self._key(entity) == entity_id:
                return index
        return None

    def get(self, entity_id: str) -> T | None:
        with self._lock:
            index = self._index_of(entity_id)
            return None if index is None else self._items[index]

    def upsert(self, entity: T) -> T | None:
        """Insert or replace by id.  Returns what was there before."""
        entity_id = self._key(entity)
        with self._lock:
            index = self._index_of(entity_id)
            if index is None:
                self._items.append(entity)
                return None
            previous = self._items[index]
            self._items[index] = entity
            return previous

    def remove(self, entity_id: str) -> T | None:
        """Drop by id.  Returns the removed entity, or None if absent."""
        with self._lock:
            index = self._index_of(entity_id)
            if index is None:
                return None
            return self._items.pop(index)

    def patch(self, entity_id: str, fn: Callable[[T], T]) -> T:
        """
        Replace an entity with ``fn(entity)``.  Returns the previous entity.

        Raises:
            KeyError: no entity with that id is cached.
        """
        with self._lock:
            index = self._index_of(entity_id)
            if index is None:
                raise KeyError(entity_id)
            previous = self._items[index]
            self._items[index] = fn(previous)
            return previous

    def restore(self, entity_id: str, previous: T | None, expected: T | None) -> bool:
        """
        Undo an optimistic edit.

        ``expected`` is what the edit wrote (None for a removal); ``previous``
        is what it replaced (None for an insert).  Nothing happens if the slot
        has moved on since.  Returns whether the revert was applied.
        """
        with self._lock:
            index = self._index_of(entity_id)
            current = None if index is None else self._items[index]
            if current is not expected:
                logger.info(
                    "cache_restore_skipped",
                    extra={"collection": self._collection, "entity_id": entity_id},
                )
                return False
            if previous is None:
                if index is not None:
                    self._items.pop(index)
            elif index is None:
                self._items.append(previous)
            else:
                self._items[index] = previous
        logger.info(
            "cache_restored",
            extra={"collection": self._collection, "entity_id": entity_id},
        )
        return True
