"""
Inventory Module Service (``inventory_modules.inventory.service``).

Responsibility
--------------
Orchestrates inventory item operations -- cached reads, the live item
subscription, item create / edit / delete, stock updates with their ledger
records, and the derived views (low stock, reorder suggestions) -- by
composing the shared ``CacheStore`` and ``RealtimeSync`` with the pure
engines.  This is a **thin glue layer**: thresholds, filters and folds all
live in ``inventory_engines`` and ``inventory_kernel.domain``.

Architecture
------------
Layer: **Modules** -- stateful orchestration wrapper.

1. Validates input through ``inventory_kernel.domain.validation``.
2. Patches the item cache optimistically.
3. Writes to the ``RemoteStore``; on failure reverts the cache patch.
4. Appends a ``StockTransaction`` for every stock change when ledger
   recording is enabled.

Invariants
----------
- ``current_stock`` never goes negative: rejected before any write.
- A failed remote write leaves the cache as it was before the call (unless
  a newer snapshot has arrived meanwhile).
- With ledger recording on, folding an item's transactions from zero
  reproduces its ``current_stock``.

Failure Modes
-------------
- ``ValidationError`` subclasses: bad input, raised before any remote call.
- ``ItemNotFoundError``: unknown id.
- ``RemoteWriteError``: the store rejected the write; cache reverted.
- ``FetchError``: a read failed; cached data unchanged.

Usage::

    service = InventoryService(store, config, clock=clock)
    items = service.fetch_items()
    service.adjust_stock("towel-01", -5, reason="Housekeeping issue", actor="maria")
"""

from __future__ import annotations

from typing import Any, Callable, Mapping

from inventory_config.schema import InventoryCoreConfig
from inventory_engines.filtering import (
    ReorderSuggestion,
    items_in_category,
    low_stock_items,
    reorder_suggestions,
)
from inventory_engines.ledger import LedgerCheck, check_item_ledger, ordered
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.codecs import (
    Document,
    decode_all,
    document_to_item,
    document_to_stock_transaction,
    encode_item_fields,
    stock_transaction_to_document,
)
from inventory_kernel.domain.items import (
    InventoryItem,
    StockTransaction,
    movement_type_for,
)
from inventory_kernel.domain.validation import (
    validate_item_patch,
    validate_new_item,
    validate_stock_delta,
    validate_stock_level,
)
from inventory_kernel.exceptions import (
    FetchError,
    ItemNotFoundError,
    RemoteWriteError,
)
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_services.cache_store import CacheStore
from inventory_services.realtime_sync import RealtimeSync, Subscription
from inventory_services.remote_store import RemoteStore

logger = get_logger("modules.inventory.service")

SYSTEM_ACTOR = "system"
DEFAULT_STOCK_REASON = "Stock level updated"
OPENING_STOCK_REASON = "Initial stock"
ITEM_EDIT_REASON = "Item edited"


def _item_sort_key(item: InventoryItem) -> str:
    return item.name.casefold()


def _write_error(collection: str, operation: str, doc_id: str | None, exc: Exception) -> RemoteWriteError:
    if isinstance(exc, RemoteWriteError):
        return exc
    error = RemoteWriteError(collection, operation, doc_id, str(exc))
    error.__cause__ = exc
    return error


class InventoryService:
    """
    Item collection operations over one shared item cache.

    Contract
    --------
    Reads go through ``cache``; writes go to the store and patch ``cache``
    ahead of the next subscription push.  Every public mutation returns the
    item as it now stands locally.

    Non-goals
    ---------
    - No cross-call locking: concurrent edits are last-write-wins.
    - The ledger is an audit trail; ``current_stock`` on the item stays
      authoritative.
    """

    def __init__(
        self,
        store: RemoteStore,
        config: InventoryCoreConfig | None = None,
        clock: Clock | None = None,
    ):
        self._store = store
        self._config = config or InventoryCoreConfig()
        self._clock = clock or SystemClock()
        self._collection = self._config.collections.inventory_items
        self._transactions_collection = self._config.collections.stock_transactions

        self.cache: CacheStore[InventoryItem] = CacheStore(
            fetch=self._load_items,
            ttl_seconds=self._config.cache_ttl_seconds,
            clock=self._clock,
            collection=self._collection,
        )
        self._sync: RealtimeSync[InventoryItem] = RealtimeSync(
            store,
            self._collection,
            self._decode_item,
            self.cache,
            sort_key=_item_sort_key,
            order_by="name",
        )

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def _decode_item(self, doc: Document) -> InventoryItem:
        return document_to_item(doc, self._config.default_unit)

    def _load_items(self) -> list[InventoryItem]:
        docs = self._store.get_all(self._collection, order_by="name")
        return sorted(decode_all(docs, self._decode_item, self._collection), key=_item_sort_key)

    def fetch_items(self, force_refresh: bool = False) -> list[InventoryItem]:
        """All items, from cache while fresh.  Raises FetchError."""
        return self.cache.read(force_refresh=force_refresh)

    def subscribe_items(
        self,
        on_items: Callable[[list[InventoryItem]], None],
        on_error: Callable[[Exception], None] | None = None,
    ) -> Subscription:
        return self._sync.subscribe(on_items, on_error)

    @property
    def subscription(self) -> Subscription | None:
        return self._sync.session

    def get_item(self, item_id: str) -> InventoryItem:
        """
        Look up one item, refetching the collection when it is stale.

        Stock checks before a write run against this value, so it must be
        no older than the cache TTL.

        Raises:
            ItemNotFoundError: no such item.
            FetchError: the collection could not be loaded.
        """
        item = self.cache.find(item_id)
        if item is None:
            raise ItemNotFoundError(item_id)
        return item

    def low_stock_items(self) -> list[InventoryItem]:
        return low_stock_items(self.fetch_items())

    def items_by_category(self, category: str) -> list[InventoryItem]:
        return items_in_category(self.fetch_items(), category)

    def reorder_suggestions(self) -> list[ReorderSuggestion]:
        return reorder_suggestions(self.fetch_items())

    # -------------------------------------------------------------------------
    # Item create / edit / delete
    # -------------------------------------------------------------------------

    def add_item(self, data: Mapping[str, Any], actor: str = SYSTEM_ACTOR) -> InventoryItem:
        """
        Create an item.  The store assigns id and timestamps.

        An item created with stock on hand gets an opening stock-in record
        so its ledger replays from zero.
        """
        fields = validate_new_item(data, self._config.default_unit)
        logger.info(
            "inventory_item_create_started",
            extra={"item_name": fields["name"], "category": fields["category"]},
        )
        try:
            doc = self._store.create(self._collection, encode_item_fields(fields))
        except Exception as exc:
            logger.error(
                "inventory_item_create_failed",
                extra={"item_name": fields["name"]},
                exc_info=True,
            )
            raise _write_error(self._collection, "create", None, exc)

        item = self._decode_item(doc)
        self.cache.upsert(item)
        logger.info(
            "inventory_item_created",
            extra={"item_id": item.id, "current_stock": item.current_stock},
        )
        if item.current_stock > 0:
            self._record_transaction(item, item.current_stock, OPENING_STOCK_REASON, actor)
        return item

    def update_item(
        self,
        item_id: str,
        patch: Mapping[str, Any],
        actor: str = SYSTEM_ACTOR,
    ) -> InventoryItem:
        """
        Apply a partial edit.

        A stock change made this way is recorded as an adjustment.

        Raises:
            ValidationError: bad patch.
            ItemNotFoundError: unknown id.
            RemoteWriteError: store rejected the write (cache reverted).
        """
        changes = validate_item_patch(patch, self._config.default_unit)
        item = self.get_item(item_id)
        updated = item.with_changes(**changes, updated_at=self._clock.now())
        self._write_item(item, updated, changes, "update")
        delta = updated.current_stock - item.current_stock
        if delta:
            self._record_transaction(updated, delta, ITEM_EDIT_REASON, actor)
        return updated

    def delete_item(self, item_id: str) -> InventoryItem:
        """
        Remove an item.  Its ledger records are kept.

        Raises:
            ItemNotFoundError: unknown id.
            RemoteWriteError: store rejected the delete (item put back).
        """
        item = self.get_item(item_id)
        previous = self.cache.remove(item_id)
        try:
            self._store.delete(self._collection, item_id)
        except Exception as exc:
            self.cache.restore(item_id, previous, None)
            logger.error(
                "inventory_item_delete_failed",
                extra={"item_id": item_id},
                exc_info=True,
            )
            raise _write_error(self._collection, "delete", item_id, exc)
        logger.info("inventory_item_deleted", extra={"item_id": item_id})
        return item

    # -------------------------------------------------------------------------
    # Stock
    # -------------------------------------------------------------------------

    def update_stock(
        self,
        item_id: str,
        new_stock: int,
        actor: str = SYSTEM_ACTOR,
        reason: str = DEFAULT_STOCK_REASON,
        notes: str | None = None,
    ) -> InventoryItem:
        """
        Set an item's stock to an absolute level.

        Raises:
            NegativeStockError: ``new_stock`` below zero; nothing changes.
            ItemNotFoundError: unknown id.
            RemoteWriteError: store rejected the write (cache reverted).
        """
        item = self.get_item(item_id)
        validate_stock_level(item, new_stock)
        return self._apply_stock(item, new_stock, reason, actor, notes)

    def adjust_stock(
        self,
        item_id: str,
        delta: int,
        reason: str,
        actor: str = SYSTEM_ACTOR,
        notes: str | None = None,
    ) -> InventoryItem:
        """
        Move an item's stock by a signed amount.

        Raises:
            InvalidQuantityError: zero or non-integer delta.
            NegativeStockError: the result would be below zero.
        """
        item = self.get_item(item_id)
        resulting = validate_stock_delta(item, delta)
        return self._apply_stock(item, resulting, reason, actor, notes)

    def _apply_stock(
        self,
        item: InventoryItem,
        new_stock: int,
        reason: str,
        actor: str,
        notes: str | None,
    ) -> InventoryItem:
        delta = new_stock - item.current_stock
        changes: dict[str, Any] = {"current_stock": new_stock}
        if delta > 0:
            changes["last_restocked"] = self._clock.today()
        updated = item.with_changes(**changes, updated_at=self._clock.now())

        with LogContext.bind(actor_id=actor, entity_id=item.id):
            self._write_item(item, updated, changes, "update")
            logger.info(
                "inventory_stock_updated",
                extra={
                    "previous_stock": item.current_stock,
                    "new_stock": new_stock,
                    "delta": delta,
                    "reason": reason,
                },
            )
            if delta:
                self._record_transaction(updated, delta, reason, actor, notes)
        return updated

    def _write_item(
        self,
        item: InventoryItem,
        updated: InventoryItem,
        changes: Mapping[str, Any],
        operation: str,
    ) -> None:
        previous = self.cache.upsert(updated)
        try:
            self._store.update(self._collection, item.id, encode_item_fields(changes))
        except Exception as exc:
            reverted = self.cache.restore(item.id, previous, updated)
            logger.error(
                "inventory_item_write_reverted",
                extra={"item_id": item.id, "operation": operation, "reverted": reverted},
                exc_info=True,
            )
            raise _write_error(self._collection, operation, item.id, exc)

    # -------------------------------------------------------------------------
    # Ledger
    # -------------------------------------------------------------------------

    def _record_transaction(
        self,
        item: InventoryItem,
        delta: int,
        reason: str,
        actor: str,
        notes: str | None = None,
    ) -> StockTransaction | None:
        """
        Append one ledger record.

        Raises:
            RemoteWriteError: against the transactions collection.  The item
                write before it has already been confirmed.
        """
        if not self._config.record_stock_transactions:
            return None
        txn = StockTransaction(
            id="",
            item_id=item.id,
            item_name=item.name,
            movement_type=movement_type_for(delta),
            quantity=delta,
            resulting_stock=item.current_stock,
            reason=reason,
            performed_by=actor,
            timestamp=self._clock.now(),
            notes=notes,
        )
        try:
            doc = self._store.create(
                self._transactions_collection, stock_transaction_to_document(txn),
            )
        except Exception as exc:
            logger.error(
                "stock_transaction_record_failed",
                extra={"item_id": item.id, "delta": delta},
                exc_info=True,
            )
            raise _write_error(self._transactions_collection, "create", None, exc)
        recorded = document_to_stock_transaction(doc)
        logger.debug(
            "stock_transaction_recorded",
            extra={
                "transaction_id": recorded.id,
                "item_id": item.id,
                "movement_type": recorded.movement_type.value,
                "delta": delta,
            },
        )
        return recorded

    def fetch_transactions(self, item_id: str | None = None) -> list[StockTransaction]:
        """Ledger records, oldest first; all items unless ``item_id`` is given."""
        where = ("itemId", item_id) if item_id is not None else None
        try:
            docs = self._store.get_all(self._transactions_collection, where=where)
        except Exception as exc:
            raise FetchError(self._transactions_collection, str(exc)) from exc
        return ordered(decode_all(docs, document_to_stock_transaction, self._transactions_collection))

    def stock_history(self, item_id: str) -> list[StockTransaction]:
        return self.fetch_transactions(item_id)

    def check_ledger(self, item_id: str) -> LedgerCheck:
        """Compare an item's stock with the replay of its ledger."""
        item = self.get_item(item_id)
        return check_item_ledger(item, self.stock_history(item_id))
