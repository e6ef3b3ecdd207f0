"""
Inventory Core Facade (``inventory_modules.core``).

Responsibility
--------------
The single object UI consumers hold.  Composes one ``InventoryService`` and
one ``ProcurementService`` over a shared ``RemoteStore``, configuration and
clock, and exposes their operations together with the pure filter, facet,
statistics and formatting engines.

Architecture position
---------------------
**Modules layer** -- composition root.  Everything below it is constructed
here; nothing below it knows this class exists.

Usage::

    core = InventoryCore.in_memory()
    core.add_item({"name": "Bath towel", "category": "Linen", "unit_price": "120"})
    view = core.filter_items(core.fetch_items(), FilterSpec(search_term="towel"))
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Callable, Mapping, Sequence

from sqlalchemy.orm import sessionmaker

from inventory_config import get_active_config
from inventory_config.schema import InventoryCoreConfig
from inventory_engines.filtering import FacetCounts, FilterSpec, facet_counts, filter_items
from inventory_engines.formatting import format_currency
from inventory_engines.stats import (
    InventoryStats,
    ProcurementStats,
    RequisitionStats,
    aggregate_stats,
)
from inventory_kernel.db.engine import build_engine, create_tables
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.items import InventoryItem, StockTransaction
from inventory_kernel.domain.procurement import (
    PurchaseOrder,
    PurchaseOrderAction,
    Requisition,
    RequisitionAction,
    Supplier,
)
from inventory_kernel.logging_config import get_logger
from inventory_modules.inventory.service import (
    DEFAULT_STOCK_REASON,
    SYSTEM_ACTOR,
    InventoryService,
)
from inventory_modules.procurement.service import ProcurementService
from inventory_services.realtime_sync import Subscription
from inventory_services.remote_store import InMemoryDocumentStore, RemoteStore
from inventory_services.sql_store import SqlDocumentStore
from inventory_services.workflow_executor import MutationResult, WorkflowExecutor

logger = get_logger("modules.core")


class InventoryCore:
    """
    Inventory data access and procurement workflows behind one object.

    Contract
    --------
    One item cache, one order cache and one requisition cache per instance;
    every caller of this instance shares them.
    """

    def __init__(
        self,
        store: RemoteStore,
        config: InventoryCoreConfig | None = None,
        clock: Clock | None = None,
    ):
        self.config = config or get_active_config()
        self.clock = clock or SystemClock()
        self.store = store
        self.inventory = InventoryService(store, self.config, self.clock)
        self.procurement = ProcurementService(
            store, self.config, self.clock, WorkflowExecutor(store, self.clock),
        )
        logger.info(
            "inventory_core_initialized",
            extra={
                "store": type(store).__name__,
                "cache_ttl_seconds": self.config.cache_ttl_seconds,
                "record_stock_transactions": self.config.record_stock_transactions,
            },
        )

    @classmethod
    def in_memory(
        cls,
        config: InventoryCoreConfig | None = None,
        clock: Clock | None = None,
    ) -> "InventoryCore":
        """A core over a fresh in-process document store."""
        clock = clock or SystemClock()
        return cls(InMemoryDocumentStore(clock=clock), config, clock)

    @classmethod
    def from_database_url(
        cls,
        database_url: str,
        config: InventoryCoreConfig | None = None,
        clock: Clock | None = None,
        echo: bool = False,
    ) -> "InventoryCore":
        """A core over a SQL document store; creates the table if needed."""
        engine = build_engine(database_url, echo=echo)
        create_tables(engine)
        clock = clock or SystemClock()
        store = SqlDocumentStore(sessionmaker(bind=engine, expire_on_commit=False), clock=clock)
        return cls(store, config, clock)

    def close(self) -> None:
        """Close every open subscription."""
        for subscription in (
            self.inventory.subscription,
            self.procurement.order_subscription,
            self.procurement.requisition_subscription,
        ):
            if subscription is not None:
                subscription.unsubscribe()

    def __enter__(self) -> "InventoryCore":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    def fetch_items(self, force_refresh: bool = False) -> list[InventoryItem]:
        return self.inventory.fetch_items(force_refresh)

    def subscribe_items(
        self,
        on_items: Callable[[list[InventoryItem]], None],
        on_error: Callable[[Exception], None] | None = None,
    ) -> Subscription:
        return self.inventory.subscribe_items(on_items, on_error)

    def filter_items(
        self,
        items: Sequence[InventoryItem],
        spec: FilterSpec | None = None,
    ) -> list[InventoryItem]:
        spec = spec or FilterSpec(category=self.config.all_categories_label)
        return filter_items(items, spec, self.config.all_categories_label)

    def facet_counts(self, items: Sequence[InventoryItem]) -> FacetCounts:
        return facet_counts(items, self.config.all_categories_label)

    def aggregate_stats(self, items: Sequence[InventoryItem] | None = None) -> InventoryStats:
        return aggregate_stats(self.fetch_items() if items is None else items)

    def update_stock(
        self,
        item_id: str,
        new_stock: int,
        actor: str = SYSTEM_ACTOR,
        reason: str = DEFAULT_STOCK_REASON,
    ) -> InventoryItem:
        return self.inventory.update_stock(item_id, new_stock, actor=actor, reason=reason)

    def adjust_stock(
        self,
        item_id: str,
        delta: int,
        reason: str,
        actor: str = SYSTEM_ACTOR,
    ) -> InventoryItem:
        return self.inventory.adjust_stock(item_id, delta, reason=reason, actor=actor)

    def update_item(self, item_id: str, patch: Mapping[str, Any]) -> InventoryItem:
        return self.inventory.update_item(item_id, patch)

    def add_item(self, data: Mapping[str, Any]) -> InventoryItem:
        return self.inventory.add_item(data)

    def delete_item(self, item_id: str) -> InventoryItem:
        return self.inventory.delete_item(item_id)

    def stock_history(self, item_id: str) -> list[StockTransaction]:
        return self.inventory.stock_history(item_id)

    # -------------------------------------------------------------------------
    # Procurement
    # -------------------------------------------------------------------------

    def create_purchase_order(self, data: Mapping[str, Any]) -> PurchaseOrder:
        return self.procurement.create_purchase_order(data)

    def fetch_purchase_orders(self, force_refresh: bool = False) -> list[PurchaseOrder]:
        return self.procurement.fetch_purchase_orders(force_refresh)

    def subscribe_purchase_orders(
        self,
        on_orders: Callable[[list[PurchaseOrder]], None],
        on_error: Callable[[Exception], None] | None = None,
    ) -> Subscription:
        return self.procurement.subscribe_purchase_orders(on_orders, on_error)

    def transition_purchase_order(
        self,
        order_id: str,
        action: PurchaseOrderAction | str,
        actor: str,
    ) -> MutationResult[PurchaseOrder]:
        return self.procurement.transition_purchase_order(order_id, action, actor)

    def create_requisition(self, data: Mapping[str, Any]) -> Requisition:
        return self.procurement.create_requisition(data)

    def fetch_requisitions(self, force_refresh: bool = False) -> list[Requisition]:
        return self.procurement.fetch_requisitions(force_refresh)

    def subscribe_requisitions(
        self,
        on_requisitions: Callable[[list[Requisition]], None],
        on_error: Callable[[Exception], None] | None = None,
    ) -> Subscription:
        return self.procurement.subscribe_requisitions(on_requisitions, on_error)

    def transition_requisition(
        self,
        requisition_id: str,
        action: RequisitionAction | str,
        actor: str,
    ) -> MutationResult[Requisition]:
        return self.procurement.transition_requisition(requisition_id, action, actor)

    def create_supplier(self, data: Mapping[str, Any]) -> Supplier:
        return self.procurement.create_supplier(data)

    def fetch_suppliers(self, force_refresh: bool = False) -> list[Supplier]:
        return self.procurement.fetch_suppliers(force_refresh)

    def procurement_stats(self) -> ProcurementStats:
        return self.procurement.procurement_stats()

    def requisition_stats(self) -> RequisitionStats:
        return self.procurement.requisition_stats()

    # -------------------------------------------------------------------------
    # Presentation
    # -------------------------------------------------------------------------

    def format_currency(self, amount: Decimal | int, currency: str | None = None) -> str:
        return format_currency(amount, currency or self.config.currency)
