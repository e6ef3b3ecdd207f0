"""
Procurement Module Service (``inventory_modules.procurement.service``).

Responsibility
--------------
Orchestrates procurement operations -- purchase order creation and status
changes, material requisitions and their approval, the supplier directory,
and the pipeline statistics -- by composing cached collections with the
pure lifecycle and stats engines and the shared ``WorkflowExecutor``.

Architecture position
---------------------
**Modules layer** -- thin glue.  ``ProcurementService`` is the sole public
entry point for procurement operations.  Transition tables live in
``inventory_modules.procurement.workflows``; transition resolution in
``inventory_engines.lifecycle``.

Invariants enforced
-------------------
* A purchase order's ``total_amount`` is computed from its lines at
  creation and never recomputed afterwards.
* New orders and requisitions always start ``pending``.
* Status changes go through the workflow tables; an action that is not
  allowed from the current status raises before any remote write.

Failure modes
-------------
* ``ValidationError`` -- bad input, nothing written.
* ``InvalidTransitionError`` / ``UnknownActionError`` -- nothing written.
* Remote write failure on a transition -> ``MutationResult`` with
  ``REVERTED`` status and the cache restored.
* Remote write failure on a create -> ``RemoteWriteError``.

Audit relevance
---------------
Structured log events are emitted for every create and, through the
executor, every transition attempt with actor, from/to status and outcome.

Usage::

    service = ProcurementService(store, config, clock=clock)
    order = service.create_purchase_order({
        "supplier": "Linen Supply Co.",
        "items": [{"name": "Bath towel", "quantity": 2, "unit_price": "100"}],
    })
    result = service.transition_purchase_order(order.id, "approve", actor="manager")
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Mapping, TypeVar

from inventory_config.schema import InventoryCoreConfig
from inventory_engines.stats import (
    ProcurementStats,
    RequisitionStats,
    procurement_stats,
    requisition_stats,
)
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.codecs import (
    Document,
    decode_all,
    document_to_purchase_order,
    document_to_requisition,
    document_to_supplier,
    purchase_order_to_document,
    requisition_to_document,
    supplier_to_document,
)
from inventory_kernel.domain.procurement import (
    PurchaseOrder,
    PurchaseOrderAction,
    PurchaseOrderStatus,
    Requisition,
    RequisitionAction,
    RequisitionStatus,
    Supplier,
    SupplierStatus,
    order_total,
    requisition_total,
)
from inventory_kernel.domain.validation import (
    validate_new_purchase_order,
    validate_new_requisition,
    validate_supplier,
)
from inventory_kernel.exceptions import (
    PurchaseOrderNotFoundError,
    RemoteWriteError,
    RequisitionNotFoundError,
)
from inventory_kernel.logging_config import get_logger
from inventory_modules.procurement.workflows import (
    PURCHASE_ORDER_WORKFLOW,
    REQUISITION_WORKFLOW,
)
from inventory_services.cache_store import CacheStore
from inventory_services.realtime_sync import RealtimeSync, Subscription
from inventory_services.remote_store import RemoteStore
from inventory_services.workflow_executor import MutationResult, WorkflowExecutor

logger = get_logger("modules.procurement.service")

T = TypeVar("T")

PURCHASE_ORDER_PREFIX = "PO"
REQUISITION_PREFIX = "REQ"


def _newest_first(entity: Any) -> float:
    created: datetime | None = entity.created_at
    return -created.timestamp() if created is not None else 0.0


def _supplier_sort_key(supplier: Supplier) -> str:
    return supplier.name.casefold()


def next_document_number(prefix: str, year: int, existing: list[str]) -> str:
    """
    Next sequential number of the form ``PREFIX-YYYY-NNN``.

    >>> next_document_number("PO", 2024, ["PO-2024-001", "PO-2024-007", "PO-2023-010"])
    'PO-2024-008'
    """
    stem = f"{prefix}-{year}-"
    highest = 0
    for number in existing:
        if number.startswith(stem) and number[len(stem):].isdigit():
            highest = max(highest, int(number[len(stem):]))
    return f"{stem}{highest + 1:03d}"


class ProcurementService:
    """
    Purchase orders, requisitions and suppliers over cached collections.

    Contract
    --------
    Creates write to the store first and then add the stored entity to the
    cache.  Transitions are optimistic: the cache is patched before the
    store write and reverted if it fails.
    """

    def __init__(
        self,
        store: RemoteStore,
        config: InventoryCoreConfig | None = None,
        clock: Clock | None = None,
        executor: WorkflowExecutor | None = None,
    ):
        self._store = store
        self._config = config or InventoryCoreConfig()
        self._clock = clock or SystemClock()
        self._executor = executor or WorkflowExecutor(store, self._clock)
        names = self._config.collections
        self._orders_collection = names.purchase_orders
        self._requisitions_collection = names.requisitions
        self._suppliers_collection = names.suppliers

        self.orders: CacheStore[PurchaseOrder] = self._cache(
            self._orders_collection, document_to_purchase_order, _newest_first,
        )
        self.requisitions: CacheStore[Requisition] = self._cache(
            self._requisitions_collection, document_to_requisition, _newest_first,
        )
        self.suppliers: CacheStore[Supplier] = self._cache(
            self._suppliers_collection, document_to_supplier, _supplier_sort_key,
        )
        self._order_sync: RealtimeSync[PurchaseOrder] = RealtimeSync(
            store, self._orders_collection, document_to_purchase_order,
            self.orders, sort_key=_newest_first,
        )
        self._requisition_sync: RealtimeSync[Requisition] = RealtimeSync(
            store, self._requisitions_collection, document_to_requisition,
            self.requisitions, sort_key=_newest_first,
        )

    def _cache(
        self,
        collection: str,
        decoder: Callable[[Document], T],
        sort_key: Callable[[T], Any],
    ) -> CacheStore[T]:
        def load() -> list[T]:
            docs = self._store.get_all(collection)
            return sorted(decode_all(docs, decoder, collection), key=sort_key)

        return CacheStore(
            fetch=load,
            ttl_seconds=self._config.cache_ttl_seconds,
            clock=self._clock,
            collection=collection,
        )

    def _create(self, collection: str, document: dict[str, Any]) -> Document:
        try:
            return self._store.create(collection, document)
        except Exception as exc:
            logger.error(
                "procurement_create_failed",
                extra={"collection": collection},
                exc_info=True,
            )
            if isinstance(exc, RemoteWriteError):
                raise
            raise RemoteWriteError(collection, "create", None, str(exc)) from exc

    @property
    def order_subscription(self) -> Subscription | None:
        return self._order_sync.session

    @property
    def requisition_subscription(self) -> Subscription | None:
        return self._requisition_sync.session

    # =========================================================================
    # Purchase orders
    # =========================================================================

    def fetch_purchase_orders(self, force_refresh: bool = False) -> list[PurchaseOrder]:
        """All purchase orders, newest first."""
        return self.orders.read(force_refresh=force_refresh)

    def subscribe_purchase_orders(
        self,
        on_orders: Callable[[list[PurchaseOrder]], None],
        on_error: Callable[[Exception], None] | None = None,
    ) -> Subscription:
        return self._order_sync.subscribe(on_orders, on_error)

    def get_purchase_order(self, order_id: str) -> PurchaseOrder:
        order = self.orders.find(order_id)
        if order is None:
            raise PurchaseOrderNotFoundError(order_id)
        return order

    def create_purchase_order(self, data: Mapping[str, Any]) -> PurchaseOrder:
        """
        Create a pending purchase order.

        ``total_amount`` is the sum of quantity x unit price over the lines.
        Without an ``order_number`` the next ``PO-YYYY-NNN`` is assigned.
        """
        fields = validate_new_purchase_order(data)
        order_date = fields["order_date"] or self._clock.today()
        order_number = fields["order_number"]
        if order_number is None:
            order_number = next_document_number(
                PURCHASE_ORDER_PREFIX,
                order_date.year,
                [o.order_number for o in self.orders.read()],
            )
        draft = PurchaseOrder(
            id="",
            order_number=order_number,
            supplier=fields["supplier"],
            items=fields["items"],
            total_amount=order_total(fields["items"]),
            status=PURCHASE_ORDER_WORKFLOW.initial_state,
            order_date=order_date,
            expected_delivery=fields["expected_delivery"],
            notes=fields["notes"],
        )
        logger.info("procurement_po_started", extra={
            "order_number": order_number,
            "supplier": draft.supplier,
            "line_count": len(draft.items),
            "total_amount": str(draft.total_amount),
        })

        doc = self._create(self._orders_collection, purchase_order_to_document(draft))
        order = document_to_purchase_order(doc)
        self.orders.upsert(order)
        logger.info("procurement_po_created", extra={
            "order_id": order.id,
            "order_number": order.order_number,
            "total_amount": str(order.total_amount),
        })
        return order

    def transition_purchase_order(
        self,
        order_id: str,
        action: PurchaseOrderAction | str,
        actor: str,
    ) -> MutationResult[PurchaseOrder]:
        """
        Apply ``approve`` / ``receive`` / ``cancel`` to an order.

        Raises:
            PurchaseOrderNotFoundError: unknown id.
            UnknownActionError / InvalidTransitionError: not allowed.
        """
        # refresh a stale slot so the transition checks the current status
        self.orders.find(order_id)
        return self._executor.execute(
            PURCHASE_ORDER_WORKFLOW,
            self.orders,
            self._orders_collection,
            order_id,
            action,
            actor,
            PurchaseOrderNotFoundError,
        )

    def purchase_orders_by_status(self, status: PurchaseOrderStatus | str) -> list[PurchaseOrder]:
        wanted = PurchaseOrderStatus(status)
        return [o for o in self.fetch_purchase_orders() if o.status == wanted]

    def procurement_stats(self) -> ProcurementStats:
        return procurement_stats(self.fetch_purchase_orders())

    # =========================================================================
    # Requisitions
    # =========================================================================

    def fetch_requisitions(self, force_refresh: bool = False) -> list[Requisition]:
        """All requisitions, newest first."""
        return self.requisitions.read(force_refresh=force_refresh)

    def subscribe_requisitions(
        self,
        on_requisitions: Callable[[list[Requisition]], None],
        on_error: Callable[[Exception], None] | None = None,
    ) -> Subscription:
        return self._requisition_sync.subscribe(on_requisitions, on_error)

    def get_requisition(self, requisition_id: str) -> Requisition:
        requisition = self.requisitions.find(requisition_id)
        if requisition is None:
            raise RequisitionNotFoundError(requisition_id)
        return requisition

    def create_requisition(self, data: Mapping[str, Any]) -> Requisition:
        """Create a pending requisition; the cost total is summed from the lines."""
        fields = validate_new_requisition(data)
        request_date = fields["request_date"] or self._clock.today()
        request_number = fields["request_number"]
        if request_number is None:
            request_number = next_document_number(
                REQUISITION_PREFIX,
                request_date.year,
                [r.request_number for r in self.requisitions.read()],
            )
        draft = Requisition(
            id="",
            request_number=request_number,
            department=fields["department"],
            requested_by=fields["requested_by"],
            items=fields["items"],
            total_estimated_cost=requisition_total(fields["items"]),
            status=REQUISITION_WORKFLOW.initial_state,
            priority=fields["priority"],
            request_date=request_date,
            required_date=fields["required_date"],
            justification=fields["justification"],
            notes=fields["notes"],
        )
        doc = self._create(self._requisitions_collection, requisition_to_document(draft))
        requisition = document_to_requisition(doc)
        self.requisitions.upsert(requisition)
        logger.info("procurement_requisition_created", extra={
            "requisition_id": requisition.id,
            "request_number": requisition.request_number,
            "department": requisition.department,
            "priority": requisition.priority.value,
            "total_estimated_cost": str(requisition.total_estimated_cost),
        })
        return requisition

    def transition_requisition(
        self,
        requisition_id: str,
        action: RequisitionAction | str,
        actor: str,
    ) -> MutationResult[Requisition]:
        """
        Apply ``approve`` / ``reject`` / ``fulfill`` to a requisition.

        Raises:
            RequisitionNotFoundError: unknown id.
            UnknownActionError / InvalidTransitionError: not allowed.
        """
        self.requisitions.find(requisition_id)
        return self._executor.execute(
            REQUISITION_WORKFLOW,
            self.requisitions,
            self._requisitions_collection,
            requisition_id,
            action,
            actor,
            RequisitionNotFoundError,
        )

    def requisitions_by_status(self, status: RequisitionStatus | str) -> list[Requisition]:
        wanted = RequisitionStatus(status)
        return [r for r in self.fetch_requisitions() if r.status == wanted]

    def requisition_stats(self) -> RequisitionStats:
        return requisition_stats(self.fetch_requisitions())

    # =========================================================================
    # Suppliers
    # =========================================================================

    def fetch_suppliers(self, force_refresh: bool = False) -> list[Supplier]:
        """Suppliers ordered by name."""
        return self.suppliers.read(force_refresh=force_refresh)

    def create_supplier(self, data: Mapping[str, Any]) -> Supplier:
        fields = validate_supplier(data)
        draft = Supplier(id="", **fields)
        doc = self._create(self._suppliers_collection, supplier_to_document(draft))
        supplier = document_to_supplier(doc)
        self.suppliers.upsert(supplier)
        logger.info("procurement_supplier_created", extra={
            "supplier_id": supplier.id,
            "supplier_name": supplier.name,
            "status": supplier.status.value,
        })
        return supplier

    def active_suppliers(self) -> list[Supplier]:
        return [s for s in self.fetch_suppliers() if s.status == SupplierStatus.ACTIVE]
