"""
inventory_engines.stats -- Aggregate statistics over collections.

Responsibility:
    Pure reductions producing the dashboard numbers: item counts and stock
    value, purchase-order pipeline counts, requisition breakdowns, and stock
    movement counts.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Low-stock / out-of-stock counts come from ``classify_stock``; an item
      is counted in the same bucket the filter engine would put it in.
    - Decimal-only arithmetic for money.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from inventory_kernel.domain.items import (
    InventoryItem,
    StockMovementType,
    StockStatus,
    StockTransaction,
    classify_stock,
)
from inventory_kernel.domain.procurement import (
    PurchaseOrder,
    PurchaseOrderStatus,
    Requisition,
    RequisitionPriority,
    RequisitionStatus,
)

_ZERO = Decimal("0")
_PERCENT = Decimal("100")


def _percentage(part: int, whole: int) -> Decimal:
    if whole == 0:
        return _ZERO
    return (Decimal(part) * _PERCENT / Decimal(whole)).quantize(
        Decimal("1"), rounding=ROUND_HALF_UP,
    )


@dataclass(frozen=True)
class InventoryStats:
    total_items: int
    total_value: Decimal
    low_stock_items: int
    out_of_stock_items: int
    categories: tuple[str, ...]


def aggregate_stats(items: Sequence[InventoryItem]) -> InventoryStats:
    """Counts and stock value over the whole collection."""
    total_value = _ZERO
    buckets: Counter[StockStatus] = Counter()
    for item in items:
        total_value += item.value
        buckets[classify_stock(item)] += 1
    return InventoryStats(
        total_items=len(items),
        total_value=total_value,
        low_stock_items=buckets[StockStatus.LOW_STOCK],
        out_of_stock_items=buckets[StockStatus.OUT_OF_STOCK],
        categories=tuple(sorted({item.category for item in items})),
    )


@dataclass(frozen=True)
class ProcurementStats:
    total_orders: int
    pending_orders: int
    approved_orders: int
    received_orders: int
    cancelled_orders: int
    total_value: Decimal
    approval_rate: Decimal
    receipt_rate: Decimal


def procurement_stats(orders: Sequence[PurchaseOrder]) -> ProcurementStats:
    """
    Purchase-order pipeline numbers.

    ``total_value`` excludes cancelled orders.  ``approval_rate`` is the
    share of orders that reached approved or received; ``receipt_rate`` is
    the share of those that were received.
    """
    by_status = Counter(order.status for order in orders)
    approved_or_beyond = by_status[PurchaseOrderStatus.APPROVED] + by_status[PurchaseOrderStatus.RECEIVED]
    total_value = sum(
        (o.total_amount for o in orders if o.status != PurchaseOrderStatus.CANCELLED),
        _ZERO,
    )
    return ProcurementStats(
        total_orders=len(orders),
        pending_orders=by_status[PurchaseOrderStatus.PENDING],
        approved_orders=by_status[PurchaseOrderStatus.APPROVED],
        received_orders=by_status[PurchaseOrderStatus.RECEIVED],
        cancelled_orders=by_status[PurchaseOrderStatus.CANCELLED],
        total_value=total_value,
        approval_rate=_percentage(approved_or_beyond, len(orders)),
        receipt_rate=_percentage(by_status[PurchaseOrderStatus.RECEIVED], approved_or_beyond),
    )


@dataclass(frozen=True)
class RequisitionStats:
    total_requisitions: int
    by_status: dict[RequisitionStatus, int]
    by_priority: dict[RequisitionPriority, int]
    by_department: dict[str, int]
    total_estimated_cost: Decimal


def requisition_stats(requisitions: Sequence[Requisition]) -> RequisitionStats:
    """Requisition breakdowns; the cost total excludes rejected requests."""
    status_counts = Counter(r.status for r in requisitions)
    priority_counts = Counter(r.priority for r in requisitions)
    return RequisitionStats(
        total_requisitions=len(requisitions),
        by_status={status: status_counts[status] for status in RequisitionStatus},
        by_priority={priority: priority_counts[priority] for priority in RequisitionPriority},
        by_department=dict(sorted(Counter(r.department for r in requisitions).items())),
        total_estimated_cost=sum(
            (r.total_estimated_cost for r in requisitions if r.status != RequisitionStatus.REJECTED),
            _ZERO,
        ),
    )


@dataclass(frozen=True)
class TransactionStats:
    total: int
    stock_in: int
    stock_out: int
    adjustments: int


def transaction_stats(transactions: Iterable[StockTransaction]) -> TransactionStats:
    counts = Counter(t.movement_type for t in transactions)
    return TransactionStats(
        total=sum(counts.values()),
        stock_in=counts[StockMovementType.STOCK_IN],
        stock_out=counts[StockMovementType.STOCK_OUT],
        adjustments=counts[StockMovementType.ADJUSTMENT],
    )
