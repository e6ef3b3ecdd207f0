"""
Procurement Domain Types (``inventory_kernel.domain.procurement``).

Responsibility
--------------
Frozen value objects for purchase orders, material requisitions and
suppliers, plus the closed status / action / priority enums their
workflows are written against.

Invariants
----------
- ``PurchaseOrderLine.total == quantity * unit_price`` always (computed,
  never stored independently).
- ``PurchaseOrder.total_amount`` is fixed when the order is created and is
  never recomputed by a status transition.
- ``Requisition.total_estimated_cost`` is the sum of line
  ``estimated_cost`` values at creation.
- All monetary fields use ``Decimal``.
"""

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable


class PurchaseOrderStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    RECEIVED = "received"
    CANCELLED = "cancelled"


class PurchaseOrderAction(Enum):
    APPROVE = "approve"
    RECEIVE = "receive"
    CANCEL = "cancel"


class RequisitionStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    FULFILLED = "fulfilled"


class RequisitionAction(Enum):
    APPROVE = "approve"
    REJECT = "reject"
    FULFILL = "fulfill"


class RequisitionPriority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class SupplierStatus(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


@dataclass(frozen=True)
class PurchaseOrderLine:
    """One ordered line.  ``total`` is derived."""
    name: str
    quantity: int
    unit_price: Decimal

    @property
    def total(self) -> Decimal:
        return self.unit_price * self.quantity


def order_total(lines: Iterable[PurchaseOrderLine]) -> Decimal:
    """Sum of line totals."""
    return sum((line.total for line in lines), Decimal("0"))


@dataclass(frozen=True)
class PurchaseOrder:
    """
    A purchase order placed with a supplier.

    Contract: Immutable.  Status changes go through the purchase-order
    workflow and produce a new instance.
    """
    id: str
    order_number: str
    supplier: str
    items: tuple[PurchaseOrderLine, ...]
    total_amount: Decimal
    status: PurchaseOrderStatus
    order_date: date | None
    expected_delivery: date | None = None
    approved_by: str | None = None
    approved_date: datetime | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def with_changes(self, **changes: Any) -> "PurchaseOrder":
        return replace(self, **changes)


@dataclass(frozen=True)
class RequisitionLine:
    """One requested line.  ``estimated_cost`` is the line's total estimate."""
    name: str
    quantity: int
    unit: str
    estimated_cost: Decimal
    reason: str = ""


def requisition_total(lines: Iterable[RequisitionLine]) -> Decimal:
    return sum((line.estimated_cost for line in lines), Decimal("0"))


@dataclass(frozen=True)
class Requisition:
    """
    A department's request for materials.

    ``approved_by`` / ``approved_date`` record whoever decided the request,
    for both approvals and rejections; ``status`` tells which it was.
    """
    id: str
    request_number: str
    department: str
    requested_by: str
    items: tuple[RequisitionLine, ...]
    total_estimated_cost: Decimal
    status: RequisitionStatus
    priority: RequisitionPriority
    request_date: date | None
    required_date: date | None = None
    justification: str = ""
    approved_by: str | None = None
    approved_date: datetime | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def decided_by(self) -> str | None:
        """Who approved or rejected the request, if anyone has yet."""
        if self.status == RequisitionStatus.PENDING:
            return None
        return self.approved_by

    def with_changes(self, **changes: Any) -> "Requisition":
        return replace(self, **changes)


@dataclass(frozen=True)
class Supplier:
    """A supplier record.  Read-only outside ``create_supplier``."""
    id: str
    name: str
    contact_person: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    category: str = ""
    payment_terms: str = ""
    delivery_time: str = ""
    status: SupplierStatus = SupplierStatus.ACTIVE
    rating: Decimal = Decimal("0")
    total_orders: int = 0
    total_value: Decimal = Decimal("0")
    notes: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
