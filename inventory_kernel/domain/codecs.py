"""
Document codecs (``inventory_kernel.domain.codecs``).

Responsibility
--------------
Translate between stored documents (camelCase field names, loosely typed,
possibly missing fields) and the frozen domain types.  Decoding defaults
absent fields and coerces stored timestamps to timezone-aware UTC
``datetime`` values; encoding produces JSON-safe primitives (``Decimal`` as
string, dates as ISO strings) so every RemoteStore implementation can hold
the result unchanged.

Architecture position
---------------------
**Kernel domain layer** -- pure functions, zero I/O.

Failure modes
-------------
- Decoders raise ``ValueError`` for documents that cannot form a valid
  domain object (negative stock, unknown status).  ``decode_all`` skips such
  documents with a warning instead of failing the whole snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Iterable, Mapping, TypeVar

from inventory_kernel.domain.items import (
    DEFAULT_UNIT,
    InventoryItem,
    StockMovementType,
    StockTransaction,
)
from inventory_kernel.domain.procurement import (
    PurchaseOrder,
    PurchaseOrderLine,
    PurchaseOrderStatus,
    Requisition,
    RequisitionLine,
    RequisitionPriority,
    RequisitionStatus,
    Supplier,
    SupplierStatus,
)
from inventory_kernel.logging_config import get_logger

logger = get_logger("domain.codecs")

T = TypeVar("T")

# Epoch values above this are taken to be milliseconds.
_EPOCH_MILLIS_THRESHOLD = 100_000_000_000


@dataclass(frozen=True)
class Document:
    """A stored document: store-assigned id plus its field map."""
    id: str
    data: Mapping[str, Any] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Scalar coercion
# ---------------------------------------------------------------------------


def to_datetime(value: Any) -> datetime | None:
    """Coerce a stored timestamp to an aware UTC datetime, or None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time(), tzinfo=timezone.utc)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        seconds = value / 1000 if abs(value) > _EPOCH_MILLIS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        try:
            return to_datetime(datetime.fromisoformat(value.strip()))
        except ValueError:
            return None
    # Store-native timestamp objects (e.g. protobuf Timestamp)
    for converter in ("to_datetime", "ToDatetime"):
        fn = getattr(value, converter, None)
        if callable(fn):
            return to_datetime(fn())
    return None


def to_date(value: Any) -> date | None:
    """Coerce a stored calendar date, or None when absent or unparseable."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return to_datetime(value).date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            parsed = to_datetime(text)
            return parsed.date() if parsed else None
    parsed = to_datetime(value)
    return parsed.date() if parsed else None


def to_decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    if value is None or value == "" or isinstance(value, bool):
        return default
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default
    return result if result.is_finite() else default


def to_int(value: Any, default: int = 0) -> int:
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default
    if not number.is_finite() or number != number.to_integral_value():
        return default
    return int(number)


def to_str(value: Any, default: str = "") -> str:
    if value is None:
        return default
    return str(value)


def _optional_str(value: Any) -> str | None:
    return str(value) if value not in (None, "") else None


def encode_decimal(value: Decimal | None) -> str | None:
    return None if value is None else str(value)


def encode_date(value: date | None) -> str:
    return value.isoformat() if value is not None else ""


# ---------------------------------------------------------------------------
# Inventory items
# ---------------------------------------------------------------------------

ITEM_FIELD_MAP: dict[str, str] = {
    "name": "name",
    "category": "category",
    "description": "description",
    "current_stock": "currentStock",
    "reorder_level": "reorderLevel",
    "unit_price": "unitPrice",
    "supplier": "supplier",
    "unit": "unit",
    "location": "location",
    "last_restocked": "lastRestocked",
    "image": "image",
    "created_at": "createdAt",
    "updated_at": "updatedAt",
}


def document_to_item(doc: Document, default_unit: str = DEFAULT_UNIT) -> InventoryItem:
    """Decode an item document; a missing or blank unit reads as ``default_unit``."""
    data = doc.data
    unit = to_str(data.get("unit"))
    return InventoryItem(
        id=doc.id,
        name=to_str(data.get("name")),
        category=to_str(data.get("category")),
        description=to_str(data.get("description")),
        current_stock=to_int(data.get("currentStock")),
        reorder_level=to_int(data.get("reorderLevel")),
        unit_price=to_decimal(data.get("unitPrice")),
        supplier=to_str(data.get("supplier")),
        unit=unit if unit.strip() else default_unit,
        location=to_str(data.get("location")),
        last_restocked=to_date(data.get("lastRestocked")),
        image=_optional_str(data.get("image")),
        created_at=to_datetime(data.get("createdAt")),
        updated_at=to_datetime(data.get("updatedAt")),
    )


def encode_item_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """
    Encode a (partial) map of item attributes to stored field names.

    Store-managed timestamps are dropped; the store stamps them.
    """
    out: dict[str, Any] = {}
    for name, value in fields.items():
        if name in ("id", "created_at", "updated_at"):
            continue
        wire = ITEM_FIELD_MAP[name]
        if name == "unit_price":
            value = encode_decimal(value)
        elif name == "last_restocked":
            value = encode_date(value)
        out[wire] = value
    return out


def item_to_document(item: InventoryItem) -> dict[str, Any]:
    return encode_item_fields({
        name: getattr(item, name) for name in ITEM_FIELD_MAP
    })


# ---------------------------------------------------------------------------
# Stock transactions
# ---------------------------------------------------------------------------


def document_to_stock_transaction(doc: Document) -> StockTransaction:
    data = doc.data
    timestamp = to_datetime(data.get("timestamp")) or to_datetime(data.get("createdAt"))
    if timestamp is None:
        raise ValueError(f"stock transaction {doc.id} has no timestamp")
    return StockTransaction(
        id=doc.id,
        item_id=to_str(data.get("itemId")),
        item_name=to_str(data.get("itemName")),
        movement_type=StockMovementType(data.get("type") or "adjustment"),
        quantity=to_int(data.get("quantity")),
        resulting_stock=to_int(data.get("resultingStock")),
        reason=to_str(data.get("reason")),
        performed_by=to_str(data.get("performedBy")),
        timestamp=timestamp,
        notes=_optional_str(data.get("notes")),
    )


def stock_transaction_to_document(txn: StockTransaction) -> dict[str, Any]:
    return {
        "itemId": txn.item_id,
        "itemName": txn.item_name,
        "type": txn.movement_type.value,
        "quantity": txn.quantity,
        "resultingStock": txn.resulting_stock,
        "reason": txn.reason,
        "performedBy": txn.performed_by,
        "timestamp": txn.timestamp.isoformat(),
        "notes": txn.notes or "",
    }


# ---------------------------------------------------------------------------
# Purchase orders
# ---------------------------------------------------------------------------


def _decode_po_line(raw: Any, order_id: str) -> PurchaseOrderLine:
    raw = raw if isinstance(raw, Mapping) else {}
    line = PurchaseOrderLine(
        name=to_str(raw.get("name")),
        quantity=to_int(raw.get("quantity")),
        unit_price=to_decimal(raw.get("unitPrice")),
    )
    stored_total = raw.get("total")
    if stored_total is not None and to_decimal(stored_total) != line.total:
        logger.warning(
            "purchase_order_line_total_mismatch",
            extra={
                "order_id": order_id,
                "line_name": line.name,
                "stored_total": str(stored_total),
                "computed_total": str(line.total),
            },
        )
    return line


# Stored statuses with no state of their own.  An order "sent" to its
# supplier has already been approved and can still be received or cancelled.
PURCHASE_ORDER_STATUS_ALIASES = {
    "sent": PurchaseOrderStatus.APPROVED,
}


def _decode_po_status(value: Any) -> PurchaseOrderStatus:
    raw = value or "pending"
    if raw in PURCHASE_ORDER_STATUS_ALIASES:
        return PURCHASE_ORDER_STATUS_ALIASES[raw]
    return PurchaseOrderStatus(raw)


def document_to_purchase_order(doc: Document) -> PurchaseOrder:
    data = doc.data
    raw_items = data.get("items")
    items = tuple(
        _decode_po_line(raw, doc.id)
        for raw in (raw_items if isinstance(raw_items, list) else [])
    )
    return PurchaseOrder(
        id=doc.id,
        order_number=to_str(data.get("orderNumber")) or doc.id,
        supplier=to_str(data.get("supplier")),
        items=items,
        total_amount=to_decimal(data.get("totalAmount")),
        status=_decode_po_status(data.get("status")),
        order_date=to_date(data.get("orderDate")),
        expected_delivery=to_date(data.get("expectedDelivery")),
        approved_by=_optional_str(data.get("approvedBy")),
        approved_date=to_datetime(data.get("approvedDate")),
        notes=_optional_str(data.get("notes")),
        created_at=to_datetime(data.get("createdAt")),
        updated_at=to_datetime(data.get("updatedAt")),
    )


def purchase_order_to_document(order: PurchaseOrder) -> dict[str, Any]:
    return {
        "orderNumber": order.order_number,
        "supplier": order.supplier,
        "items": [
            {
                "name": line.name,
                "quantity": line.quantity,
                "unitPrice": encode_decimal(line.unit_price),
                "total": encode_decimal(line.total),
            }
            for line in order.items
        ],
        "totalAmount": encode_decimal(order.total_amount),
        "status": order.status.value,
        "orderDate": encode_date(order.order_date),
        "expectedDelivery": encode_date(order.expected_delivery),
        "approvedBy": order.approved_by,
        "approvedDate": order.approved_date.isoformat() if order.approved_date else None,
        "notes": order.notes or "",
    }


# ---------------------------------------------------------------------------
# Requisitions
# ---------------------------------------------------------------------------


def _decode_requisition_line(raw: Any) -> RequisitionLine:
    raw = raw if isinstance(raw, Mapping) else {}
    return RequisitionLine(
        name=to_str(raw.get("name")),
        quantity=to_int(raw.get("quantity")),
        unit=to_str(raw.get("unit")),
        estimated_cost=to_decimal(raw.get("estimatedCost")),
        reason=to_str(raw.get("reason")),
    )


def document_to_requisition(doc: Document) -> Requisition:
    data = doc.data
    raw_items = data.get("items")
    return Requisition(
        id=doc.id,
        request_number=to_str(data.get("requestNumber")) or doc.id,
        department=to_str(data.get("department")),
        requested_by=to_str(data.get("requestedBy")),
        items=tuple(
            _decode_requisition_line(raw)
            for raw in (raw_items if isinstance(raw_items, list) else [])
        ),
        total_estimated_cost=to_decimal(data.get("totalEstimatedCost")),
        status=RequisitionStatus(data.get("status") or "pending"),
        priority=RequisitionPriority(data.get("priority") or "low"),
        request_date=to_date(data.get("requestDate")),
        required_date=to_date(data.get("requiredDate")),
        justification=to_str(data.get("justification")),
        approved_by=_optional_str(data.get("approvedBy")),
        approved_date=to_datetime(data.get("approvedDate")),
        notes=_optional_str(data.get("notes")),
        created_at=to_datetime(data.get("createdAt")),
        updated_at=to_datetime(data.get("updatedAt")),
    )


def requisition_to_document(req: Requisition) -> dict[str, Any]:
    return {
        "requestNumber": req.request_number,
        "department": req.department,
        "requestedBy": req.requested_by,
        "items": [
            {
                "name": line.name,
                "quantity": line.quantity,
                "unit": line.unit,
                "estimatedCost": encode_decimal(line.estimated_cost),
                "reason": line.reason,
            }
            for line in req.items
        ],
        "totalEstimatedCost": encode_decimal(req.total_estimated_cost),
        "status": req.status.value,
        "priority": req.priority.value,
        "requestDate": encode_date(req.request_date),
        "requiredDate": encode_date(req.required_date),
        "justification": req.justification,
        "approvedBy": req.approved_by,
        "approvedDate": req.approved_date.isoformat() if req.approved_date else None,
        "notes": req.notes or "",
    }


# ---------------------------------------------------------------------------
# Suppliers
# ---------------------------------------------------------------------------


def document_to_supplier(doc: Document) -> Supplier:
    data = doc.data
    return Supplier(
        id=doc.id,
        name=to_str(data.get("name")),
        contact_person=to_str(data.get("contactPerson")),
        email=to_str(data.get("email")),
        phone=to_str(data.get("phone")),
        address=to_str(data.get("address")),
        category=to_str(data.get("category")),
        payment_terms=to_str(data.get("paymentTerms")),
        delivery_time=to_str(data.get("deliveryTime")),
        status=SupplierStatus(data.get("status") or "active"),
        rating=to_decimal(data.get("rating")),
        total_orders=to_int(data.get("totalOrders")),
        total_value=to_decimal(data.get("totalValue")),
        notes=to_str(data.get("notes")),
        created_at=to_datetime(data.get("createdAt")),
        updated_at=to_datetime(data.get("updatedAt")),
    )


def supplier_to_document(supplier: Supplier) -> dict[str, Any]:
    return {
        "name": supplier.name,
        "contactPerson": supplier.contact_person,
        "email": supplier.email,
        "phone": supplier.phone,
        "address": supplier.address,
        "category": supplier.category,
        "paymentTerms": supplier.payment_terms,
        "deliveryTime": supplier.delivery_time,
        "status": supplier.status.value,
        "rating": encode_decimal(supplier.rating),
        "totalOrders": supplier.total_orders,
        "totalValue": encode_decimal(supplier.total_value),
        "notes": supplier.notes,
    }


# ---------------------------------------------------------------------------
# Snapshot decoding
# ---------------------------------------------------------------------------


def decode_all(
    docs: Iterable[Document],
    decoder: Callable[[Document], T],
    kind: str,
) -> list[T]:
    """Decode every document, skipping (and logging) the malformed ones."""
    decoded: list[T] = []
    for doc in docs:
        try:
            decoded.append(decoder(doc))
        except (ValueError, TypeError) as exc:
            logger.warning(
                "document_skipped",
                extra={"kind": kind, "doc_id": doc.id, "reason": str(exc)},
            )
    return decoded
