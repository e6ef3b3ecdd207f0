"""
Input validation (``inventory_kernel.domain.validation``).

Responsibility
--------------
Reject bad input before any remote call is made.  Each validator takes the
loosely typed mapping a form would submit, returns a normalized mapping of
domain attribute names to domain-typed values, and raises a typed
``ValidationError`` subclass on the first problem found.

Architecture position
---------------------
**Kernel domain layer** -- pure, zero I/O.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping

from inventory_kernel.domain.codecs import to_date
from inventory_kernel.domain.items import DEFAULT_UNIT, InventoryItem
from inventory_kernel.domain.procurement import (
    PurchaseOrderLine,
    RequisitionLine,
    RequisitionPriority,
    SupplierStatus,
)
from inventory_kernel.exceptions import (
    InvalidFieldError,
    InvalidQuantityError,
    MissingFieldError,
    NegativeStockError,
)

ITEM_REQUIRED_FIELDS = ("name", "category", "unit_price")

ITEM_EDITABLE_FIELDS = frozenset({
    "name",
    "category",
    "description",
    "current_stock",
    "reorder_level",
    "unit_price",
    "supplier",
    "unit",
    "location",
    "last_restocked",
    "image",
})

MAX_SUPPLIER_RATING = Decimal("5")


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def require_text(entity: str, data: Mapping[str, Any], name: str) -> str:
    value = data.get(name)
    if value is None or not str(value).strip():
        raise MissingFieldError(entity, name)
    return str(value).strip()


def optional_text(data: Mapping[str, Any], name: str, default: str = "") -> str:
    """Free text is kept verbatim, surrounding whitespace included."""
    value = data.get(name)
    return default if value is None else str(value)


def non_negative_int(entity: str, name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidFieldError(entity, name, value, "must be an integer")
    if value < 0:
        raise InvalidFieldError(entity, name, value, "cannot be negative")
    return value


def positive_quantity(entity: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidQuantityError(entity, value)
    return value


def parse_money(entity: str, name: str, value: Any, *, allow_zero: bool = False) -> Decimal:
    if value is None or isinstance(value, bool):
        raise InvalidFieldError(entity, name, value, "must be a number")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidFieldError(entity, name, value, "must be a number")
    if not amount.is_finite():
        raise InvalidFieldError(entity, name, value, "must be finite")
    if amount < 0 or (amount == 0 and not allow_zero):
        raise InvalidFieldError(
            entity, name, value,
            "cannot be negative" if allow_zero else "must be positive",
        )
    return amount


def optional_date(entity: str, name: str, value: Any) -> date | None:
    if value in (None, ""):
        return None
    parsed = to_date(value)
    if parsed is None:
        raise InvalidFieldError(entity, name, value, "must be an ISO date")
    return parsed


# ---------------------------------------------------------------------------
# Inventory items
# ---------------------------------------------------------------------------


def _normalize_item_field(name: str, value: Any, default_unit: str) -> Any:
    entity = "inventory_item"
    if name in ("current_stock", "reorder_level"):
        return non_negative_int(entity, name, value)
    if name == "unit_price":
        return parse_money(entity, name, value)
    if name == "last_restocked":
        return optional_date(entity, name, value)
    if name == "image":
        return str(value) if value not in (None, "") else None
    if name == "unit":
        unit = "" if value is None else str(value).strip()
        return unit or default_unit
    if name in ("name", "category"):
        if value is None or not str(value).strip():
            raise MissingFieldError(entity, name)
        return str(value).strip()
    return "" if value is None else str(value)


def validate_new_item(
    data: Mapping[str, Any],
    default_unit: str = DEFAULT_UNIT,
) -> dict[str, Any]:
    """
    Validate an item submitted for creation.

    Returns every editable attribute, defaults filled in.  A missing or
    blank ``unit`` becomes ``default_unit``.

    Raises:
        MissingFieldError: name, category or unit_price absent.
        InvalidFieldError: negative counts, non-positive price, bad date,
            or an attribute that is not editable.
    """
    for name in ITEM_REQUIRED_FIELDS:
        if data.get(name) in (None, ""):
            raise MissingFieldError("inventory_item", name)
    unknown = set(data) - ITEM_EDITABLE_FIELDS
    if unknown:
        name = sorted(unknown)[0]
        raise InvalidFieldError("inventory_item", name, data[name], "not an editable field")

    merged: dict[str, Any] = {
        "description": "",
        "current_stock": 0,
        "reorder_level": 0,
        "supplier": "",
        "unit": default_unit,
        "location": "",
        "last_restocked": None,
        "image": None,
    }
    merged.update(data)
    return {
        name: _normalize_item_field(name, value, default_unit)
        for name, value in merged.items()
    }


def validate_item_patch(
    patch: Mapping[str, Any],
    default_unit: str = DEFAULT_UNIT,
) -> dict[str, Any]:
    """
    Validate a partial item edit.  A blank ``unit`` resets it to ``default_unit``.

    Raises:
        ValidationError: empty patch, non-editable attribute, or bad value.
    """
    if not patch:
        raise InvalidFieldError("inventory_item", "patch", patch, "nothing to update")
    normalized: dict[str, Any] = {}
    for name, value in patch.items():
        if name not in ITEM_EDITABLE_FIELDS:
            raise InvalidFieldError("inventory_item", name, value, "not an editable field")
        normalized[name] = _normalize_item_field(name, value, default_unit)
    return normalized


def validate_stock_level(item: InventoryItem, new_stock: Any) -> int:
    """
    Check a requested absolute stock level.

    Raises:
        InvalidFieldError: not an integer.
        NegativeStockError: below zero.
    """
    if isinstance(new_stock, bool) or not isinstance(new_stock, int):
        raise InvalidFieldError("inventory_item", "current_stock", new_stock, "must be an integer")
    if new_stock < 0:
        raise NegativeStockError(item.id, item.current_stock, new_stock)
    return new_stock


def validate_stock_delta(item: InventoryItem, delta: Any) -> int:
    """
    Check a signed stock adjustment and return the resulting level.

    Raises:
        InvalidQuantityError: zero or non-integer delta.
        NegativeStockError: the result would be below zero.
    """
    if isinstance(delta, bool) or not isinstance(delta, int) or delta == 0:
        raise InvalidQuantityError("stock_adjustment", delta)
    resulting = item.current_stock + delta
    if resulting < 0:
        raise NegativeStockError(item.id, item.current_stock, resulting)
    return resulting


# ---------------------------------------------------------------------------
# Purchase orders and requisitions
# ---------------------------------------------------------------------------


def validate_order_lines(lines: Any) -> tuple[PurchaseOrderLine, ...]:
    entity = "purchase_order_line"
    if not lines:
        raise MissingFieldError("purchase_order", "items")
    validated = []
    for raw in lines:
        if not isinstance(raw, Mapping):
            raise InvalidFieldError(entity, "line", raw, "must be a mapping")
        validated.append(PurchaseOrderLine(
            name=require_text(entity, raw, "name"),
            quantity=positive_quantity(entity, raw.get("quantity")),
            unit_price=parse_money(entity, "unit_price", raw.get("unit_price")),
        ))
    return tuple(validated)


def validate_requisition_lines(lines: Any) -> tuple[RequisitionLine, ...]:
    entity = "requisition_line"
    if not lines:
        raise MissingFieldError("requisition", "items")
    validated = []
    for raw in lines:
        if not isinstance(raw, Mapping):
            raise InvalidFieldError(entity, "line", raw, "must be a mapping")
        validated.append(RequisitionLine(
            name=require_text(entity, raw, "name"),
            quantity=positive_quantity(entity, raw.get("quantity")),
            unit=optional_text(raw, "unit").strip() or DEFAULT_UNIT,
            estimated_cost=parse_money(
                entity, "estimated_cost", raw.get("estimated_cost", 0), allow_zero=True,
            ),
            reason=optional_text(raw, "reason"),
        ))
    return tuple(validated)


def validate_priority(value: Any) -> RequisitionPriority:
    if isinstance(value, RequisitionPriority):
        return value
    try:
        return RequisitionPriority(value or "low")
    except ValueError:
        raise InvalidFieldError("requisition", "priority", value, "unknown priority")


# ---------------------------------------------------------------------------
# Suppliers
# ---------------------------------------------------------------------------


def validate_supplier(data: Mapping[str, Any]) -> dict[str, Any]:
    entity = "supplier"
    email = optional_text(data, "email").strip()
    if email and ("@" not in email or email.startswith("@") or email.endswith("@")):
        raise InvalidFieldError(entity, "email", email, "not an email address")

    status = data.get("status", SupplierStatus.ACTIVE)
    if not isinstance(status, SupplierStatus):
        try:
            status = SupplierStatus(status)
        except ValueError:
            raise InvalidFieldError(entity, "status", status, "must be active or inactive")

    rating = parse_money(entity, "rating", data.get("rating", 0), allow_zero=True)
    if rating > MAX_SUPPLIER_RATING:
        raise InvalidFieldError(entity, "rating", rating, "must be between 0 and 5")

    return {
        "name": require_text(entity, data, "name"),
        "contact_person": optional_text(data, "contact_person"),
        "email": email,
        "phone": optional_text(data, "phone"),
        "address": optional_text(data, "address"),
        "category": optional_text(data, "category"),
        "payment_terms": optional_text(data, "payment_terms"),
        "delivery_time": optional_text(data, "delivery_time"),
        "status": status,
        "rating": rating,
        "notes": optional_text(data, "notes"),
    }


def validate_new_purchase_order(data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Validate a purchase order submitted for creation.

    Line totals and the order total are computed here; any ``total`` sent
    with the input is ignored.
    """
    entity = "purchase_order"
    return {
        "supplier": require_text(entity, data, "supplier"),
        "items": validate_order_lines(data.get("items")),
        "order_number": optional_text(data, "order_number").strip() or None,
        "order_date": optional_date(entity, "order_date", data.get("order_date")),
        "expected_delivery": optional_date(
            entity, "expected_delivery", data.get("expected_delivery"),
        ),
        "notes": optional_text(data, "notes") or None,
    }


def validate_new_requisition(data: Mapping[str, Any]) -> dict[str, Any]:
    entity = "requisition"
    return {
        "department": require_text(entity, data, "department"),
        "requested_by": require_text(entity, data, "requested_by"),
        "items": validate_requisition_lines(data.get("items")),
        "priority": validate_priority(data.get("priority")),
        "request_number": optional_text(data, "request_number").strip() or None,
        "request_date": optional_date(entity, "request_date", data.get("request_date")),
        "required_date": optional_date(entity, "required_date", data.get("required_date")),
        "justification": optional_text(data, "justification"),
        "notes": optional_text(data, "notes") or None,
    }
