"""
Inventory Item Domain Types (``inventory_kernel.domain.items``).

Responsibility
--------------
Frozen value objects for the inventory collection: ``InventoryItem``,
the ``StockStatus`` buckets with their single classifier, and the
``StockTransaction`` ledger record written for every stock change.

Architecture
------------
Layer: **Kernel domain** -- pure data, zero I/O.  These objects carry the
store-assigned ``id`` but nothing about how they are persisted; the
mapping to and from stored documents lives in ``codecs``.

Invariants
----------
- ``current_stock`` and ``reorder_level`` are non-negative integers.
- ``unit_price`` is a non-negative ``Decimal`` at construction.  Writes
  additionally require it to be positive (see ``validation``); legacy
  documents with a missing price still load as ``0``.
- ``classify_stock`` is the only place the stock thresholds are written
  down.  Filtering, facets and statistics all call it.
"""

from dataclasses import dataclass, replace
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from inventory_kernel.logging_config import get_logger

logger = get_logger("domain.items")

DEFAULT_UNIT = "pieces"


class StockStatus(Enum):
    """Mutually exclusive stock buckets."""
    IN_STOCK = "in-stock"
    LOW_STOCK = "low-stock"
    OUT_OF_STOCK = "out-of-stock"

    @property
    def label(self) -> str:
        return _STOCK_STATUS_LABELS[self]


_STOCK_STATUS_LABELS = {
    StockStatus.IN_STOCK: "In Stock",
    StockStatus.LOW_STOCK: "Low Stock",
    StockStatus.OUT_OF_STOCK: "Out of Stock",
}


class StockMovementType(Enum):
    """Direction of a recorded stock change."""
    STOCK_IN = "stock-in"
    STOCK_OUT = "stock-out"
    ADJUSTMENT = "adjustment"


@dataclass(frozen=True)
class InventoryItem:
    """
    An inventory item as held in the local collection.

    Contract: Immutable.  Edits produce a new instance via ``with_changes``.
    """
    id: str
    name: str
    category: str
    description: str
    current_stock: int
    reorder_level: int
    unit_price: Decimal
    supplier: str
    unit: str = DEFAULT_UNIT
    location: str = ""
    last_restocked: date | None = None
    image: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __post_init__(self):
        if self.current_stock < 0:
            logger.warning(
                "item_negative_stock",
                extra={"item_id": self.id, "current_stock": self.current_stock},
            )
            raise ValueError(
                f"current_stock cannot be negative (got {self.current_stock})"
            )
        if self.reorder_level < 0:
            raise ValueError(
                f"reorder_level cannot be negative (got {self.reorder_level})"
            )
        if self.unit_price < 0:
            raise ValueError(
                f"unit_price cannot be negative (got {self.unit_price})"
            )

    @property
    def value(self) -> Decimal:
        """Stock value: ``current_stock * unit_price``."""
        return self.unit_price * self.current_stock

    @property
    def stock_status(self) -> StockStatus:
        return classify_stock(self)

    def with_changes(self, **changes: Any) -> "InventoryItem":
        return replace(self, **changes)


def classify_stock(item: InventoryItem) -> StockStatus:
    """
    Place an item in exactly one stock bucket.

    out-of-stock: ``current_stock == 0``
    low-stock:    ``0 < current_stock <= reorder_level``
    in-stock:     ``current_stock > reorder_level``
    """
    if item.current_stock == 0:
        return StockStatus.OUT_OF_STOCK
    if item.current_stock <= item.reorder_level:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


@dataclass(frozen=True)
class StockTransaction:
    """
    One recorded change to an item's stock.

    Contract: ``quantity`` is the signed delta; ``resulting_stock`` is the
    item's ``current_stock`` after the change.  A fold of deltas from the
    opening stock reproduces ``resulting_stock`` (see
    ``inventory_engines.ledger``).
    """
    id: str
    item_id: str
    item_name: str
    movement_type: StockMovementType
    quantity: int
    resulting_stock: int
    reason: str
    performed_by: str
    timestamp: datetime
    notes: str | None = None

    def __post_init__(self):
        if self.resulting_stock < 0:
            raise ValueError(
                f"resulting_stock cannot be negative (got {self.resulting_stock})"
            )


def movement_type_for(delta: int) -> StockMovementType:
    """Infer the movement type from a signed stock delta."""
    if delta > 0:
        return StockMovementType.STOCK_IN
    if delta < 0:
        return StockMovementType.STOCK_OUT
    return StockMovementType.ADJUSTMENT
