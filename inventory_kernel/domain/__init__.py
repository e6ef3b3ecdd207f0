"""
Pure domain layer.

Data types, codecs and validation with NO dependencies on:
- ORM (SQLAlchemy)
- Remote stores
- Time (except through an injected Clock)

All domain objects are immutable and deterministic.
"""

from inventory_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from inventory_kernel.domain.codecs import Document
from inventory_kernel.domain.items import (
    InventoryItem,
    StockMovementType,
    StockStatus,
    StockTransaction,
    classify_stock,
)
from inventory_kernel.domain.procurement import (
    PurchaseOrder,
    PurchaseOrderAction,
    PurchaseOrderLine,
    PurchaseOrderStatus,
    Requisition,
    RequisitionAction,
    RequisitionLine,
    RequisitionPriority,
    RequisitionStatus,
    Supplier,
    SupplierStatus,
)
from inventory_kernel.domain.workflow import Transition, Workflow

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "Document",
    "InventoryItem",
    "StockMovementType",
    "StockStatus",
    "StockTransaction",
    "classify_stock",
    "PurchaseOrder",
    "PurchaseOrderAction",
    "PurchaseOrderLine",
    "PurchaseOrderStatus",
    "Requisition",
    "RequisitionAction",
    "RequisitionLine",
    "RequisitionPriority",
    "RequisitionStatus",
    "Supplier",
    "SupplierStatus",
    "Transition",
    "Workflow",
]
