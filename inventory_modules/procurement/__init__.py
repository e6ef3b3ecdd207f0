"""
Procurement Module (``inventory_modules.procurement``).

Purchase orders and material requisitions with their status workflows,
plus the supplier directory.

Invariants enforced
-------------------
* Orders and requisitions are created ``pending``.
* A purchase order's total is fixed at creation.
* Status changes follow ``PURCHASE_ORDER_WORKFLOW`` and
  ``REQUISITION_WORKFLOW`` only.
"""

from inventory_modules.procurement.service import ProcurementService
from inventory_modules.procurement.workflows import (
    PURCHASE_ORDER_WORKFLOW,
    REQUISITION_WORKFLOW,
)

__all__ = [
    "ProcurementService",
    "PURCHASE_ORDER_WORKFLOW",
    "REQUISITION_WORKFLOW",
]
