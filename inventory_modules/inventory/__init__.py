"""
Inventory Module (``inventory_modules.inventory``).

Item collection access: cached reads and the live subscription, item
create / edit / delete, absolute and relative stock changes, and the stock
ledger written alongside them.
"""

from inventory_modules.inventory.service import InventoryService

__all__ = [
    "InventoryService",
]
