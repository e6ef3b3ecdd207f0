"""
Inventory Modules.

Thin orchestration layers over the kernel, engines and services.

Modules:
- Inventory: Items, stock levels, stock ledger
- Procurement: Purchase orders, requisitions, suppliers

``InventoryCore`` (``inventory_modules.core``) composes both over one
remote store.
"""

from inventory_modules import inventory, procurement
from inventory_modules.core import InventoryCore

__all__ = [
    "InventoryCore",
    "inventory",
    "procurement",
]
