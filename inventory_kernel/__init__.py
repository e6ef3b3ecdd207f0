"""
Inventory Kernel

The data-access and workflow core of the hotel back-office inventory:
- Typed, coded exceptions
- Structured JSON logging
- Frozen domain types for items, orders, requisitions and suppliers
- Document codecs between the remote store and the domain
- SQLAlchemy base and engine for the SQL-backed document store
"""

__version__ = "0.1.0"
