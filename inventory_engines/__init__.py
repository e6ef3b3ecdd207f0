"""
Module: inventory_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for higher
    layers (inventory_services, inventory_modules).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import inventory_kernel domain types and exceptions.
    MUST NOT import inventory_services or inventory_modules.

Invariants enforced:
    - Purity: engines NEVER read the clock.  Timestamps are passed in.
    - Decimal-only arithmetic for money.
    - Determinism: identical inputs always produce identical outputs.
"""

from inventory_engines.filtering import (
    ALL_CATEGORIES,
    ALL_STOCK,
    FacetCounts,
    FilterOption,
    FilterSpec,
    ReorderSuggestion,
    SortKey,
    SortOrder,
    facet_counts,
    filter_items,
    items_in_category,
    low_stock_items,
    reorder_suggestions,
)
from inventory_engines.formatting import format_currency
from inventory_engines.ledger import LedgerCheck, check_item_ledger, replay_stock
from inventory_engines.lifecycle import resolve_transition, transition_changes
from inventory_engines.stats import (
    InventoryStats,
    ProcurementStats,
    RequisitionStats,
    TransactionStats,
    aggregate_stats,
    procurement_stats,
    requisition_stats,
    transaction_stats,
)

__all__ = [
    "ALL_CATEGORIES",
    "ALL_STOCK",
    "FacetCounts",
    "FilterOption",
    "FilterSpec",
    "ReorderSuggestion",
    "SortKey",
    "SortOrder",
    "facet_counts",
    "filter_items",
    "items_in_category",
    "low_stock_items",
    "reorder_suggestions",
    "format_currency",
    "LedgerCheck",
    "check_item_ledger",
    "replay_stock",
    "resolve_transition",
    "transition_changes",
    "InventoryStats",
    "ProcurementStats",
    "RequisitionStats",
    "TransactionStats",
    "aggregate_stats",
    "procurement_stats",
    "requisition_stats",
    "transaction_stats",
]
