"""
inventory_engines.filtering -- Filtering, sorting and facet counts.

Responsibility:
    Turn the full item collection plus a ``FilterSpec`` into an ordered,
    filtered view, and derive the filter menu options with their counts
    from the same (unfiltered) collection.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import inventory_kernel/domain types.

Invariants enforced:
    - Stock-status matching uses ``classify_stock`` and nothing else, so
      filter buckets, facet counts and statistics cannot disagree.
    - Sorting is stable; descending order is an explicit toggle.
    - Inputs are never mutated; a new list is always returned.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Callable, Iterable, Sequence

from inventory_kernel.domain.items import InventoryItem, StockStatus, classify_stock

ALL_CATEGORIES = "All Categories"
ALL_STOCK = "all"
ALL_STOCK_LABEL = "All Items"


class SortKey(Enum):
    NAME = "name"
    CATEGORY = "category"
    STOCK = "stock"
    VALUE = "value"
    LAST_RESTOCKED = "lastRestocked"


class SortOrder(Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class FilterSpec:
    """What the items table is currently asking for."""
    search_term: str = ""
    category: str = ALL_CATEGORIES
    stock_status: StockStatus | str = ALL_STOCK
    sort_by: SortKey = SortKey.NAME
    sort_order: SortOrder = SortOrder.ASC

    def __post_init__(self):
        # Accept the raw strings a form would send.
        if isinstance(self.stock_status, str) and self.stock_status != ALL_STOCK:
            object.__setattr__(self, "stock_status", StockStatus(self.stock_status))
        if not isinstance(self.sort_by, SortKey):
            object.__setattr__(self, "sort_by", SortKey(self.sort_by))
        if not isinstance(self.sort_order, SortOrder):
            object.__setattr__(self, "sort_order", SortOrder(self.sort_order))


@dataclass(frozen=True)
class FilterOption:
    value: str
    label: str
    count: int


@dataclass(frozen=True)
class FacetCounts:
    category_options: tuple[FilterOption, ...]
    stock_status_options: tuple[FilterOption, ...]


# ---------------------------------------------------------------------------
# Matching
# ---------------------------------------------------------------------------


def matches_search(item: InventoryItem, search_term: str) -> bool:
    """Case-insensitive substring match across the searchable fields."""
    if not search_term:
        return True
    needle = search_term.casefold()
    return any(
        needle in field.casefold()
        for field in (item.name, item.category, item.description, item.supplier, item.id)
    )


def matches_category(
    item: InventoryItem,
    category: str,
    all_label: str = ALL_CATEGORIES,
) -> bool:
    return category == all_label or item.category == category


def matches_stock_status(item: InventoryItem, stock_status: StockStatus | str) -> bool:
    if stock_status == ALL_STOCK:
        return True
    return classify_stock(item) == stock_status


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------


def _sort_key(sort_by: SortKey) -> Callable[[InventoryItem], Any]:
    if sort_by == SortKey.NAME:
        return lambda item: item.name.casefold()
    if sort_by == SortKey.CATEGORY:
        return lambda item: item.category.casefold()
    if sort_by == SortKey.STOCK:
        return lambda item: item.current_stock
    if sort_by == SortKey.VALUE:
        return lambda item: item.value
    # Missing restock dates sort before every real date.
    return lambda item: item.last_restocked or date.min


def sort_items(
    items: Iterable[InventoryItem],
    sort_by: SortKey = SortKey.NAME,
    sort_order: SortOrder = SortOrder.ASC,
) -> list[InventoryItem]:
    """
    Stable sort by one key.

    Descending keeps equal keys in their original relative order, the same
    as ascending does.
    """
    return sorted(
        items,
        key=_sort_key(sort_by),
        reverse=sort_order == SortOrder.DESC,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def filter_items(
    items: Sequence[InventoryItem],
    spec: FilterSpec,
    all_categories_label: str = ALL_CATEGORIES,
) -> list[InventoryItem]:
    """Apply search, category and stock-status filters, then sort."""
    kept = [
        item
        for item in items
        if matches_search(item, spec.search_term)
        and matches_category(item, spec.category, all_categories_label)
        and matches_stock_status(item, spec.stock_status)
    ]
    return sort_items(kept, spec.sort_by, spec.sort_order)


def facet_counts(
    items: Sequence[InventoryItem],
    all_categories_label: str = ALL_CATEGORIES,
) -> FacetCounts:
    """
    Filter menu options with counts over the unfiltered collection.

    Category options: the "all" sentinel first, then each category in
    sorted order.  Stock options: all, in-stock, low-stock, out-of-stock.
    """
    by_category = Counter(item.category for item in items)
    by_status = Counter(classify_stock(item) for item in items)

    category_options = (
        FilterOption(all_categories_label, all_categories_label, len(items)),
        *(
            FilterOption(category, category, by_category[category])
            for category in sorted(by_category)
        ),
    )
    stock_status_options = (
        FilterOption(ALL_STOCK, ALL_STOCK_LABEL, len(items)),
        *(
            FilterOption(status.value, status.label, by_status[status])
            for status in (StockStatus.IN_STOCK, StockStatus.LOW_STOCK, StockStatus.OUT_OF_STOCK)
        ),
    )
    return FacetCounts(
        category_options=tuple(category_options),
        stock_status_options=tuple(stock_status_options),
    )


# ---------------------------------------------------------------------------
# Convenience views
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReorderSuggestion:
    item: InventoryItem
    suggested_quantity: int


def low_stock_items(items: Iterable[InventoryItem]) -> list[InventoryItem]:
    return [item for item in items if classify_stock(item) == StockStatus.LOW_STOCK]


def items_in_category(items: Iterable[InventoryItem], category: str) -> list[InventoryItem]:
    return sort_items(item for item in items if item.category == category)


def reorder_suggestions(items: Iterable[InventoryItem]) -> list[ReorderSuggestion]:
    """
    Items at or below their reorder level, most urgent first.

    Suggested quantity tops the item up to twice its reorder level.
    """
    suggestions = [
        ReorderSuggestion(
            item=item,
            suggested_quantity=max(item.reorder_level * 2 - item.current_stock, 0),
        )
        for item in items
        if classify_stock(item) != StockStatus.IN_STOCK
    ]
    return sorted(suggestions, key=lambda s: (s.item.current_stock, s.item.name.casefold()))
