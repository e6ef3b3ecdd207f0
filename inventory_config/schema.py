"""
Configuration Schema (``inventory_config.schema``).

Defines the structure and defaults for the inventory core settings.
Values are loaded from YAML at runtime (see ``inventory_config.loader``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from inventory_kernel.exceptions import ConfigurationError

DEFAULT_CACHE_TTL_SECONDS = 5 * 60

_CURRENCY_RE = re.compile(r"^[A-Z]{3}$")


@dataclass(frozen=True)
class CollectionNames:
    """Remote collection names for each entity type."""
    inventory_items: str = "inventory_items"
    purchase_orders: str = "purchaseOrders"
    requisitions: str = "requisitions"
    suppliers: str = "suppliers"
    stock_transactions: str = "stock_transactions"

    def __post_init__(self):
        for name, value in vars(self).items():
            if not isinstance(value, str) or not value.strip():
                raise ConfigurationError(f"collections.{name}", "must be a non-empty string")


@dataclass(frozen=True)
class InventoryCoreConfig:
    """
    Configuration for the inventory core.

    Field defaults match the hotel back office as deployed:

        config = InventoryCoreConfig(
            cache_ttl_seconds=300,
            currency="PHP",
        )
    """

    # Cache
    cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS

    # Collections
    collections: CollectionNames = field(default_factory=CollectionNames)

    # Items
    default_unit: str = "pieces"
    all_categories_label: str = "All Categories"

    # Stock ledger
    record_stock_transactions: bool = True

    # Presentation
    currency: str = "PHP"

    def __post_init__(self):
        if isinstance(self.cache_ttl_seconds, bool) or not isinstance(
            self.cache_ttl_seconds, (int, float)
        ):
            raise ConfigurationError("cache_ttl_seconds", "must be a number")
        if self.cache_ttl_seconds <= 0:
            raise ConfigurationError("cache_ttl_seconds", "must be positive")
        if not self.default_unit.strip():
            raise ConfigurationError("default_unit", "must not be blank")
        if not self.all_categories_label.strip():
            raise ConfigurationError("all_categories_label", "must not be blank")
        if not _CURRENCY_RE.match(self.currency):
            raise ConfigurationError("currency", f"'{self.currency}' is not a 3-letter ISO code")
