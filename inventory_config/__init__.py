"""
inventory_config -- single public entrypoint for inventory core configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  YAML loading lives in ``loader``.

Architecture position:
    Configuration.  Sits above ``inventory_kernel`` and below
    ``inventory_services`` / ``inventory_modules``.  The kernel MUST NEVER
    import from ``inventory_config``.

Failure modes:
    - ``FileNotFoundError`` -- the requested file does not exist.
    - ``ConfigurationError`` -- unknown keys or invalid values.

Audit relevance:
    Every successful ``get_active_config()`` call emits an
    ``inventory_config_loaded`` log entry with the source path and checksum.
"""

from __future__ import annotations

import os
from pathlib import Path

from inventory_config.loader import compute_checksum, load_config
from inventory_config.schema import CollectionNames, InventoryCoreConfig
from inventory_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"
CONFIG_ENV_VAR = "INVENTORY_CORE_CONFIG"


def get_active_config(path: Path | str | None = None) -> InventoryCoreConfig:
    """The ONLY public configuration entrypoint.

    Resolution order: explicit ``path``, then the ``INVENTORY_CORE_CONFIG``
    environment variable, then the packaged ``defaults.yaml``.
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
    source = Path(path)
    config = load_config(source)
    _logger.info(
        "inventory_config_loaded",
        extra={
            "source": str(source),
            "checksum": compute_checksum(config),
            "cache_ttl_seconds": config.cache_ttl_seconds,
        },
    )
    return config


__all__ = [
    "CollectionNames",
    "InventoryCoreConfig",
    "get_active_config",
    "DEFAULT_CONFIG_PATH",
    "CONFIG_ENV_VAR",
]
