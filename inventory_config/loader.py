"""
Configuration Loader (``inventory_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into a frozen
``InventoryCoreConfig``.  The single public entry point for runtime config
is ``inventory_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or invalid values  -> ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import asdict, fields
from pathlib import Path
from typing import Any

import yaml

from inventory_config.schema import CollectionNames, InventoryCoreConfig
from inventory_kernel.exceptions import ConfigurationError


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigurationError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top level must be a mapping")
    return data


def _check_keys(section: str, data: dict[str, Any], allowed: set[str]) -> None:
    unknown = set(data) - allowed
    if unknown:
        name = sorted(unknown)[0]
        raise ConfigurationError(f"{section}{name}", "unknown configuration key")


def parse_collections(data: dict[str, Any] | None) -> CollectionNames:
    """Parse the ``collections`` section."""
    data = data or {}
    if not isinstance(data, dict):
        raise ConfigurationError("collections", "must be a mapping")
    _check_keys("collections.", data, {f.name for f in fields(CollectionNames)})
    return CollectionNames(**data)


def parse_config(data: dict[str, Any]) -> InventoryCoreConfig:
    """
    Parse an ``InventoryCoreConfig`` from a dict.

    Raises:
        ConfigurationError: unknown keys or invalid values.
    """
    _check_keys("", data, {f.name for f in fields(InventoryCoreConfig)})
    values = dict(data)
    values["collections"] = parse_collections(values.get("collections"))
    return InventoryCoreConfig(**values)


def load_config(path: Path) -> InventoryCoreConfig:
    """Load and parse a configuration file."""
    return parse_config(load_yaml_file(path))


def compute_checksum(config: InventoryCoreConfig) -> str:
    """Deterministic SHA-256 of a configuration, for change detection."""
    canonical = json.dumps(asdict(config), sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
