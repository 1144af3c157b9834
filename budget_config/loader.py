"""
Configuration Loader (``budget_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into a frozen
``EngineConfig``.  Runtime callers go through
``budget_config.get_active_config()``; this module is its implementation
and test tooling.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or values of the wrong type  -> ``ConfigurationError``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import fields
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from budget_config.schema import EngineConfig
from budget_kernel.exceptions import ConfigurationError
from budget_kernel.utils.hashing import hash_payload

# Environment variable -> config field
ENV_OVERRIDES = {
    "DATABASE_URL": "database_url",
    "BUDGET_LOG_LEVEL": "log_level",
}

_INT_FIELDS = ("utilization_decimal_places", "dashboard_top_n", "pool_size", "max_overflow")
_BOOL_FIELDS = ("count_draft_documents", "auto_tag_untagged_lines")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ConfigurationError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(str(path), "top level must be a mapping")
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form of ``data``."""
    return hash_payload(data, strict=False)


def _coerce_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "yes", "1", "on"):
        return True
    if isinstance(value, str) and value.strip().lower() in ("false", "no", "0", "off"):
        return False
    raise ConfigurationError(key, f"expected a boolean, got {value!r}")


def _coerce_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(key, f"expected an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(key, f"expected an integer, got {value!r}") from None


def _coerce_decimal(key: str, value: Any) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ConfigurationError(key, f"expected a number, got {value!r}") from None


def parse_engine_config(data: Mapping[str, Any]) -> EngineConfig:
    """
    Parse a raw mapping into an ``EngineConfig``.

    Accepts the settings either at the top level or under an ``engine:``
    key, so a file may also carry a ``config_id`` header.
    """
    raw = dict(data["engine"] or {}) if "engine" in data else dict(data)
    if "config_id" in data and "config_id" not in raw:
        raw["config_id"] = data["config_id"]

    known = {f.name for f in fields(EngineConfig)} - {"checksum"}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigurationError(", ".join(unknown), "unknown configuration key")

    values: dict[str, Any] = {}
    for key, value in raw.items():
        if key in _INT_FIELDS:
            values[key] = _coerce_int(key, value)
        elif key in _BOOL_FIELDS:
            values[key] = _coerce_bool(key, value)
        elif key == "under_utilized_threshold_percent":
            values[key] = _coerce_decimal(key, value)
        elif key == "log_level":
            values[key] = str(value).upper()
        else:
            values[key] = str(value)

    values["checksum"] = compute_checksum(values)
    return EngineConfig(**values)


def apply_env_overrides(
    data: Mapping[str, Any],
    environ: Mapping[str, str],
) -> dict[str, Any]:
    """Return a copy of ``data`` with environment values layered on top."""
    merged = dict(data["engine"] or {}) if "engine" in data else dict(data)
    if "config_id" in data:
        merged.setdefault("config_id", data["config_id"])
    for env_key, field_name in ENV_OVERRIDES.items():
        value = environ.get(env_key)
        if value:
            merged[field_name] = value
    return merged


def load_engine_config(
    path: Path,
    environ: Mapping[str, str] | None = None,
) -> EngineConfig:
    """Load, override and validate a configuration file."""
    data = load_yaml_file(path)
    if environ is not None:
        data = apply_env_overrides(data, environ)
    return parse_engine_config(data)
