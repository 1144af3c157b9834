"""
Configuration schema (``budget_config.schema``).

Frozen dataclass describing one engine configuration.  Every field has a
default so an empty YAML document is a valid configuration; ``__post_init__``
rejects out-of-range values with ``ConfigurationError``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from budget_kernel.exceptions import ConfigurationError

DEFAULT_DATABASE_URL = "sqlite:///budget.db"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class EngineConfig:
    """Runtime settings for reporting and persistence."""

    config_id: str = "default"
    database_url: str = DEFAULT_DATABASE_URL
    log_level: str = "INFO"
    utilization_decimal_places: int = 1
    under_utilized_threshold_percent: Decimal = Decimal("50")
    dashboard_top_n: int = 5
    count_draft_documents: bool = True
    auto_tag_untagged_lines: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    checksum: str = ""

    def __post_init__(self) -> None:
        if not self.database_url:
            raise ConfigurationError("database_url", "must not be empty")
        if self.log_level.upper() not in _LOG_LEVELS:
            raise ConfigurationError("log_level", f"must be one of {', '.join(_LOG_LEVELS)}")
        if not 0 <= self.utilization_decimal_places <= 6:
            raise ConfigurationError("utilization_decimal_places", "must be between 0 and 6")
        if not Decimal("0") <= self.under_utilized_threshold_percent <= Decimal("100"):
            raise ConfigurationError(
                "under_utilized_threshold_percent", "must be between 0 and 100",
            )
        if self.dashboard_top_n < 1:
            raise ConfigurationError("dashboard_top_n", "must be at least 1")
        if self.pool_size < 1:
            raise ConfigurationError("pool_size", "must be at least 1")
        if self.max_overflow < 0:
            raise ConfigurationError("max_overflow", "must not be negative")
