"""
budget_config -- single public entrypoint for engine configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Engines and kernel services never read
    configuration files or environment variables; callers pass the values
    they need from the returned ``EngineConfig``.

Architecture position:
    Configuration -- sits above ``budget_kernel`` and below
    ``budget_services`` and the CLI.  The kernel MUST NEVER import from
    ``budget_config``.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``ConfigurationError`` -- unknown keys or out-of-range values.

Every successful ``get_active_config()`` call emits a
``BUDGET_CONFIG_TRACE`` log entry with the config id and checksum.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from budget_config.loader import load_engine_config
from budget_config.schema import EngineConfig

_logger = logging.getLogger("budget_kernel.config")

CONFIG_ENV_VAR = "BUDGET_ENGINE_CONFIG"

# Default configuration file
DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(path: Path | str | None = None) -> EngineConfig:
    """The ONLY public configuration entrypoint.

    Resolution order for the file: ``path`` argument, then the
    ``BUDGET_ENGINE_CONFIG`` environment variable, then
    ``budget_config/sets/default.yaml``.  ``DATABASE_URL`` and
    ``BUDGET_LOG_LEVEL`` override the file's values.
    """
    resolved = Path(path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)
    config = load_engine_config(resolved, environ=os.environ)

    _logger.info(
        "BUDGET_CONFIG_TRACE",
        extra={
            "trace_type": "BUDGET_CONFIG_TRACE",
            "config_id": config.config_id,
            "checksum": config.checksum,
            "source": str(resolved),
        },
    )
    return config


__all__ = ["EngineConfig", "get_active_config"]
