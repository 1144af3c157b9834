"""
budget_engines.tracer -- BUDGET_ENGINE_TRACE records for engine calls.

Responsibility:
    ``@traced_engine`` wraps a pure engine method and, after it returns,
    logs one INFO record with the engine name and version, a fingerprint of
    the selected inputs, the size of the result and the duration.  Two runs
    of a report over the same period share a fingerprint, so their traces
    can be lined up.

Architecture position:
    Engines -- support for the pure calculation layer.  Emits a log record
    and nothing else.

Invariants enforced:
    - Fingerprints cover only ``fingerprint_fields`` and are 16 hex chars of
      a SHA-256 over the canonical JSON of those arguments, whether they
      were passed positionally or by keyword.
    - Arguments are never mutated; a failing call raises unchanged and logs
      no trace.

Usage:
    @traced_engine("aggregation", "1.0", fingerprint_fields=("period",))
    def aggregate(self, transactions, period, include_accounts=()):
        ...
"""

from __future__ import annotations

import functools
import inspect
import time
from collections.abc import Callable, Sized
from typing import Any

from budget_kernel.logging_config import get_logger
from budget_kernel.utils.hashing import hash_payload

logger = get_logger("engines.tracer")

TRACE_MESSAGE = "BUDGET_ENGINE_TRACE"


def input_fingerprint(
    func: Callable,
    fingerprint_fields: tuple[str, ...],
    args: tuple,
    kwargs: dict[str, Any],
) -> str:
    if not fingerprint_fields:
        return ""
    bound = inspect.signature(func).bind_partial(*args, **kwargs)
    selected = {}
    for name in fingerprint_fields:
        value = bound.arguments.get(name)
        if isinstance(value, (set, frozenset)):
            value = sorted(map(str, value))
        selected[name] = value
    return hash_payload(selected, strict=False)[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """
    Decorate an engine method with trace logging.

    Args:
        engine_name: e.g. ``"aggregation"``.
        engine_version: bumped when the calculation changes.
        fingerprint_fields: argument names hashed into ``input_fingerprint``.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.monotonic()
            result = func(*args, **kwargs)
            logger.info(
                TRACE_MESSAGE,
                extra={
                    "trace_type": TRACE_MESSAGE,
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": input_fingerprint(
                        func, fingerprint_fields, args, kwargs,
                    ),
                    "result_size": len(result) if isinstance(result, Sized) else None,
                    "duration_ms": round((time.monotonic() - started) * 1000, 2),
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator
