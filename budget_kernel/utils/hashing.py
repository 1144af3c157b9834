"""
Canonical JSON and SHA-256 digests.

Used for settlement payload hashes (a replayed idempotency key must describe
the same settlement), engine input fingerprints and config checksums.
"""

import hashlib
import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID


def _strict(obj: Any) -> Any:
    if isinstance(obj, Decimal):
        # 12500 and 12500.00 are the same amount
        return str(obj.normalize())
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, UUID):
        return str(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def _lenient(obj: Any) -> Any:
    try:
        return _strict(obj)
    except TypeError:
        return str(obj)


def canonicalize_json(data: Any, strict: bool = True) -> str:
    """
    Sorted keys, no whitespace.

    With ``strict=False`` unknown types fall back to ``str()`` instead of
    raising ``TypeError``.
    """
    return json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        default=_strict if strict else _lenient,
    )


def hash_payload(payload: Any, strict: bool = True) -> str:
    """Hex SHA-256 (64 chars) of the canonical JSON form of ``payload``."""
    return hashlib.sha256(canonicalize_json(payload, strict).encode("utf-8")).hexdigest()
