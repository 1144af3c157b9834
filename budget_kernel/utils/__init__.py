"""Utility modules for the budget kernel."""

from budget_kernel.utils.hashing import canonicalize_json, hash_payload
from budget_kernel.utils.idempotency import (
    generate_settlement_key,
    parse_settlement_key,
)

__all__ = [
    "canonicalize_json",
    "hash_payload",
    "generate_settlement_key",
    "parse_settlement_key",
]
