"""
Idempotency key generation utilities.

Settlement events are keyed by the payment provider's session or reference
id.  Keys are namespaced by provider so two providers can never collide.
"""


def generate_settlement_key(provider: str, reference: str) -> str:
    """
    Generate an idempotency key for a settlement event.

    Format: provider:reference

    The key is stored on the settlement record under a unique constraint,
    which is what makes settlement application at-most-once.

    Example:
        >>> generate_settlement_key("stripe", "cs_test_a1b2")
        "stripe:cs_test_a1b2"
    """
    provider = provider.strip().lower()
    reference = reference.strip()
    if not provider or not reference:
        raise ValueError("Settlement key needs both a provider and a reference")
    return f"{provider}:{reference}"


def parse_settlement_key(key: str) -> tuple[str, str]:
    """
    Parse a settlement key into (provider, reference).

    Raises:
        ValueError: If key format is invalid.
    """
    if not isinstance(key, str):
        raise ValueError(f"Invalid settlement key format: {key!r}")
    parts = key.split(":", 1)
    if len(parts) != 2 or not parts[0].strip() or not parts[1].strip():
        raise ValueError(f"Invalid settlement key format: {key}")
    return parts[0], parts[1]
