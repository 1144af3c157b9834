"""
Decimal value helpers.

Responsibility:
    Canonical conversion of inbound amounts to ``Decimal`` and the single
    percentage-rounding rule used by every report.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Floats are never accepted as money; they are converted through
      ``str()`` so ``0.1`` stays ``Decimal("0.1")``.
    - Percentages round ROUND_HALF_UP to a fixed number of places.
    - Division by zero yields ``ZERO``.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext

from budget_kernel.exceptions import InvalidAmountError

ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Enough digits for a Numeric(38, 9) ratio scaled by 100 and quantized.
_PERCENT_PRECISION = 100


def to_decimal(value: Decimal | int | str | float | None, field: str = "amount") -> Decimal:
    """
    Convert an inbound monetary value to ``Decimal``.

    ``None`` is treated as zero (absent amounts in source rows).

    Raises:
        InvalidAmountError: value is not numeric or not finite.
    """
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise InvalidAmountError(field, value, "booleans are not amounts")
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        try:
            result = Decimal(value)
        except (InvalidOperation, ValueError, TypeError):
            raise InvalidAmountError(field, value, "not a decimal number") from None
    if not result.is_finite():
        raise InvalidAmountError(field, value, "must be finite")
    return result


def percent_of(
    part: Decimal,
    whole: Decimal,
    places: int = 1,
) -> Decimal:
    """
    ``part / whole * 100`` rounded to ``places`` decimals.

    Returns ``ZERO`` when ``whole`` is zero or negative.
    """
    if whole <= ZERO:
        return ZERO
    exponent = Decimal(1).scaleb(-places)
    with localcontext() as ctx:
        ctx.prec = _PERCENT_PRECISION
        return ((part / whole) * HUNDRED).quantize(exponent, rounding=ROUND_HALF_UP)


def round_percent(value: Decimal, places: int = 1) -> Decimal:
    """Round an already-computed percentage with the report rule."""
    exponent = Decimal(1).scaleb(-places)
    with localcontext() as ctx:
        ctx.prec = _PERCENT_PRECISION
        return value.quantize(exponent, rounding=ROUND_HALF_UP)
