"""Decimal helpers for money and quantities: stdlib only."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

CENT = Decimal("0.01")


def to_decimal(value, default: Decimal = Decimal("0")) -> Decimal:
    """Coerce *value* to a finite Decimal.

    None, NaN, infinities and unparsable input all fall back to *default*
    so that a malformed figure can never end up in a persisted total.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return default
    if not result.is_finite():
        return default
    return result


def round_money(value: Decimal) -> Decimal:
    """Round half-up to two decimal places."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def non_negative(value, default: Decimal = Decimal("0")) -> Decimal:
    """Like :func:`to_decimal` but clamps negatives to zero."""
    result = to_decimal(value, default)
    return result if result >= 0 else Decimal("0")
