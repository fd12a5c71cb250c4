"""Input validation rules: pure functions, zero external dependencies.

Every check raises :class:`domain.errors.ValidationError` so callers can
reject a mutation before anything is sent to the store.
"""

from __future__ import annotations

from decimal import Decimal

from domain.errors import ValidationError
from domain.models import TaxPolicy, CustomRate, FixedDualRate
from domain.money import to_decimal

_SENTINEL = Decimal("-1")


def require(value, field: str, label: str | None = None) -> None:
    """Reject None and blank strings."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{label or field} is required", field=field)


def check_non_negative(value, field: str) -> Decimal:
    amount = to_decimal(value)
    if amount < 0:
        raise ValidationError(f"{field} must not be negative", field=field,
                              details={"value": str(value)})
    return amount


def check_positive(value, field: str) -> Decimal:
    amount = to_decimal(value, _SENTINEL)
    if amount <= 0:
        raise ValidationError(f"{field} must be greater than zero", field=field,
                              details={"value": str(value)})
    return amount


def validate_lines(lines) -> None:
    """Quantities and unit prices of document lines must be >= 0."""
    for index, line in enumerate(lines):
        check_non_negative(line.quantity, f"lines[{index}].quantity")
        check_non_negative(line.unit_price, f"lines[{index}].unit_price")


def validate_receipt_lines(lines) -> None:
    for index, line in enumerate(lines):
        check_non_negative(line.received_quantity, f"lines[{index}].received_quantity")
        check_non_negative(line.unit_price, f"lines[{index}].unit_price")
        if line.ordered_quantity is not None:
            check_non_negative(line.ordered_quantity, f"lines[{index}].ordered_quantity")


def validate_charges(charges) -> None:
    for index, charge in enumerate(charges):
        require(charge.name, f"charges[{index}].name", "Charge name")
        check_non_negative(charge.amount, f"charges[{index}].amount")


def validate_tax_policy(policy: TaxPolicy) -> None:
    if isinstance(policy, FixedDualRate):
        check_non_negative(policy.rate_a, "tax.rate_a")
        check_non_negative(policy.rate_b, "tax.rate_b")
    elif isinstance(policy, CustomRate):
        check_non_negative(policy.rate, "tax.rate")
