"""Document totals: pure functions, zero external dependencies.

Only stdlib and domain imports allowed.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import ROUND_HALF_UP, Decimal

from domain.models import (
    ZERO,
    CustomRate,
    FinancialDocument,
    FixedDualRate,
    TaxDisabled,
    TaxPolicy,
    TaxSettings,
    Totals,
)
from domain.money import round_money, to_decimal

_HUNDRED = Decimal("100")
_TWO_HUNDRED = Decimal("200")
_RATE_QUANTA = (Decimal("1"), Decimal("0.1"), Decimal("0.01"))


def subtotal_of(lines) -> Decimal:
    """Sum ``quantity * unit_price`` over *lines*, unrounded.

    Each term is computed from the raw inputs; a stored line total is
    never trusted.
    """
    return sum(
        (to_decimal(line.quantity) * to_decimal(line.unit_price) for line in lines),
        ZERO,
    )


def charges_of(charges) -> Decimal:
    return sum((to_decimal(c.amount) for c in charges), ZERO)


def compute_totals(lines, charges=(), tax_policy: TaxPolicy = TaxDisabled()) -> Totals:
    """Derive subtotal, both tax components and the grand total.

    Each tax component is rounded to cents on its own; the total is the
    rounded sum of base and the two rounded components.
    """
    subtotal = subtotal_of(lines)
    base = subtotal + charges_of(charges)

    if isinstance(tax_policy, FixedDualRate):
        tax_a = round_money(base * to_decimal(tax_policy.rate_a) / _HUNDRED)
        tax_b = round_money(base * to_decimal(tax_policy.rate_b) / _HUNDRED)
    elif isinstance(tax_policy, CustomRate):
        tax_a = tax_b = round_money(base * to_decimal(tax_policy.rate) / _TWO_HUNDRED)
    else:
        tax_a = tax_b = round_money(ZERO)

    return Totals(
        subtotal=round_money(subtotal),
        tax_a=tax_a,
        tax_b=tax_b,
        total=round_money(base + tax_a + tax_b),
    )


def resolve_tax_policy(
    apply_tax: bool = True,
    custom_rate=None,
    settings: TaxSettings | None = None,
) -> TaxPolicy:
    """Pick the tax policy for a document once, at the call site.

    A custom rate wins over the business-wide settings; disabled
    settings without a custom rate mean no tax.
    """
    if not apply_tax:
        return TaxDisabled()
    if custom_rate is not None:
        return CustomRate(to_decimal(custom_rate))
    settings = settings or TaxSettings()
    if not settings.enabled:
        return TaxDisabled()
    return FixedDualRate(to_decimal(settings.rate_a), to_decimal(settings.rate_b))


def with_totals(document: FinancialDocument, tax_policy: TaxPolicy) -> FinancialDocument:
    """Return a copy of *document* with all four totals recomputed."""
    totals = compute_totals(document.lines, document.charges, tax_policy)
    return replace(
        document,
        subtotal=totals.subtotal,
        tax_a=totals.tax_a,
        tax_b=totals.tax_b,
        total=totals.total,
    )


def _snap_rate(exact: Decimal, base: Decimal, tax: Decimal, divisor: Decimal) -> Decimal:
    """Coarsest rate near *exact* that still reproduces the rounded *tax*."""
    for quantum in _RATE_QUANTA:
        rate = exact.quantize(quantum, rounding=ROUND_HALF_UP)
        if round_money(base * rate / divisor) == tax:
            return rate
    return exact


def infer_tax_policy(totals: Totals) -> TaxPolicy:
    """Best-effort policy for a stored document whose mode is unknown.

    Stored documents only keep the rounded tax amounts. The effective
    rate is recovered from them and snapped to the coarsest whole or
    decimal rate that still reproduces them, so a rate typed as 12 comes
    back as 12. On very small bases several rates round to the same
    cents and the coarsest one wins; that rate can then differ from the
    one originally entered once the lines grow.
    """
    base = totals.total - totals.tax_a - totals.tax_b
    if totals.tax_a == 0 and totals.tax_b == 0:
        return TaxDisabled()
    if base == 0:
        return TaxDisabled()
    if totals.tax_a == totals.tax_b:
        exact = (totals.tax_a + totals.tax_b) * _HUNDRED / base
        return CustomRate(_snap_rate(exact, base, totals.tax_a, _TWO_HUNDRED))
    return FixedDualRate(
        _snap_rate(totals.tax_a * _HUNDRED / base, base, totals.tax_a, _HUNDRED),
        _snap_rate(totals.tax_b * _HUNDRED / base, base, totals.tax_b, _HUNDRED),
    )
