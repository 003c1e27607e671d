"""Per-line tax computation."""

from __future__ import annotations

from typing import Sequence

from .models import LineTaxResult, OrderLineInput, RateTax, TaxRateRule
from .rounding import RoundingMode, divide_rounded

BPS_SCALE = 10000


def compute_tax(amount: int, rate_bps: int, prices_include_tax: bool, mode: RoundingMode) -> int:
    """
    Tax on an amount in minor units for a single rate.

    Inclusive pricing extracts the tax already contained in ``amount``:
    ``amount * r / (10000 + r)``. Exclusive pricing adds it on top:
    ``amount * r / 10000``. The result is rounded once, with ``mode``.

    Args:
        amount: Gross amount in minor units
        rate_bps: Rate in basis points
        prices_include_tax: Whether ``amount`` already contains the tax
        mode: Rounding strategy

    Returns:
        Tax in minor units
    """
    if rate_bps == 0 or amount == 0:
        return 0
    denominator = BPS_SCALE + rate_bps if prices_include_tax else BPS_SCALE
    return divide_rounded(amount * rate_bps, denominator, mode)


def net_of_tax(amount: int, tax: int, prices_include_tax: bool) -> int:
    """Taxable base for an amount once its tax is known."""
    return amount - tax if prices_include_tax else amount


def calculate_line(
    line: OrderLineInput,
    matched: Sequence[TaxRateRule],
    prices_include_tax: bool,
    mode: RoundingMode,
    exempt: bool = False,
    is_delivery: bool = False,
) -> LineTaxResult:
    """
    Compute base and per-rate tax for one line.

    Every matched rate is applied to the same gross; rates never compound.
    """
    gross = line.gross
    if exempt or line.tax_exempt:
        return LineTaxResult(
            line_id=line.line_id,
            name=line.name,
            gross=gross,
            base=gross,
            exempt=True,
            is_delivery=is_delivery,
        )

    taxes = tuple(
        RateTax(
            code=rate.code,
            rate_bps=rate.rate_bps,
            tax=compute_tax(gross, rate.rate_bps, prices_include_tax, mode),
        )
        for rate in matched
    )
    total_tax = sum(t.tax for t in taxes)
    return LineTaxResult(
        line_id=line.line_id,
        name=line.name,
        gross=gross,
        base=net_of_tax(gross, total_tax, prices_include_tax),
        taxes=taxes,
        is_delivery=is_delivery,
    )
