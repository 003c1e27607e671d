"""Aggregate line and surcharge results into the persisted TaxSnapshot."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .models import (
    Customer,
    EffectiveProfile,
    LineTaxResult,
    RateSummary,
    SurchargeResult,
    TaxTotals,
    as_list,
)


@dataclass(frozen=True)
class TaxSnapshot:
    """
    Immutable audit record of one tax calculation for one order.

    Created once at checkout and persisted verbatim through ``to_dict``.
    Corrections go through a new order or a credit note, never an edit.
    """

    currency: str
    totals: TaxTotals
    summary_by_rate: Tuple[RateSummary, ...]
    surcharges: Tuple[SurchargeResult, ...]
    customer: Customer
    lines: Tuple[LineTaxResult, ...] = ()
    exempt_base: int = 0
    zero_rated_base: int = 0
    jurisdiction_applied: Optional[str] = None
    prices_include_tax: bool = False
    rounding: str = "half_up"
    order_type: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Persisted shape; field names are consumed by receipts and reports."""
        return {
            "currency": self.currency,
            "totals": self.totals.to_dict(),
            "summaryByRate": as_list(self.summary_by_rate),
            "surcharges": as_list(self.surcharges),
            "customer": {"taxId": self.customer.tax_id, "name": self.customer.name},
            "summaryExempt": {"baseCents": self.exempt_base},
            "summaryZeroRated": {"baseCents": self.zero_rated_base},
            "jurisdictionApplied": self.jurisdiction_applied,
            "pricesIncludeTax": self.prices_include_tax,
            "rounding": self.rounding,
            "orderType": self.order_type,
            "lines": as_list(self.lines),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)


def summarize_by_rate(
    profile: EffectiveProfile,
    lines: Sequence[LineTaxResult],
    surcharges: Sequence[SurchargeResult],
) -> List[RateSummary]:
    """Group line and surcharge tax per rate code, in rate declaration order."""
    bases: Dict[str, int] = {}
    taxes: Dict[str, int] = {}
    for line in lines:
        for rate_tax in line.taxes:
            bases[rate_tax.code] = bases.get(rate_tax.code, 0) + line.base
            taxes[rate_tax.code] = taxes.get(rate_tax.code, 0) + rate_tax.tax
    for surcharge in surcharges:
        if surcharge.rate_code is None:
            continue
        bases[surcharge.rate_code] = bases.get(surcharge.rate_code, 0) + surcharge.base
        taxes[surcharge.rate_code] = taxes.get(surcharge.rate_code, 0) + surcharge.tax

    summary: List[RateSummary] = []
    seen = set()
    for rate in profile.rates:
        if rate.code not in taxes or rate.code in seen:
            continue
        seen.add(rate.code)
        summary.append(
            RateSummary(
                code=rate.code,
                rate_bps=rate.rate_bps,
                label=rate.label,
                taxable_base=bases[rate.code],
                tax=taxes[rate.code],
            )
        )
    return summary


def assemble_snapshot(
    currency: str,
    order_type: str,
    customer: Customer,
    profile: EffectiveProfile,
    lines: Sequence[LineTaxResult],
    surcharges: Sequence[SurchargeResult],
) -> TaxSnapshot:
    """
    Build the snapshot from computed lines and surcharges.

    Args:
        currency: Order currency
        order_type: Normalised order type
        customer: Customer echoed on the snapshot
        profile: Effective profile the results were computed with
        lines: Item lines plus the synthetic delivery line, if any
        surcharges: Applied surcharges

    Returns:
        TaxSnapshot
    """
    summary = summarize_by_rate(profile, lines, surcharges)
    sub_total = sum(line.base for line in lines)
    tax = sum(entry.tax for entry in summary)
    surcharge_base = sum(s.base for s in surcharges)

    return TaxSnapshot(
        currency=currency,
        totals=TaxTotals(sub_total=sub_total, tax=tax, grand_total=sub_total + tax + surcharge_base),
        summary_by_rate=tuple(summary),
        surcharges=tuple(surcharges),
        customer=customer,
        lines=tuple(lines),
        exempt_base=sum(line.gross for line in lines if line.exempt),
        zero_rated_base=sum(line.base for line in lines if not line.exempt and line.tax == 0),
        jurisdiction_applied=profile.jurisdiction_applied,
        prices_include_tax=profile.prices_include_tax,
        rounding=profile.rounding.value,
        order_type=order_type,
    )
