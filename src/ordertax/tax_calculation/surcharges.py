"""Percentage surcharges (service charge and friends) and their tax."""

from __future__ import annotations

from typing import List, Sequence

from .lines import BPS_SCALE, compute_tax, net_of_tax
from .models import EffectiveProfile, LineTaxResult, SurchargeResult, SurchargeRule
from .rounding import divide_rounded


def surcharge_applies(rule: SurchargeRule, order_type: str) -> bool:
    if rule.percent_bps <= 0:
        return False
    if rule.apply_when_order_type_in is not None and order_type not in rule.apply_when_order_type_in:
        return False
    return True


def calculate_surcharges(
    profile: EffectiveProfile,
    lines: Sequence[LineTaxResult],
    order_type: str,
    allow_tax: bool = True,
) -> List[SurchargeResult]:
    """
    Compute every applicable surcharge over the item line bases.

    Args:
        profile: Effective profile (surcharges, rates, pricing, rounding)
        lines: Item line results; exempt lines count towards the base
        order_type: Normalised order type
        allow_tax: False when the order is tax exempt as a whole (B2B)

    Returns:
        One SurchargeResult per applied rule, in declaration order
    """
    eligible_base = sum(line.base for line in lines if not line.is_delivery)
    results: List[SurchargeResult] = []
    for rule in profile.surcharges:
        if not surcharge_applies(rule, order_type):
            continue
        amount = divide_rounded(eligible_base * rule.percent_bps, BPS_SCALE, profile.rounding)
        rate = profile.rate_by_code(rule.tax_code) if rule.taxable and allow_tax else None
        if rate is None:
            results.append(SurchargeResult(code=rule.code, label=rule.label, base=amount))
            continue
        tax = compute_tax(amount, rate.rate_bps, profile.prices_include_tax, profile.rounding)
        results.append(
            SurchargeResult(
                code=rule.code,
                label=rule.label,
                base=net_of_tax(amount, tax, profile.prices_include_tax),
                tax=tax,
                taxable=True,
                rate_code=rate.code,
                rate_bps=rate.rate_bps,
            )
        )
    return results
