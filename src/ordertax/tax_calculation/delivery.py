"""Fold the delivery fee into the taxed line set."""

from __future__ import annotations

from typing import Optional

from .lines import calculate_line
from .models import EffectiveProfile, LineTaxResult, OrderDraft, OrderLineInput

DELIVERY_LINE_ID = "delivery"
DELIVERY_LINE_NAME = "Delivery"


def delivery_line(
    draft: OrderDraft, profile: EffectiveProfile, force_exempt: bool = False
) -> Optional[LineTaxResult]:
    """
    Build the synthetic delivery line, or None when the fee stays outside.

    Only the rate named by the policy's ``tax_code`` applies; category and
    tag filters are bypassed. With ``out_of_scope`` the caller adds the fee
    to the payable total itself.
    """
    policy = profile.delivery
    if not policy.as_line or not draft.is_delivery or draft.delivery_fee == 0:
        return None

    line = OrderLineInput(
        line_id=DELIVERY_LINE_ID,
        quantity=1,
        line_total=draft.delivery_fee,
        tax_exempt=not policy.taxable,
        name=DELIVERY_LINE_NAME,
    )
    rate = profile.rate_by_code(policy.tax_code)
    return calculate_line(
        line,
        [rate] if rate is not None else [],
        profile.prices_include_tax,
        profile.rounding,
        exempt=force_exempt,
        is_delivery=True,
    )
