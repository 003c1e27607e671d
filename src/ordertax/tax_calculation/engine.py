"""Entry point of the tax engine: order draft + profile -> TaxSnapshot."""

from __future__ import annotations

from typing import Any, Dict, List, Union

from ..utils.logging import get_logger
from .delivery import delivery_line
from .lines import calculate_line
from .matching import match_rates
from .models import LineTaxResult, OrderDraft, TaxProfile
from .profile import resolve_effective_profile
from .snapshot import TaxSnapshot, assemble_snapshot
from .surcharges import calculate_surcharges

logger = get_logger(__name__)

DraftLike = Union[OrderDraft, Dict[str, Any]]
ProfileLike = Union[TaxProfile, Dict[str, Any]]


def calculate_tax_snapshot(draft: DraftLike, profile: ProfileLike) -> TaxSnapshot:
    """
    Compute the tax snapshot for an order.

    Pure and deterministic: no I/O, no shared state, identical input gives
    an identical snapshot. Safe to call from any number of threads.

    Args:
        draft: OrderDraft or its boundary dict
        profile: TaxProfile or its boundary dict

    Returns:
        TaxSnapshot ready to be persisted

    Raises:
        InvalidInputError: if the draft is structurally invalid
    """
    if not isinstance(draft, OrderDraft):
        draft = OrderDraft.from_dict(draft)
    if not isinstance(profile, TaxProfile):
        profile = TaxProfile.from_dict(profile)

    effective = resolve_effective_profile(profile, draft.delivery_address)
    b2b_exempt = effective.b2b.tax_exempt_with_tax_id and draft.customer.has_tax_id

    lines: List[LineTaxResult] = []
    for line in draft.lines:
        matched = [] if b2b_exempt else match_rates(line, effective.rates, draft.order_type)
        lines.append(
            calculate_line(
                line,
                matched,
                effective.prices_include_tax,
                effective.rounding,
                exempt=b2b_exempt,
            )
        )

    surcharges = calculate_surcharges(effective, lines, draft.order_type, allow_tax=not b2b_exempt)

    delivery = delivery_line(draft, effective, force_exempt=b2b_exempt)
    if delivery is not None:
        lines.append(delivery)

    logger.debug(
        f"Calculated {len(lines)} line(s) against {len(effective.rates)} rate(s), "
        f"{len(surcharges)} surcharge(s), b2b_exempt={b2b_exempt}"
    )
    return assemble_snapshot(
        currency=draft.currency or effective.currency,
        order_type=draft.order_type,
        customer=draft.customer,
        profile=effective,
        lines=lines,
        surcharges=surcharges,
    )
