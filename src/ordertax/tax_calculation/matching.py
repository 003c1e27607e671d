"""Decide which tax rate rules apply to an order line."""

from __future__ import annotations

from typing import Iterable, List

from .models import OrderLineInput, TaxRateRule


def rate_matches(rate: TaxRateRule, line: OrderLineInput, order_type: str) -> bool:
    """Filters are conjunctive; unset filters always pass."""
    if rate.applies_to_all:
        return True
    if rate.item_category_in is not None and line.category not in rate.item_category_in:
        return False
    if rate.item_tag_in is not None and not any(tag in rate.item_tag_in for tag in line.tags):
        return False
    if rate.exclude_item_tag_in is not None and any(
        tag in rate.exclude_item_tag_in for tag in line.tags
    ):
        return False
    if rate.order_type_in is not None and order_type not in rate.order_type_in:
        return False
    return True


def match_rates(
    line: OrderLineInput, rates: Iterable[TaxRateRule], order_type: str
) -> List[TaxRateRule]:
    """Return every matching rate in declaration order (exempt lines match none)."""
    if line.tax_exempt:
        return []
    return [rate for rate in rates if rate_matches(rate, line, order_type)]
