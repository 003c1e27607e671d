"""
Pytest configuration and shared fixtures for ordertax tests.
"""

import sys
from pathlib import Path

import pytest

# Add src to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))


@pytest.fixture
def std_profile():
    """Guatemala-style profile: 12% VAT included in menu prices."""
    return {
        "country": "GT",
        "currency": "GTQ",
        "pricesIncludeTax": True,
        "rounding": "half_up",
        "rates": [{"code": "std", "label": "Standard VAT", "rateBps": 1200, "appliesTo": "all"}],
        "surcharges": [],
        "delivery": {"mode": "out_of_scope", "taxable": False},
    }


@pytest.fixture
def exclusive_profile():
    """12% added on top of prices."""
    return {
        "country": "US",
        "currency": "USD",
        "pricesIncludeTax": False,
        "rounding": "half_up",
        "rates": [{"code": "std", "label": "Sales tax", "rateBps": 1200, "appliesTo": "all"}],
        "surcharges": [],
        "delivery": {"mode": "out_of_scope", "taxable": False},
    }


def make_line(line_id="l1", quantity=1, unit_price=1000, **extra):
    line = {
        "lineId": line_id,
        "quantity": quantity,
        "unitPriceCents": unit_price,
        "addonsCents": 0,
        "optionsDeltaCents": 0,
        "taxExempt": False,
        "name": f"Item {line_id}",
    }
    line.update(extra)
    return line


def make_draft(lines, order_type="dine-in", **extra):
    draft = {
        "currency": "GTQ",
        "orderType": order_type,
        "lines": lines,
        "customer": {},
        "deliveryFeeCents": 0,
        "deliveryAddressInfo": None,
    }
    draft.update(extra)
    return draft
