"""Tests for integer rounding strategies."""

import pytest

from ordertax.tax_calculation.rounding import (
    RoundingMode,
    divide_rounded,
    round_half_even,
    round_half_up,
)


@pytest.mark.parametrize(
    "numerator,denominator,half_up,half_even",
    [
        (5, 2, 3, 2),
        (7, 2, 4, 4),
        (-5, 2, -3, -2),
        (-7, 2, -4, -4),
        (10, 3, 3, 3),
        (11, 3, 4, 4),
        (0, 7, 0, 0),
        (250, 100, 3, 2),
    ],
)
def test_strategies(numerator, denominator, half_up, half_even):
    assert round_half_up(numerator, denominator) == half_up
    assert round_half_even(numerator, denominator) == half_even


def test_divide_rounded_dispatch():
    assert divide_rounded(25 * 1000, 10000, RoundingMode.HALF_UP) == 3
    assert divide_rounded(25 * 1000, 10000, RoundingMode.HALF_EVEN) == 2


def test_zero_denominator():
    with pytest.raises(ZeroDivisionError):
        divide_rounded(1, 0, RoundingMode.HALF_UP)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("half_even", RoundingMode.HALF_EVEN),
        ("HALF_EVEN ", RoundingMode.HALF_EVEN),
        ("half_up", RoundingMode.HALF_UP),
        (None, RoundingMode.HALF_UP),
        ("bankers", RoundingMode.HALF_UP),
        (RoundingMode.HALF_EVEN, RoundingMode.HALF_EVEN),
    ],
)
def test_parse(value, expected):
    assert RoundingMode.parse(value) is expected
