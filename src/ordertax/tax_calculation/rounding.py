"""Integer rounding strategies for minor-unit money arithmetic."""

from __future__ import annotations

from enum import Enum
from typing import Any


class RoundingMode(Enum):
    HALF_UP = "half_up"
    HALF_EVEN = "half_even"

    @classmethod
    def parse(cls, value: Any) -> "RoundingMode":
        """Unknown or missing modes fall back to half_up."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for mode in cls:
                if mode.value == value.strip().lower():
                    return mode
        return cls.HALF_UP


def _split(numerator: int, denominator: int):
    """Return (sign, quotient, twice_remainder, |d|) for |n| / |d|."""
    sign = -1 if (numerator < 0) != (denominator < 0) else 1
    quotient, remainder = divmod(abs(numerator), abs(denominator))
    return sign, quotient, remainder * 2, abs(denominator)


def round_half_up(numerator: int, denominator: int) -> int:
    """Divide and round .5 away from zero."""
    sign, quotient, twice_rem, den = _split(numerator, denominator)
    if twice_rem >= den:
        quotient += 1
    return sign * quotient


def round_half_even(numerator: int, denominator: int) -> int:
    """Divide and round .5 to the nearest even integer."""
    sign, quotient, twice_rem, den = _split(numerator, denominator)
    if twice_rem > den or (twice_rem == den and quotient % 2 == 1):
        quotient += 1
    return sign * quotient


_STRATEGIES = {
    RoundingMode.HALF_UP: round_half_up,
    RoundingMode.HALF_EVEN: round_half_even,
}


def divide_rounded(numerator: int, denominator: int, mode: RoundingMode) -> int:
    """
    Exact integer division rounded with the given mode.

    Args:
        numerator: Integer numerator (minor units times basis points)
        denominator: Non-zero integer denominator
        mode: Rounding strategy

    Returns:
        The rounded quotient
    """
    if denominator == 0:
        raise ZeroDivisionError("rounding denominator must be non-zero")
    return _STRATEGIES[mode](numerator, denominator)
