"""
ordertax - Restaurant order tax snapshot engine

Computes per-line and aggregate tax, surcharges and an immutable audit
snapshot for restaurant orders under multi-jurisdiction tax profiles.
"""

__version__ = "0.1.0"

from . import tax_calculation
from . import utils
from .tax_calculation import calculate_tax_snapshot

__all__ = ["tax_calculation", "utils", "calculate_tax_snapshot"]
