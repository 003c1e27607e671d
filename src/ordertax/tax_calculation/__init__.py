"""Tax calculation module entry point."""

from .engine import calculate_tax_snapshot
from .exceptions import InvalidInputError, ProfileNotFoundError, TaxEngineError
from .models import OrderDraft, OrderLineInput, TaxProfile
from .profile import resolve_effective_profile
from .reports import ReportFilters, build_report
from .repository import InvoiceCounterRepository, OrderRepository, TaxProfileRepository
from .rounding import RoundingMode
from .snapshot import TaxSnapshot

__all__ = [
    "calculate_tax_snapshot",
    "resolve_effective_profile",
    "build_report",
    "ReportFilters",
    "OrderDraft",
    "OrderLineInput",
    "TaxProfile",
    "TaxSnapshot",
    "RoundingMode",
    "TaxEngineError",
    "InvalidInputError",
    "ProfileNotFoundError",
    "TaxProfileRepository",
    "OrderRepository",
    "InvoiceCounterRepository",
]
