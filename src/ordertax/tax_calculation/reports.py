"""Tax reports aggregated from persisted order snapshots.

Three report types are built from closed orders:

- ``summary``: per jurisdiction, order type and rate, with service charge
  and zero-rated/exempt columns
- ``vatbook``: per jurisdiction and rate, with ``ZERO``/``EXEMPT`` rows
- ``b2b``: one row per order issued to a customer with a tax id
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple

from ..utils.logging import get_logger
from .models import normalize_order_type

logger = get_logger(__name__)

REPORT_TYPES = ("summary", "vatbook", "b2b")
ZERO_ROW = "ZERO"
EXEMPT_ROW = "EXEMPT"


@dataclass
class ReportFilters:
    jurisdiction: str = ""
    order_type: str = ""
    rate_code: str = ""
    b2b_only: bool = False


def _cents(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _has_tax_id(order: Dict[str, Any]) -> bool:
    tax_id = (order.get("customer") or {}).get("taxId")
    return bool(tax_id and str(tax_id).strip())


def _iso_date(value: Any) -> str:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        return value[:10]
    return ""


def order_matches(order: Dict[str, Any], filters: ReportFilters) -> bool:
    snapshot = order.get("taxSnapshot") or {}
    if filters.jurisdiction:
        applied = (snapshot.get("jurisdictionApplied") or "").lower()
        if applied != filters.jurisdiction.strip().lower():
            return False
    if filters.order_type:
        if normalize_order_type(order.get("orderType")) != normalize_order_type(filters.order_type):
            return False
    if filters.b2b_only and not _has_tax_id(order):
        return False
    if filters.rate_code:
        wanted = filters.rate_code.strip().lower()
        in_rates = any(
            (r.get("code") or "").lower() == wanted for r in snapshot.get("summaryByRate") or []
        )
        in_surcharges = any(
            s.get("taxable") and (s.get("rateCode") or "").lower() == wanted
            for s in snapshot.get("surcharges") or []
        )
        if not in_rates and not in_surcharges:
            return False
    return True


def _summary_row(jurisdiction, order_type, code, rate_bps, currency) -> Dict[str, Any]:
    return {
        "jurisdictionApplied": jurisdiction,
        "orderType": order_type,
        "rateCode": code,
        "rateBps": rate_bps,
        "taxableBaseCents": 0,
        "taxCents": 0,
        "zeroRatedBaseCents": 0,
        "exemptBaseCents": 0,
        "serviceBaseCents": 0,
        "serviceTaxCents": 0,
        "currency": currency,
    }


def _vat_row(jurisdiction, code, rate_bps, currency) -> Dict[str, Any]:
    return {
        "jurisdictionApplied": jurisdiction,
        "rateCode": code,
        "rateBps": rate_bps,
        "taxableBaseCents": 0,
        "taxCents": 0,
        "zeroRatedBaseCents": 0,
        "exemptBaseCents": 0,
        "currency": currency,
    }


class TaxReportBuilder:
    """Accumulates summary, VAT book and B2B rows over a set of orders."""

    def __init__(self) -> None:
        self.summary: Dict[Tuple, Dict[str, Any]] = {}
        self.vatbook: Dict[Tuple, Dict[str, Any]] = {}
        self.b2b: List[Dict[str, Any]] = []

    def _summary(self, jurisdiction, order_type, code, rate_bps, currency) -> Dict[str, Any]:
        key = (jurisdiction, order_type, code, rate_bps, currency)
        if key not in self.summary:
            self.summary[key] = _summary_row(*key)
        return self.summary[key]

    def _vat(self, jurisdiction, code, rate_bps, currency) -> Dict[str, Any]:
        key = (jurisdiction, code, rate_bps, currency)
        if key not in self.vatbook:
            self.vatbook[key] = _vat_row(*key)
        return self.vatbook[key]

    def add_order(self, order: Dict[str, Any]) -> None:
        snapshot = order.get("taxSnapshot") or {}
        currency = snapshot.get("currency") or "USD"
        jurisdiction = snapshot.get("jurisdictionApplied") or ""
        order_type = normalize_order_type(order.get("orderType"))

        order_base = 0
        order_tax = 0

        for entry in snapshot.get("summaryByRate") or []:
            code = (entry.get("code") or "").strip()
            rate_bps = _cents(entry.get("rateBps"))
            base = _cents(entry.get("taxableBaseCents"))
            tax = _cents(entry.get("taxCents"))

            row = self._summary(jurisdiction, order_type, code, rate_bps, currency)
            row["taxableBaseCents"] += base
            row["taxCents"] += tax

            vat = self._vat(jurisdiction, code, rate_bps, currency)
            vat["taxableBaseCents"] += base
            vat["taxCents"] += tax

            order_base += base
            order_tax += tax

        # summaryByRate already includes taxable surcharges; these columns only
        # break the service share out
        for surcharge in snapshot.get("surcharges") or []:
            if not surcharge.get("taxable"):
                continue
            code = (surcharge.get("rateCode") or "").strip()
            rate_bps = _cents(surcharge.get("rateBps"))
            row = self._summary(jurisdiction, order_type, code, rate_bps, currency)
            row["serviceBaseCents"] += _cents(surcharge.get("baseCents"))
            row["serviceTaxCents"] += _cents(surcharge.get("taxCents"))

        zero_base = _cents((snapshot.get("summaryZeroRated") or {}).get("baseCents"))
        exempt_base = _cents((snapshot.get("summaryExempt") or {}).get("baseCents"))
        if zero_base or exempt_base:
            # one rate-less row per channel so the bases are not repeated per rate
            row = self._summary(jurisdiction, order_type, "", 0, currency)
            row["zeroRatedBaseCents"] += zero_base
            row["exemptBaseCents"] += exempt_base
        if zero_base:
            self._vat(jurisdiction, ZERO_ROW, 0, currency)["zeroRatedBaseCents"] += zero_base
        if exempt_base:
            self._vat(jurisdiction, EXEMPT_ROW, 0, currency)["exemptBaseCents"] += exempt_base

        if _has_tax_id(order):
            customer = order.get("customer") or {}
            self.b2b.append(
                {
                    "date": _iso_date(order.get("closedAt") or order.get("createdAt")),
                    "orderId": str(order.get("id") or order.get("_id") or ""),
                    "invoiceNumber": str(order.get("invoiceNumber") or ""),
                    "customerName": str(customer.get("name") or ""),
                    "customerTaxId": str(customer.get("taxId") or ""),
                    "jurisdictionApplied": jurisdiction,
                    "orderType": order_type,
                    "taxableBaseCents": order_base,
                    "taxCents": order_tax,
                    "totalCents": _cents(order.get("totalCents")),
                    "currency": currency,
                }
            )

    def summary_rows(self) -> List[Dict[str, Any]]:
        return sorted(
            self.summary.values(),
            key=lambda r: (r["jurisdictionApplied"], r["orderType"], r["rateCode"], r["rateBps"]),
        )

    def vatbook_rows(self) -> List[Dict[str, Any]]:
        return sorted(
            self.vatbook.values(),
            key=lambda r: (r["jurisdictionApplied"], r["rateCode"], r["rateBps"]),
        )

    def b2b_rows(self) -> List[Dict[str, Any]]:
        return sorted(self.b2b, key=lambda r: (r["date"], r["orderId"]))


def build_report(
    report_type: str,
    orders: Iterable[Dict[str, Any]],
    filters: Optional[ReportFilters] = None,
) -> List[Dict[str, Any]]:
    """
    Build one tax report over persisted orders.

    Args:
        report_type: "summary", "vatbook" or "b2b"
        orders: Order documents carrying a ``taxSnapshot``
        filters: Optional in-memory filters

    Returns:
        Sorted report rows

    Raises:
        ValueError: for an unknown report type
    """
    if report_type not in REPORT_TYPES:
        raise ValueError(f"Unknown report type: {report_type}")
    filters = filters or ReportFilters()

    builder = TaxReportBuilder()
    count = 0
    for order in orders:
        if order_matches(order, filters):
            builder.add_order(order)
            count += 1
    logger.debug(f"Built {report_type} report over {count} order(s)")

    if report_type == "summary":
        return builder.summary_rows()
    if report_type == "vatbook":
        return builder.vatbook_rows()
    return builder.b2b_rows()
