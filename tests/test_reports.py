"""Tests for tax reports over persisted snapshots."""

from datetime import datetime

import pytest

from conftest import make_draft, make_line
from ordertax.tax_calculation import ReportFilters, build_report, calculate_tax_snapshot


@pytest.fixture
def orders():
    b2b_delivery = {
        "id": "A",
        "orderType": "delivery",
        "createdAt": "2026-01-05T10:00:00Z",
        "customer": {"name": "ACME S.A.", "taxId": "123456-7"},
        "totalCents": 1732,
        "invoiceNumber": "F-A000001",
        "taxSnapshot": {
            "currency": "GTQ",
            "jurisdictionApplied": "zip-01",
            "summaryByRate": [
                {"code": "std", "rateBps": 1200, "taxableBaseCents": 1100, "taxCents": 132}
            ],
            "surcharges": [
                {
                    "code": "service",
                    "taxable": True,
                    "rateCode": "std",
                    "rateBps": 1200,
                    "baseCents": 100,
                    "taxCents": 12,
                }
            ],
            "summaryZeroRated": {"baseCents": 0},
            "summaryExempt": {"baseCents": 500},
        },
    }
    dine_in = {
        "id": "B",
        "orderType": "dine_in",
        "createdAt": datetime(2026, 1, 4, 12, 30),
        "customer": {"name": "Walk-in"},
        "totalCents": 2240,
        "taxSnapshot": {
            "currency": "GTQ",
            "jurisdictionApplied": None,
            "summaryByRate": [
                {"code": "std", "rateBps": 1200, "taxableBaseCents": 2000, "taxCents": 240}
            ],
            "surcharges": [],
        },
    }
    return [b2b_delivery, dine_in]


class TestSummaryReport:

    def test_rows(self, orders):
        rows = build_report("summary", orders)
        keys = [(r["jurisdictionApplied"], r["orderType"], r["rateCode"]) for r in rows]
        assert keys == [
            ("", "dine-in", "std"),
            ("zip-01", "delivery", ""),
            ("zip-01", "delivery", "std"),
        ]
        assert rows[0]["taxCents"] == 240
        assert rows[1]["exemptBaseCents"] == 500
        assert rows[2]["taxableBaseCents"] == 1100
        assert rows[2]["serviceBaseCents"] == 100
        assert rows[2]["serviceTaxCents"] == 12


class TestVatBook:

    def test_rows(self, orders):
        rows = build_report("vatbook", orders)
        keys = [(r["jurisdictionApplied"], r["rateCode"]) for r in rows]
        assert keys == [("", "std"), ("zip-01", "EXEMPT"), ("zip-01", "std")]
        # taxable surcharges are part of their rate entry
        assert rows[2]["taxableBaseCents"] == 1100
        assert rows[2]["taxCents"] == 132
        assert rows[1]["exemptBaseCents"] == 500


class TestB2BRegister:

    def test_only_orders_with_tax_id(self, orders):
        rows = build_report("b2b", orders)
        assert len(rows) == 1
        row = rows[0]
        assert row["orderId"] == "A"
        assert row["date"] == "2026-01-05"
        assert row["customerTaxId"] == "123456-7"
        assert row["invoiceNumber"] == "F-A000001"
        assert row["taxableBaseCents"] == 1100
        assert row["taxCents"] == 132
        assert row["totalCents"] == 1732


class TestFilters:

    def test_jurisdiction_case_insensitive(self, orders):
        rows = build_report("vatbook", orders, ReportFilters(jurisdiction="ZIP-01"))
        assert {r["jurisdictionApplied"] for r in rows} == {"zip-01"}

    def test_order_type(self, orders):
        rows = build_report("summary", orders, ReportFilters(order_type="dine-in"))
        assert [r["orderType"] for r in rows] == ["dine-in"]

    def test_rate_code(self, orders):
        assert len(build_report("summary", orders, ReportFilters(rate_code="STD"))) == 3
        assert build_report("summary", orders, ReportFilters(rate_code="reduced")) == []

    def test_b2b_only(self, orders):
        rows = build_report("summary", orders, ReportFilters(b2b_only=True))
        assert {r["jurisdictionApplied"] for r in rows} == {"zip-01"}


def test_unknown_report_type(orders):
    with pytest.raises(ValueError, match="Unknown report type"):
        build_report("ledger", orders)


def test_report_over_engine_snapshots(exclusive_profile):
    exclusive_profile["surcharges"] = [
        {"code": "service", "percentBps": 1000, "taxable": True, "taxCode": "std"}
    ]
    snap = calculate_tax_snapshot(make_draft([make_line(unit_price=1000)]), exclusive_profile)
    order = {"id": "C", "orderType": "dine-in", "taxSnapshot": snap.to_dict()}

    rows = build_report("vatbook", [order])
    assert rows == [
        {
            "jurisdictionApplied": "",
            "rateCode": "std",
            "rateBps": 1200,
            "taxableBaseCents": 1100,
            "taxCents": 132,
            "zeroRatedBaseCents": 0,
            "exemptBaseCents": 0,
            "currency": "GTQ",
        }
    ]
