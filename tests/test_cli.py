"""
Tests for CLI module.
"""

import json
from unittest.mock import patch

import pytest

from conftest import make_draft, make_line
from ordertax import __version__
from ordertax.cli import main
from ordertax.tax_calculation.models import TaxProfile


@pytest.fixture
def draft_file(tmp_path):
    path = tmp_path / "draft.json"
    path.write_text(json.dumps(make_draft([make_line(quantity=2, unit_price=2500)])))
    return str(path)


@pytest.fixture
def profile_file(tmp_path, std_profile):
    path = tmp_path / "profile.json"
    path.write_text(json.dumps(std_profile))
    return str(path)


class TestCLI:
    """Test cases for CLI main function."""

    def test_cli_help(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--help"])
        assert exc_info.value.code == 0
        assert "Restaurant order tax snapshot engine" in capsys.readouterr().out

    def test_cli_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["--version"])
        assert exc_info.value.code == 0
        assert f"ordertax {__version__}" in capsys.readouterr().out

    def test_cli_no_command(self, capsys):
        assert main([]) == 1
        assert "Available commands" in capsys.readouterr().out

    def test_calculate_from_files(self, capsys, draft_file, profile_file):
        assert main(["calculate", "--draft", draft_file, "--profile", profile_file]) == 0
        snapshot = json.loads(capsys.readouterr().out)
        assert snapshot["totals"] == {
            "subTotalCents": 4464,
            "taxCents": 536,
            "grandTotalCents": 5000,
        }

    @patch("ordertax.cli.TaxProfileRepository")
    def test_calculate_with_active_profile(self, mock_repo, capsys, draft_file, std_profile):
        repo = mock_repo.return_value.__enter__.return_value
        repo.get_active_profile.return_value = TaxProfile.from_dict(std_profile)

        assert main(["calculate", "--draft", draft_file, "--active-profile"]) == 0
        snapshot = json.loads(capsys.readouterr().out)
        assert snapshot["summaryByRate"][0]["taxCents"] == 536

    def test_calculate_invalid_draft(self, tmp_path, profile_file):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps(make_draft([make_line(quantity=-1)])))
        assert main(["calculate", "--draft", str(path), "--profile", profile_file]) == 1

    def test_report_from_file(self, capsys, tmp_path):
        orders = [
            {
                "id": "B",
                "orderType": "pickup",
                "taxSnapshot": {
                    "currency": "GTQ",
                    "summaryByRate": [
                        {"code": "std", "rateBps": 1200, "taxableBaseCents": 500, "taxCents": 60}
                    ],
                },
            }
        ]
        path = tmp_path / "orders.json"
        path.write_text(json.dumps(orders))

        assert main(["report", "--type", "vatbook", "--orders", str(path)]) == 0
        rows = json.loads(capsys.readouterr().out)
        assert rows[0]["rateCode"] == "std"
        assert rows[0]["taxCents"] == 60

    @patch("ordertax.cli.OrderRepository")
    def test_report_from_database(self, mock_repo, capsys):
        repo = mock_repo.return_value.__enter__.return_value
        repo.find_closed_orders.return_value = []

        assert main(["report", "--type", "b2b", "--start", "2026-01-01", "--end", "2026-01-31"]) == 0
        assert json.loads(capsys.readouterr().out) == []
        kwargs = repo.find_closed_orders.call_args.kwargs
        assert kwargs["start"].isoformat() == "2026-01-01"
        assert kwargs["order_type"] is None

    @patch("ordertax.cli.InvoiceCounterRepository")
    @patch("ordertax.cli.OrderRepository")
    @patch("ordertax.cli.TaxProfileRepository")
    def test_issue_invoice(self, mock_profiles, mock_orders, mock_counters, capsys, std_profile):
        std_profile["b2bConfig"] = {
            "invoiceNumbering": {"enabled": True, "series": "A", "padding": 3, "resetPolicy": "daily"}
        }
        profiles = mock_profiles.return_value.__enter__.return_value
        profiles.get_active_profile.return_value = TaxProfile.from_dict(std_profile)
        orders = mock_orders.return_value.__enter__.return_value
        orders.get_order.return_value = {"_id": "o1"}
        orders.set_invoice_number.return_value = True
        counters = mock_counters.return_value.__enter__.return_value
        counters.next_sequence.return_value = 5

        assert main(["issue-invoice", "--order-id", "o1"]) == 0
        assert json.loads(capsys.readouterr().out) == {"orderId": "o1", "invoiceNumber": "A005"}
        assert counters.next_sequence.call_args.args[0].startswith("A-")
        assert orders.set_invoice_number.call_args.args[:3] == ("o1", "A005", "A")

    @patch("ordertax.cli.OrderRepository")
    @patch("ordertax.cli.TaxProfileRepository")
    def test_issue_invoice_numbering_disabled(self, mock_profiles, mock_orders, std_profile):
        profiles = mock_profiles.return_value.__enter__.return_value
        profiles.get_active_profile.return_value = TaxProfile.from_dict(std_profile)

        assert main(["issue-invoice", "--order-id", "o1"]) == 1
        mock_orders.assert_not_called()
