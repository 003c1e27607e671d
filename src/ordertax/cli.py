"""
Command-line interface for the ordertax engine.
"""

import argparse
import json
import sys
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Optional

from . import __version__
from .tax_calculation.engine import calculate_tax_snapshot
from .tax_calculation.models import TaxProfile
from .tax_calculation.reports import REPORT_TYPES, ReportFilters, build_report
from .tax_calculation.invoicing import issue_invoice_number
from .tax_calculation.repository import (
    InvoiceCounterRepository,
    OrderRepository,
    TaxProfileRepository,
)
from .utils.config import Config
from .utils.logging import setup_logging


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="ordertax",
        description="ordertax - Restaurant order tax snapshot engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  ordertax calculate --draft draft.json --profile profile.json
  ordertax calculate --draft draft.json --active-profile
  ordertax report --type vatbook --start 2026-01-01 --end 2026-01-31
  ordertax report --type b2b --orders orders.json --b2b-only
  ordertax issue-invoice --order-id 8f2c1a
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"ordertax {__version__}",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--log-file",
        help="Log file path",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Environment file with MongoDB settings (default: .env)",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        help="Available commands",
    )

    calc_parser = subparsers.add_parser(
        "calculate",
        help="Compute the tax snapshot of an order draft",
    )
    calc_parser.add_argument(
        "--draft",
        required=True,
        help="JSON file with the order draft",
    )
    source = calc_parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--profile",
        help="JSON file with the tax profile",
    )
    source.add_argument(
        "--active-profile",
        action="store_true",
        help="Read the active tax profile from MongoDB",
    )

    report_parser = subparsers.add_parser(
        "report",
        help="Aggregate persisted tax snapshots into a report",
    )
    report_parser.add_argument(
        "--type",
        dest="report_type",
        choices=REPORT_TYPES,
        default="summary",
        help="Report type (default: summary)",
    )
    report_parser.add_argument(
        "--orders",
        help="JSON file with order documents (default: read closed orders from MongoDB)",
    )
    report_parser.add_argument("--start", type=date.fromisoformat, help="First day (YYYY-MM-DD)")
    report_parser.add_argument("--end", type=date.fromisoformat, help="Last day (YYYY-MM-DD)")
    report_parser.add_argument("--jurisdiction", default="", help="Jurisdiction code")
    report_parser.add_argument("--order-type", default="", help="dine-in, pickup or delivery")
    report_parser.add_argument("--rate-code", default="", help="Tax rate code")
    report_parser.add_argument(
        "--b2b-only",
        action="store_true",
        help="Only orders whose customer has a tax id",
    )

    invoice_parser = subparsers.add_parser(
        "issue-invoice",
        help="Issue (or return the existing) B2B invoice number of an order",
    )
    invoice_parser.add_argument(
        "--order-id",
        type=str,
        required=True,
        help="ID of the order to invoice",
    )

    return parser


def _load_json(path: str) -> Any:
    with Path(path).open(encoding="utf-8") as handle:
        return json.load(handle)


def run_calculate(draft_file: str, profile_file: Optional[str], config: Config) -> None:
    """Print the snapshot of one draft as JSON."""
    draft = _load_json(draft_file)
    if profile_file:
        profile = TaxProfile.from_dict(_load_json(profile_file))
    else:
        with TaxProfileRepository(config=config) as repo:
            profile = repo.get_active_profile()

    snapshot = calculate_tax_snapshot(draft, profile)
    print(json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False))


def run_report(parsed_args: argparse.Namespace, config: Config) -> None:
    """Print report rows as JSON."""
    if parsed_args.orders:
        orders = _load_json(parsed_args.orders)
    else:
        with OrderRepository(config=config) as repo:
            orders = repo.find_closed_orders(
                start=parsed_args.start,
                end=parsed_args.end,
                order_type=parsed_args.order_type or None,
            )

    filters = ReportFilters(
        jurisdiction=parsed_args.jurisdiction,
        order_type=parsed_args.order_type,
        rate_code=parsed_args.rate_code,
        b2b_only=parsed_args.b2b_only,
    )
    rows = build_report(parsed_args.report_type, orders, filters)
    print(json.dumps(rows, indent=2, ensure_ascii=False, default=str))


def run_issue_invoice(order_id: str, config: Config) -> None:
    """Print the order's invoice number as JSON."""
    with TaxProfileRepository(config=config) as profiles:
        numbering = profiles.get_active_profile().b2b.invoice_numbering
    if not numbering.enabled:
        raise ValueError("Invoice numbering is disabled in the active tax profile")

    with OrderRepository(config=config) as orders, InvoiceCounterRepository(config=config) as counters:
        invoice_number = issue_invoice_number(
            numbering, order_id, orders, counters, datetime.now(timezone.utc)
        )
    print(json.dumps({"orderId": order_id, "invoiceNumber": invoice_number}, indent=2))


def main(args: Optional[list] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        args: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    log_level = "DEBUG" if parsed_args.verbose else "INFO"
    logger = setup_logging(level=log_level, log_file=parsed_args.log_file)

    if not parsed_args.command:
        parser.print_help()
        return 1

    config = Config(parsed_args.env_file)
    try:
        if parsed_args.command == "calculate":
            run_calculate(parsed_args.draft, parsed_args.profile, config)
        elif parsed_args.command == "report":
            run_report(parsed_args, config)
        elif parsed_args.command == "issue-invoice":
            run_issue_invoice(parsed_args.order_id, config)
    except Exception as e:
        logger.error(f"Error: {e}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
