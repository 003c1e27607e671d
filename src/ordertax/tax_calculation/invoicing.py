"""B2B invoice numbering."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from ..utils.logging import get_logger
from .models import InvoiceNumbering

logger = get_logger(__name__)

RESET_NEVER = "never"
RESET_YEARLY = "yearly"
RESET_MONTHLY = "monthly"
RESET_DAILY = "daily"


def invoice_counter_key(numbering: InvoiceNumbering, issued_at: datetime) -> str:
    """Counter bucket; a new bucket restarts the sequence at 1."""
    series = numbering.series or "default"
    if numbering.reset_policy == RESET_YEARLY:
        return f"{series}-{issued_at:%Y}"
    if numbering.reset_policy == RESET_MONTHLY:
        return f"{series}-{issued_at:%Y-%m}"
    if numbering.reset_policy == RESET_DAILY:
        return f"{series}-{issued_at:%Y-%m-%d}"
    return series


def format_invoice_number(numbering: InvoiceNumbering, sequence: int) -> str:
    """e.g. prefix ``F-``, series ``A``, padding 6, sequence 42 -> ``F-A000042``."""
    number = str(sequence).zfill(numbering.padding) if numbering.padding else str(sequence)
    return f"{numbering.prefix}{numbering.series}{number}{numbering.suffix}"


def issue_invoice_number(
    numbering: InvoiceNumbering,
    order_id: str,
    orders,
    counters,
    issued_at: datetime,
) -> Optional[str]:
    """
    Issue the invoice number of an order, once.

    An order that already carries an ``invoiceNumber`` gets it back and no
    counter is consumed. Otherwise the next sequence is drawn and the number
    is written onto the order.

    Args:
        numbering: Invoice numbering configuration of the profile
        order_id: Order to invoice
        orders: Object exposing ``get_order`` and ``set_invoice_number``
            (OrderRepository)
        counters: Object exposing ``next_sequence(key) -> int``
            (InvoiceCounterRepository)
        issued_at: Issue timestamp, selects the reset bucket

    Returns:
        The order's invoice number, or None when numbering is disabled

    Raises:
        ValueError: if the order does not exist
    """
    if not numbering.enabled:
        return None

    order = orders.get_order(order_id)
    if not order:
        raise ValueError(f"Order with ID {order_id} not found")
    if order.get("invoiceNumber"):
        logger.info(f"Order {order_id} already invoiced as {order['invoiceNumber']}")
        return order["invoiceNumber"]

    key = invoice_counter_key(numbering, issued_at)
    sequence = counters.next_sequence(key)
    invoice_number = format_invoice_number(numbering, sequence)

    if not orders.set_invoice_number(order_id, invoice_number, numbering.series or None, issued_at):
        # another issuer got there first; its number stands
        current = orders.get_order(order_id) or {}
        logger.warning(
            f"Order {order_id} was invoiced concurrently, discarding {invoice_number}"
        )
        return current.get("invoiceNumber")

    logger.info(f"Issued invoice number {invoice_number} for order {order_id} from counter {key!r}")
    return invoice_number
