import logging
import math
from typing import Any, Mapping

from posdesk.services.records import InvoiceRecord, LineItem, LineItemsStatus

logger = logging.getLogger(__name__)

# Share of revenue booked as profit when no cost data is available.
FALLBACK_MARGIN = 0.3


def line_profit(item: LineItem) -> float:
    """
    Profit contributed by one line item.

    A stored ``profit`` wins. Otherwise a known purchase price gives
    ``(selling - purchase) * quantity``. Failing both, the line is assumed
    to carry the fallback margin on its revenue.
    """
    if item.profit is not None:
        return item.profit
    if item.purchase_price is not None and item.selling_price is not None:
        return (item.selling_price - item.purchase_price) * item.billed_quantity
    return (item.selling_price or 0.0) * item.billed_quantity * FALLBACK_MARGIN


def estimate_profit(invoice: InvoiceRecord | Mapping[str, Any], report_label: str = "unknown") -> float:
    if not isinstance(invoice, InvoiceRecord):
        invoice = InvoiceRecord.from_raw(invoice)

    status = invoice.line_items_status
    if status is LineItemsStatus.MISSING:
        profit = invoice.total * FALLBACK_MARGIN
        logger.debug(
            "[%s] invoice %s has no line items, estimating %.2f from total",
            report_label,
            invoice.id,
            profit,
        )
    elif status is LineItemsStatus.MALFORMED:
        profit = invoice.total * FALLBACK_MARGIN
        logger.warning(
            "[%s] invoice %s has unreadable line items, estimating %.2f from total",
            report_label,
            invoice.id,
            profit,
        )
    elif status is LineItemsStatus.NOT_A_LIST:
        profit = 0.0
        logger.warning("[%s] line items of invoice %s are not a list", report_label, invoice.id)
    else:
        profit = 0.0
        for item in invoice.line_items:
            contribution = line_profit(item)
            logger.debug(
                "[%s] invoice %s, product %r: profit %s",
                report_label,
                invoice.id,
                item.display_name,
                contribution,
            )
            profit += contribution

    if math.isnan(profit):
        logger.warning("[%s] profit for invoice %s is NaN, using 0", report_label, invoice.id)
        return 0.0
    return profit
