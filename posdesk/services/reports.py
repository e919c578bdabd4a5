import asyncio
import calendar
import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any, Iterable, Sequence

from posdesk.core.config import settings
from posdesk.schemas.report import (
    ChartBucket,
    DateRange,
    DetailedReportEntry,
    ReportOptions,
    ReportResult,
    ReportSummary,
    TopProduct,
)
from posdesk.services.profit import estimate_profit, line_profit
from posdesk.services.records import (
    DamagedItemRecord,
    ExpenseRecord,
    InvoiceRecord,
    LineItemsStatus,
    ProductRecord,
    parse_timestamp,
)
from posdesk.services.storage import ReportStorage

logger = logging.getLogger(__name__)

TOP_PRODUCTS_LIMIT = 5
DAY_END = time(23, 59, 59, 999000)

WEEKDAY_NAMES = {
    "en": ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"),
    "ar": ("الأحد", "الإثنين", "الثلاثاء", "الأربعاء", "الخميس", "الجمعة", "السبت"),
}
MONTH_NAMES = {
    "en": (
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ),
    "ar": (
        "يناير", "فبراير", "مارس", "أبريل", "مايو", "يونيو",
        "يوليو", "أغسطس", "سبتمبر", "أكتوبر", "نوفمبر", "ديسمبر",
    ),
}


class ReportWindowError(ValueError):
    pass


@dataclass(frozen=True)
class ReportWindow:
    start: datetime
    end: datetime

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


def _day_window(first: date, last: date) -> ReportWindow:
    return ReportWindow(datetime.combine(first, time()), datetime.combine(last, DAY_END))


def _parse_day(value: str, label: str) -> date:
    moment = parse_timestamp(value)
    if moment is None:
        raise ReportWindowError(f"Invalid {label}: {value!r}")
    return moment.date()


def _parse_year_month(value: str) -> tuple[int, int]:
    try:
        year_text, month_text = value.split("-")[:2]
        year, month = int(year_text), int(month_text)
    except ValueError as exc:
        raise ReportWindowError(f"Invalid month: {value!r}") from exc
    if not 1 <= month <= 12 or year < 1:
        raise ReportWindowError(f"Invalid month: {value!r}")
    return year, month


def _parse_year(value: str) -> int:
    try:
        year = int(value.split("-")[0])
    except ValueError as exc:
        raise ReportWindowError(f"Invalid year: {value!r}") from exc
    if year < 1:
        raise ReportWindowError(f"Invalid year: {value!r}")
    return year


def resolve_window(
    report_type: str,
    anchor: str | None = None,
    date_range: DateRange | None = None,
) -> ReportWindow | None:
    """
    Turn the report options into an inclusive ``[start, end]`` window.

    An explicit date range wins over the anchor. Without either, ``None`` is
    returned and no record is filtered out by date.
    """
    if date_range is not None and date_range.start_date and date_range.end_date:
        return _day_window(
            _parse_day(date_range.start_date, "start date"),
            _parse_day(date_range.end_date, "end date"),
        )
    if not anchor:
        return None

    if report_type in ("daily", "weekly"):
        # weekly only changes the bucketing, its window is the anchor day
        day = _parse_day(anchor, "day")
        return _day_window(day, day)
    if report_type == "monthly":
        year, month = _parse_year_month(anchor)
        last_day = calendar.monthrange(year, month)[1]
        return _day_window(date(year, month, 1), date(year, month, last_day))
    if report_type == "yearly":
        year = _parse_year(anchor)
        return _day_window(date(year, 1, 1), date(year, 12, 31))
    raise ReportWindowError(f"Invalid report type: {report_type!r}")


def previous_anchor(report_type: str, anchor: str) -> str:
    """Anchor of the period immediately before the one ``anchor`` selects."""
    if report_type in ("daily", "weekly"):
        return (_parse_day(anchor, "day") - timedelta(days=1)).isoformat()
    if report_type == "monthly":
        year, month = _parse_year_month(anchor)
        if month == 1:
            return f"{year - 1}-12"
        return f"{year}-{month - 1:02d}"
    if report_type == "yearly":
        return str(_parse_year(anchor) - 1)
    raise ReportWindowError(f"Invalid report type: {report_type!r}")


def _within(moment: datetime | None, window: ReportWindow | None) -> bool:
    if moment is None:
        return False
    return window is None or window.contains(moment)


def filter_invoices(invoices: Iterable[InvoiceRecord], window: ReportWindow | None) -> list[InvoiceRecord]:
    return [invoice for invoice in invoices if not invoice.is_deleted and _within(invoice.date, window)]


def filter_dated(records: Iterable[Any], window: ReportWindow | None) -> list[Any]:
    return [record for record in records if _within(record.date, window)]


def _bucket_names(report_type: str, window: ReportWindow | None, locale: str) -> list[str]:
    if report_type == "daily":
        return [f"{hour}:00" for hour in range(24)]
    if report_type == "weekly":
        return list(WEEKDAY_NAMES.get(locale, WEEKDAY_NAMES["en"]))
    if report_type == "monthly":
        days_in_month = window.end.day if window is not None else 31
        return [str(day) for day in range(1, days_in_month + 1)]
    if report_type == "yearly":
        return list(MONTH_NAMES.get(locale, MONTH_NAMES["en"]))
    return []


def _bucket_index(report_type: str, moment: datetime) -> int:
    if report_type == "daily":
        return moment.hour
    if report_type == "weekly":
        return (moment.weekday() + 1) % 7
    if report_type == "monthly":
        return moment.day - 1
    return moment.month - 1


def build_chart_data(
    report_type: str,
    invoices: Sequence[InvoiceRecord],
    profits: Sequence[float],
    window: ReportWindow | None,
    locale: str = "en",
) -> list[ChartBucket]:
    buckets = [ChartBucket(name=name) for name in _bucket_names(report_type, window, locale)]
    for invoice, profit in zip(invoices, profits):
        index = _bucket_index(report_type, invoice.date)
        if 0 <= index < len(buckets):
            buckets[index].revenue += invoice.total
            buckets[index].profit += profit
    return buckets


def _is_product_key(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return False
    return bool(value)


def rank_top_products(
    products: Iterable[ProductRecord],
    invoices: Iterable[InvoiceRecord],
    limit: int = TOP_PRODUCTS_LIMIT,
) -> list[TopProduct]:
    ranking: dict[Any, TopProduct] = {}
    for product in products:
        if _is_product_key(product.id):
            ranking[product.id] = TopProduct(id=product.id, name=product.name or "Unknown product")

    for invoice in invoices:
        if invoice.line_items_status is LineItemsStatus.MALFORMED:
            logger.warning("Skipping unreadable line items of invoice %s in product ranking", invoice.id)
            continue
        for item in invoice.line_items:
            if not _is_product_key(item.product_id):
                continue
            entry = ranking.get(item.product_id)
            if entry is None:
                continue
            entry.sold_quantity += item.quantity
            entry.revenue += (item.selling_price or 0.0) * item.quantity
            entry.profit += line_profit(item)

    sold = [entry for entry in ranking.values() if entry.sold_quantity > 0]
    sold.sort(key=lambda entry: entry.revenue, reverse=True)
    return sold[:limit]


def build_detailed_reports(
    invoices: Sequence[InvoiceRecord],
    profits: Sequence[float],
    damaged_items: Iterable[DamagedItemRecord],
    expenses: Iterable[ExpenseRecord],
) -> list[DetailedReportEntry]:
    ledger: list[tuple[datetime, DetailedReportEntry]] = []

    for invoice, profit in zip(invoices, profits):
        ledger.append(
            (
                invoice.date,
                DetailedReportEntry(
                    id=invoice.id,
                    date=invoice.date.date().isoformat(),
                    type="sale",
                    amount=invoice.total,
                    profit=profit,
                    details=f"Invoice #{invoice.invoice_number}, Payment: {invoice.payment_method}",
                    customer_name=invoice.customer_name or "Unknown customer",
                    payment_status=invoice.payment_status,
                ),
            )
        )

    for item in damaged_items:
        ledger.append(
            (
                item.date,
                DetailedReportEntry(
                    id=item.id,
                    date=item.date.date().isoformat(),
                    type="damage",
                    amount=item.value_loss,
                    details=item.description or "No description",
                    product_name=item.product_name or "Unknown product",
                    quantity=item.quantity,
                ),
            )
        )

    for expense in expenses:
        ledger.append(
            (
                expense.date,
                DetailedReportEntry(
                    id=expense.id,
                    date=expense.date.date().isoformat(),
                    type="expense",
                    amount=expense.amount,
                    details=expense.details or "No description",
                    expense_type=expense.expense_type or "Other expenses",
                ),
            )
        )

    ledger.sort(key=lambda pair: pair[0], reverse=True)
    return [entry for _, entry in ledger]


async def _no_records() -> list:
    return []


async def generate_report(
    storage: ReportStorage,
    options: ReportOptions | None = None,
    locale: str | None = None,
) -> ReportResult:
    """
    Build a sales/profit report over a snapshot of the storage collections.

    Storage failures propagate unchanged; a report is either complete or
    not produced at all.
    """
    options = options or ReportOptions()
    report_type = options.type
    window = resolve_window(report_type, options.date, options.date_range)

    raw_invoices, raw_products, raw_damaged, raw_expenses = await asyncio.gather(
        storage.get_all_invoices(),
        storage.get_all_products() if options.include_top_products else _no_records(),
        storage.get_all_damaged_items() if options.include_damaged_items else _no_records(),
        storage.get_all_expenses() if options.include_expenses else _no_records(),
    )
    logger.info(
        "Building %s report from %d invoices, %d products, %d damaged items, %d expenses",
        report_type,
        len(raw_invoices),
        len(raw_products),
        len(raw_damaged),
        len(raw_expenses),
    )
    if window is not None:
        logger.debug("Report window %s .. %s", window.start.isoformat(), window.end.isoformat())

    invoices = filter_invoices((InvoiceRecord.from_raw(raw) for raw in raw_invoices), window)
    damaged_items = filter_dated((DamagedItemRecord.from_raw(raw) for raw in raw_damaged), window)
    expenses = filter_dated((ExpenseRecord.from_raw(raw) for raw in raw_expenses), window)
    profits = [estimate_profit(invoice, report_type) for invoice in invoices]

    summary = ReportSummary(
        total_sales=sum(invoice.total for invoice in invoices),
        total_profit=sum(profits),
        total_damages=sum(item.value_loss for item in damaged_items),
        sales_count=len(invoices),
    )
    chart_data = build_chart_data(report_type, invoices, profits, window, locale or settings.report_locale)

    top_products: list[TopProduct] = []
    if options.include_top_products:
        top_products = rank_top_products((ProductRecord.from_raw(raw) for raw in raw_products), invoices)

    detailed_reports: list[DetailedReportEntry] = []
    if options.include_detailed_reports:
        detailed_reports = build_detailed_reports(invoices, profits, damaged_items, expenses)

    return ReportResult(
        summary=summary,
        chart_data=chart_data,
        top_products=top_products,
        detailed_reports=detailed_reports,
    )
