"""
Canonical in-memory shapes for the records the reporting engine consumes.

Storage backends hand back loosely-typed mappings (camelCase from the
document store, snake_case from SQL rows). Everything is normalized here,
once, so the aggregation code never has to probe for alternative keys.
"""

import json
import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from decimal import Decimal
from enum import Enum
from functools import lru_cache
from typing import Any, Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from posdesk.core.config import settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=None)
def report_zone(name: str | None = None) -> ZoneInfo | timezone:
    zone_name = name or settings.report_timezone
    try:
        return ZoneInfo(zone_name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown report timezone %r, falling back to UTC", zone_name)
        return timezone.utc


def to_number(value: Any) -> float:
    """Lenient numeric cast. Anything that cannot be read as a number is NaN."""
    if value is None:
        return math.nan
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float, Decimal)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def number_or(value: Any, default: float) -> float:
    # missing, unreadable and zero all resolve to the default
    number = to_number(value)
    if math.isnan(number) or number == 0:
        return default
    return number


def _is_truthy(value: Any) -> bool:
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


def _pick(raw: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return default


def _has_value(raw: Mapping[str, Any], *keys: str) -> bool:
    return any(raw.get(key) is not None for key in keys)


def parse_timestamp(value: Any, zone: ZoneInfo | timezone | None = None) -> datetime | None:
    """
    Read a record timestamp as naive local wall-clock time.

    Accepts datetimes, dates, ISO-8601 strings (``Z`` suffix allowed) and
    epoch milliseconds. Aware values are shifted into ``zone`` (the report
    timezone by default). Returns ``None`` for anything unparseable.
    """
    zone = zone or report_zone()
    parsed: datetime | None = None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time())
    elif isinstance(value, bool):
        return None
    elif isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            return None
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None

    if parsed is None:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(zone).replace(tzinfo=None)
    return parsed


class LineItemsStatus(str, Enum):
    MISSING = "missing"
    MALFORMED = "malformed"
    NOT_A_LIST = "not_a_list"
    PARSED = "parsed"


@dataclass(frozen=True)
class LineItem:
    product_id: Any
    product_name: str | None
    quantity: float
    selling_price: float | None
    purchase_price: float | None
    profit: float | None
    discount: float
    total: float | None

    @property
    def billed_quantity(self) -> float:
        return self.quantity or 1.0

    @property
    def display_name(self) -> str:
        return self.product_name or "Unknown"

    @classmethod
    def from_raw(cls, raw: Any) -> "LineItem":
        if not isinstance(raw, Mapping):
            raw = {}

        selling_raw = next(
            (raw.get(key) for key in ("sellingPrice", "selling_price", "price") if _is_truthy(raw.get(key))),
            None,
        )
        purchase_price = None
        if _has_value(raw, "purchasePrice", "purchase_price"):
            purchase_price = number_or(_pick(raw, "purchasePrice", "purchase_price"), 0.0)
        profit = None
        if _has_value(raw, "profit"):
            profit = to_number(raw["profit"])
        total = None
        if _has_value(raw, "total"):
            total = to_number(raw["total"])

        return cls(
            product_id=_pick(raw, "productId", "product_id"),
            product_name=_pick(raw, "productName", "product_name", "name"),
            quantity=number_or(raw.get("quantity"), 0.0),
            selling_price=to_number(selling_raw) if selling_raw is not None else None,
            purchase_price=purchase_price,
            profit=profit,
            discount=number_or(raw.get("discount"), 0.0),
            total=total,
        )


def parse_line_items(products_data: Any) -> tuple[LineItemsStatus, tuple[LineItem, ...]]:
    if isinstance(products_data, (list, tuple)):
        decoded = products_data
    elif not _is_truthy(products_data):
        return LineItemsStatus.MISSING, ()
    else:
        try:
            decoded = json.loads(products_data)
        except (TypeError, ValueError):
            return LineItemsStatus.MALFORMED, ()
        if not isinstance(decoded, list):
            return LineItemsStatus.NOT_A_LIST, ()

    # every line must be an object
    if not all(isinstance(item, Mapping) for item in decoded):
        return LineItemsStatus.MALFORMED, ()
    return LineItemsStatus.PARSED, tuple(LineItem.from_raw(item) for item in decoded)


@dataclass(frozen=True)
class InvoiceRecord:
    id: Any
    invoice_number: str | None
    date: datetime | None
    total: float
    customer_name: str | None
    payment_method: str | None
    payment_status: str | None
    is_deleted: bool
    line_items_status: LineItemsStatus
    line_items: tuple[LineItem, ...]

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "InvoiceRecord":
        status, items = parse_line_items(_pick(raw, "productsData", "products_data"))
        return cls(
            id=raw.get("id"),
            invoice_number=_pick(raw, "invoiceNumber", "invoice_number"),
            date=parse_timestamp(raw.get("date")),
            total=number_or(raw.get("total"), 0.0),
            customer_name=_pick(raw, "customerName", "customer_name"),
            payment_method=_pick(raw, "paymentMethod", "payment_method"),
            payment_status=_pick(raw, "paymentStatus", "payment_status"),
            is_deleted=_is_truthy(_pick(raw, "isDeleted", "is_deleted", default=False)),
            line_items_status=status,
            line_items=items,
        )


@dataclass(frozen=True)
class DamagedItemRecord:
    id: Any
    product_id: Any
    product_name: str | None
    quantity: float
    description: str | None
    date: datetime | None
    value_loss: float

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "DamagedItemRecord":
        return cls(
            id=raw.get("id"),
            product_id=_pick(raw, "productId", "product_id"),
            product_name=_pick(raw, "productName", "product_name"),
            quantity=number_or(raw.get("quantity"), 0.0),
            description=raw.get("description"),
            date=parse_timestamp(raw.get("date")),
            value_loss=number_or(_pick(raw, "valueLoss", "value_loss"), 0.0),
        )


@dataclass(frozen=True)
class ExpenseRecord:
    id: Any
    date: datetime | None
    amount: float
    details: str | None
    expense_type: str | None

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "ExpenseRecord":
        return cls(
            id=raw.get("id"),
            date=parse_timestamp(raw.get("date")),
            amount=number_or(raw.get("amount"), 0.0),
            details=raw.get("details"),
            expense_type=_pick(raw, "expenseType", "expense_type"),
        )


@dataclass(frozen=True)
class ProductRecord:
    id: Any
    name: str | None

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> "ProductRecord":
        return cls(id=raw.get("id"), name=raw.get("name"))


def to_local_time(value: datetime | None = None) -> datetime:
    """Naive wall-clock time in the report timezone; ``now`` when omitted."""
    return parse_timestamp(value if value is not None else datetime.now(timezone.utc))
