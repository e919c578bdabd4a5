import math
from datetime import date, datetime, timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

from posdesk.services.records import (
    DamagedItemRecord,
    ExpenseRecord,
    InvoiceRecord,
    LineItem,
    LineItemsStatus,
    number_or,
    parse_line_items,
    parse_timestamp,
    to_number,
)


def test_to_number_and_number_or():
    assert to_number("12.5") == 12.5
    assert to_number(Decimal("3.10")) == 3.1
    assert to_number("") == 0
    assert math.isnan(to_number(None))
    assert math.isnan(to_number("abc"))
    assert math.isnan(to_number([1]))

    assert number_or(None, 1) == 1
    assert number_or(0, 1) == 1
    assert number_or("x", 0) == 0
    assert number_or("4", 1) == 4


def test_parse_timestamp_formats():
    assert parse_timestamp("2024-01-01T10:00:00Z") == datetime(2024, 1, 1, 10, 0)
    assert parse_timestamp("2024-01-01T10:00:00") == datetime(2024, 1, 1, 10, 0)
    assert parse_timestamp(date(2024, 3, 5)) == datetime(2024, 3, 5)
    assert parse_timestamp(1704103200000) == datetime(2024, 1, 1, 10, 0)
    assert parse_timestamp(datetime(2024, 1, 1, 10, tzinfo=timezone.utc)) == datetime(2024, 1, 1, 10)


def test_parse_timestamp_shifts_into_zone():
    cairo = ZoneInfo("Africa/Cairo")
    assert parse_timestamp("2024-01-01T22:30:00Z", cairo) == datetime(2024, 1, 2, 0, 30)


def test_parse_timestamp_rejects_garbage():
    for value in (None, "", "yesterday", True, float("nan"), object()):
        assert parse_timestamp(value) is None


def test_parse_line_items_statuses():
    assert parse_line_items(None)[0] is LineItemsStatus.MISSING
    assert parse_line_items("")[0] is LineItemsStatus.MISSING
    assert parse_line_items("not-json{")[0] is LineItemsStatus.MALFORMED
    assert parse_line_items('{"a": 1}')[0] is LineItemsStatus.NOT_A_LIST
    assert parse_line_items("null")[0] is LineItemsStatus.NOT_A_LIST
    assert parse_line_items("[null]")[0] is LineItemsStatus.MALFORMED
    assert parse_line_items([{"productId": 1}, "x"]) == (LineItemsStatus.MALFORMED, ())

    status, items = parse_line_items('[{"productId": 3, "name": "Tea", "price": "4", "quantity": 2}]')
    assert status is LineItemsStatus.PARSED
    assert items[0].product_id == 3
    assert items[0].product_name == "Tea"
    assert items[0].selling_price == 4
    assert items[0].quantity == 2


def test_line_item_optional_fields():
    item = LineItem.from_raw({"productId": 1, "price": 10})
    assert item.profit is None
    assert item.purchase_price is None
    assert item.billed_quantity == 1
    assert item.quantity == 0

    empty = LineItem.from_raw("garbage")
    assert empty.product_id is None
    assert empty.selling_price is None


def test_invoice_record_aliases():
    camel = InvoiceRecord.from_raw(
        {"id": 1, "date": "2024-01-01T10:00:00Z", "total": "99.5", "isDeleted": True, "customerName": "Ali"}
    )
    snake = InvoiceRecord.from_raw(
        {"id": 1, "date": "2024-01-01T10:00:00Z", "total": 99.5, "is_deleted": 1, "customer_name": "Ali"}
    )
    assert camel.total == snake.total == 99.5
    assert camel.is_deleted and snake.is_deleted
    assert camel.customer_name == snake.customer_name == "Ali"
    assert camel.line_items_status is LineItemsStatus.MISSING


def test_damaged_and_expense_records():
    damaged = DamagedItemRecord.from_raw({"id": 2, "valueLoss": "15", "date": "2024-02-01", "quantity": 3})
    expense = ExpenseRecord.from_raw({"id": 3, "amount": 40, "expense_type": "rent", "date": None})
    assert damaged.value_loss == 15
    assert damaged.date == datetime(2024, 2, 1)
    assert expense.expense_type == "rent"
    assert expense.date is None
