import json

import pytest

from posdesk.services.profit import estimate_profit, line_profit
from posdesk.services.records import InvoiceRecord, LineItem


def _invoice(lines, **extra):
    invoice = {"id": 1, "total": 0, "productsData": json.dumps(lines)}
    invoice.update(extra)
    return invoice


def test_precomputed_profit_is_used_verbatim():
    invoice = _invoice(
        [
            {"productId": 1, "profit": 12.5, "price": 100, "purchasePrice": 1, "quantity": 3},
            {"productId": 2, "profit": "7.5", "price": 10},
        ]
    )
    assert estimate_profit(invoice) == pytest.approx(20.0)


def test_profit_from_purchase_and_selling_price():
    invoice = _invoice(
        [
            {"productId": 1, "sellingPrice": 50, "purchasePrice": 30, "quantity": 2},
            {"productId": 2, "sellingPrice": 15, "purchasePrice": 10, "quantity": 4},
        ]
    )
    assert estimate_profit(invoice) == pytest.approx(40 + 20)


def test_price_alias_is_accepted_for_selling_price():
    invoice = _invoice([{"productId": 1, "price": 50, "purchasePrice": 30, "quantity": 2}])
    assert estimate_profit(invoice) == pytest.approx(40)


def test_selling_price_takes_precedence_over_price():
    invoice = _invoice([{"productId": 1, "sellingPrice": 60, "price": 50, "purchasePrice": 30, "quantity": 1}])
    assert estimate_profit(invoice) == pytest.approx(30)


def test_margin_estimate_without_cost_data():
    invoice = _invoice(
        [
            {"productId": 1, "price": 100, "quantity": 2},
            {"productId": 2, "sellingPrice": 10, "quantity": 5},
        ]
    )
    assert estimate_profit(invoice) == pytest.approx((200 + 50) * 0.3)


def test_quantity_defaults_to_one():
    invoice = _invoice(
        [
            {"productId": 1, "price": 50, "purchasePrice": 30},
            {"productId": 2, "price": 10, "quantity": "abc"},
            {"productId": 3, "price": 10, "purchasePrice": 4, "quantity": 0},
        ]
    )
    assert estimate_profit(invoice) == pytest.approx(20 + 3 + 6)


def test_null_profit_falls_through_to_cost_data():
    invoice = _invoice([{"productId": 1, "profit": None, "price": 50, "purchasePrice": 30, "quantity": 1}])
    assert estimate_profit(invoice) == pytest.approx(20)


def test_purchase_price_without_selling_price_uses_margin():
    invoice = _invoice([{"productId": 1, "purchasePrice": 30, "quantity": 2}])
    assert estimate_profit(invoice) == 0


def test_missing_products_data_uses_total_margin():
    assert estimate_profit({"id": 9, "total": 1000}) == pytest.approx(300)
    assert estimate_profit({"id": 9, "total": 1000, "productsData": ""}) == pytest.approx(300)


def test_malformed_products_data_uses_total_margin():
    invoice = {"id": 3, "total": 250, "productsData": "not-json{"}
    assert estimate_profit(invoice) == pytest.approx(75)


def test_products_data_that_is_not_a_list_contributes_nothing():
    invoice = {"id": 4, "total": 250, "productsData": '{"productId": 1, "price": 10}'}
    assert estimate_profit(invoice) == 0


def test_missing_total_without_products_data_is_zero():
    assert estimate_profit({"id": 5}) == 0


def test_nan_profit_is_coerced_to_zero():
    invoice = _invoice(
        [
            {"productId": 1, "profit": "n/a"},
            {"productId": 2, "price": 50, "purchasePrice": 30, "quantity": 1},
        ]
    )
    assert estimate_profit(invoice) == 0


def test_report_label_does_not_change_result():
    invoice = _invoice([{"productId": 1, "price": 80, "purchasePrice": 50, "quantity": 3}])
    assert estimate_profit(invoice, "daily") == estimate_profit(invoice, "detailed") == pytest.approx(90)


def test_accepts_normalized_records_and_snake_case_keys():
    raw = {
        "id": 7,
        "total": 100,
        "products_data": json.dumps([{"product_id": 1, "selling_price": 25, "purchase_price": 20, "quantity": 4}]),
    }
    assert estimate_profit(InvoiceRecord.from_raw(raw)) == pytest.approx(20)
    assert estimate_profit(raw) == pytest.approx(20)


def test_line_profit_ladder_order():
    stored = LineItem.from_raw({"profit": 5, "price": 100, "purchasePrice": 10, "quantity": 2})
    derived = LineItem.from_raw({"price": 100, "purchasePrice": 10, "quantity": 2})
    estimated = LineItem.from_raw({"price": 100, "quantity": 2})

    assert line_profit(stored) == 5
    assert line_profit(derived) == pytest.approx(180)
    assert line_profit(estimated) == pytest.approx(60)


def test_non_object_line_items_use_total_margin():
    assert estimate_profit({"id": 1, "total": 1000, "productsData": "[null]"}) == pytest.approx(300)

    mixed = _invoice([{"productId": 1, "price": 50, "purchasePrice": 30, "quantity": 1}, 7], total=200)
    assert estimate_profit(mixed) == pytest.approx(60)
