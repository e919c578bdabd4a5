import asyncio
import threading
import time
from datetime import datetime
from decimal import Decimal

from posdesk.models.inventory import DamagedItem, Product
from posdesk.services.storage import SqlReportStorage


def test_damaged_items_carry_product_name(db_session):
    product = Product(name="Milk", barcode="900", purchase_price=Decimal("2"), selling_price=Decimal("3"), stock=5)
    db_session.add(product)
    db_session.flush()
    db_session.add(DamagedItem(product_id=product.id, quantity=2, value_loss=Decimal("4"), date=datetime(2024, 1, 1)))
    db_session.commit()

    rows = asyncio.run(SqlReportStorage(db_session).get_all_damaged_items())

    assert len(rows) == 1
    assert rows[0]["productName"] == "Milk"
    assert rows[0]["valueLoss"] == Decimal("4")


def test_queries_run_in_worker_threads_one_at_a_time(db_session):
    seen_threads = []
    active = 0
    most_active = 0
    guard = threading.Lock()

    class RecordingStorage(SqlReportStorage):
        def _track(self, query):
            nonlocal active, most_active
            with guard:
                seen_threads.append(threading.get_ident())
                active += 1
                most_active = max(most_active, active)
            time.sleep(0.01)
            try:
                return query()
            finally:
                with guard:
                    active -= 1

        def _invoices(self):
            return self._track(super()._invoices)

        def _products(self):
            return self._track(super()._products)

        def _damaged_items(self):
            return self._track(super()._damaged_items)

        def _expenses(self):
            return self._track(super()._expenses)

    async def scenario():
        storage = RecordingStorage(db_session)
        results = await asyncio.gather(
            storage.get_all_invoices(),
            storage.get_all_products(),
            storage.get_all_damaged_items(),
            storage.get_all_expenses(),
        )
        return threading.get_ident(), results

    loop_thread, results = asyncio.run(scenario())

    assert results == [[], [], [], []]
    assert len(seen_threads) == 4
    assert loop_thread not in seen_threads
    assert most_active == 1
