import asyncio
from typing import Any, Callable, Protocol

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import select
from sqlalchemy.orm import Session

from posdesk.models.inventory import DamagedItem, Expense, Product
from posdesk.models.sales import Invoice

RawRecord = dict[str, Any]


class ReportStorage(Protocol):
    async def get_all_invoices(self) -> list[RawRecord]: ...

    async def get_all_products(self) -> list[RawRecord]: ...

    async def get_all_damaged_items(self) -> list[RawRecord]: ...

    async def get_all_expenses(self) -> list[RawRecord]: ...


class SqlReportStorage:
    """Serves report snapshots straight from the relational schema."""

    def __init__(self, db: Session):
        self.db = db
        # the Session is not thread-safe, so worker-thread queries run one at a time
        self._lock = asyncio.Lock()

    async def _run(self, query: Callable[[], list[RawRecord]]) -> list[RawRecord]:
        async with self._lock:
            return await run_in_threadpool(query)

    async def get_all_invoices(self) -> list[RawRecord]:
        return await self._run(self._invoices)

    async def get_all_products(self) -> list[RawRecord]:
        return await self._run(self._products)

    async def get_all_damaged_items(self) -> list[RawRecord]:
        return await self._run(self._damaged_items)

    async def get_all_expenses(self) -> list[RawRecord]:
        return await self._run(self._expenses)

    def _invoices(self) -> list[RawRecord]:
        rows = self.db.scalars(select(Invoice).order_by(Invoice.id.asc())).all()
        return [
            {
                "id": invoice.id,
                "invoiceNumber": invoice.invoice_number,
                "date": invoice.date,
                "total": invoice.total,
                "customerName": invoice.customer_name,
                "paymentMethod": invoice.payment_method,
                "paymentStatus": invoice.payment_status,
                "productsData": invoice.products_data,
                "isDeleted": invoice.is_deleted,
            }
            for invoice in rows
        ]

    def _products(self) -> list[RawRecord]:
        rows = self.db.scalars(select(Product).order_by(Product.id.asc())).all()
        return [
            {
                "id": product.id,
                "name": product.name,
                "barcode": product.barcode,
                "purchasePrice": product.purchase_price,
                "sellingPrice": product.selling_price,
                "stock": product.stock,
            }
            for product in rows
        ]

    def _damaged_items(self) -> list[RawRecord]:
        rows = self.db.execute(
            select(DamagedItem, Product.name)
            .outerjoin(Product, Product.id == DamagedItem.product_id)
            .order_by(DamagedItem.id.asc())
        ).all()
        return [
            {
                "id": item.id,
                "productId": item.product_id,
                "productName": product_name,
                "quantity": item.quantity,
                "description": item.description,
                "date": item.date,
                "valueLoss": item.value_loss,
            }
            for item, product_name in rows
        ]

    def _expenses(self) -> list[RawRecord]:
        rows = self.db.scalars(select(Expense).order_by(Expense.id.asc())).all()
        return [
            {
                "id": expense.id,
                "date": expense.date,
                "amount": expense.amount,
                "details": expense.details,
                "expenseType": expense.expense_type,
            }
            for expense in rows
        ]
