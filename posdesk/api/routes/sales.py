import json
import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from posdesk.db.database import get_db
from posdesk.models.inventory import Product
from posdesk.models.sales import Invoice
from posdesk.schemas.sales import InvoiceCreate, InvoiceLineIn, InvoiceOut
from posdesk.services.records import LineItemsStatus, parse_line_items, to_local_time

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Sales"])


def _quantize_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(Decimal("0.01"))


def _line_total(line: InvoiceLineIn) -> Decimal:
    return _quantize_money(line.price * line.quantity * (1 - line.discount / 100))


def _build_line_item(db: Session, line: InvoiceLineIn) -> dict:
    """
    Snapshot one sold line for the invoice's ``products_data``.

    Purchase price and profit are frozen at sale time so later catalogue
    edits do not rewrite historical profit. Unknown products are kept with
    what the request carried; reports fall back to the margin estimate.
    """
    total = _line_total(line)
    product = db.get(Product, line.product_id)
    if product is None:
        logger.warning("Product %s not found while building invoice line", line.product_id)
        return {
            "productId": line.product_id,
            "productName": line.product_name or "Unknown Product",
            "barcode": "",
            "quantity": line.quantity,
            "price": float(line.price),
            "discount": float(line.discount),
            "total": float(total),
        }

    product.stock = max(0, product.stock - line.quantity)
    purchase_price = Decimal(product.purchase_price or 0)
    return {
        "productId": product.id,
        "productName": product.name,
        "barcode": product.barcode,
        "quantity": line.quantity,
        "price": float(line.price),
        "purchasePrice": float(purchase_price),
        "sellingPrice": float(product.selling_price or line.price),
        "discount": float(line.discount),
        "total": float(total),
        "profit": float(total - purchase_price * line.quantity),
    }


@router.post("/invoices", response_model=InvoiceOut, status_code=status.HTTP_201_CREATED)
def create_invoice(payload: InvoiceCreate, db: Session = Depends(get_db)):
    items = [_build_line_item(db, line) for line in payload.products]

    subtotal = payload.subtotal
    if subtotal is None:
        subtotal = sum((_line_total(line) for line in payload.products), Decimal("0"))
    total = payload.total
    if total is None:
        total = max(Decimal("0"), subtotal - payload.discount)

    invoice = Invoice(
        invoice_number=payload.invoice_number.strip(),
        customer_name=payload.customer_name.strip() if payload.customer_name else None,
        customer_phone=payload.customer_phone,
        date=to_local_time(payload.date),
        subtotal=_quantize_money(subtotal),
        discount=_quantize_money(payload.discount),
        total=_quantize_money(total),
        payment_method=payload.payment_method,
        payment_status=payload.payment_status,
        notes=payload.notes,
        products_data=json.dumps(items, ensure_ascii=False),
        is_deleted=False,
    )
    db.add(invoice)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Invoice number already exists") from exc
    db.refresh(invoice)
    logger.info("Created invoice %s (%s) total=%s", invoice.id, invoice.invoice_number, invoice.total)
    return invoice


@router.get("/invoices", response_model=list[InvoiceOut])
def list_invoices(
    include_deleted: bool = False,
    db: Session = Depends(get_db),
):
    query = select(Invoice).order_by(Invoice.date.desc())
    if not include_deleted:
        query = query.where(Invoice.is_deleted.is_(False))
    return list(db.scalars(query).all())


@router.get("/invoices/{invoice_id}", response_model=InvoiceOut)
def get_invoice(invoice_id: int, db: Session = Depends(get_db)):
    invoice = db.get(Invoice, invoice_id)
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return invoice


@router.delete("/invoices/{invoice_id}", response_model=InvoiceOut)
def delete_invoice(invoice_id: int, db: Session = Depends(get_db)):
    invoice = db.get(Invoice, invoice_id)
    if not invoice or invoice.is_deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")

    line_status, items = parse_line_items(invoice.products_data)
    if line_status is not LineItemsStatus.PARSED:
        logger.warning("Invoice %s line items unreadable (%s), stock not restored", invoice.id, line_status.value)
    for item in items:
        if not isinstance(item.product_id, int) or isinstance(item.product_id, bool):
            continue
        product = db.get(Product, item.product_id)
        if product is None:
            logger.warning("Product %s not found while restoring stock", item.product_id)
            continue
        product.stock += int(item.quantity)

    # soft delete keeps the row out of every report
    invoice.is_deleted = True
    invoice.payment_status = "deleted"
    db.commit()
    db.refresh(invoice)
    logger.info("Deleted invoice %s", invoice.id)
    return invoice
