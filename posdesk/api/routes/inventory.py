import logging
from datetime import datetime
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from posdesk.db.database import get_db
from posdesk.models.inventory import DamagedItem, Expense, Product
from posdesk.schemas.inventory import (
    DamagedItemCreate,
    DamagedItemOut,
    ExpenseCreate,
    ExpenseOut,
    ExpenseUpdate,
    ProductCreate,
    ProductOut,
    ProductUpdate,
)
from posdesk.services.records import to_local_time

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Inventory"])


def _get_product_or_404(db: Session, product_id: int) -> Product:
    product = db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


@router.post("/products", response_model=ProductOut, status_code=status.HTTP_201_CREATED)
def create_product(payload: ProductCreate, db: Session = Depends(get_db)):
    product = Product(
        name=payload.name.strip(),
        barcode=payload.barcode.strip(),
        alternative_code=payload.alternative_code.strip() if payload.alternative_code else None,
        purchase_price=payload.purchase_price,
        selling_price=payload.selling_price,
        stock=payload.stock,
    )
    db.add(product)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Barcode already exists") from exc
    db.refresh(product)
    logger.info("Created product %s (%s)", product.id, product.name)
    return product


@router.get("/products", response_model=list[ProductOut])
def list_products(
    search: str | None = None,
    db: Session = Depends(get_db),
):
    query = select(Product).order_by(Product.name.asc())
    if search is not None and search.strip():
        query = query.where(func.lower(Product.name).contains(search.strip().lower()))
    return list(db.scalars(query).all())


@router.get("/products/barcode/{barcode}", response_model=ProductOut)
def get_product_by_barcode(barcode: str, db: Session = Depends(get_db)):
    code = barcode.strip()
    product = db.scalar(
        select(Product).where((Product.barcode == code) | (Product.alternative_code == code))
    )
    if not product:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Product not found")
    return product


@router.get("/products/{product_id}", response_model=ProductOut)
def get_product(product_id: int, db: Session = Depends(get_db)):
    return _get_product_or_404(db, product_id)


@router.patch("/products/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    db: Session = Depends(get_db),
):
    product = _get_product_or_404(db, product_id)

    if payload.name is not None:
        product.name = payload.name.strip()
    if payload.barcode is not None:
        product.barcode = payload.barcode.strip()
    if payload.alternative_code is not None:
        product.alternative_code = payload.alternative_code.strip() or None
    if payload.purchase_price is not None:
        product.purchase_price = payload.purchase_price
    if payload.selling_price is not None:
        product.selling_price = payload.selling_price
    if payload.stock is not None:
        product.stock = payload.stock
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Barcode already exists") from exc
    db.refresh(product)
    return product


@router.delete("/products/{product_id}", response_model=ProductOut)
def delete_product(product_id: int, db: Session = Depends(get_db)):
    product = _get_product_or_404(db, product_id)
    result = ProductOut.model_validate(product)
    db.delete(product)
    db.commit()
    return result


@router.post("/damaged-items", response_model=DamagedItemOut, status_code=status.HTTP_201_CREATED)
def create_damaged_item(payload: DamagedItemCreate, db: Session = Depends(get_db)):
    product = _get_product_or_404(db, payload.product_id)

    value_loss = payload.value_loss
    if value_loss is None:
        value_loss = Decimal(product.purchase_price) * payload.quantity

    item = DamagedItem(
        product_id=product.id,
        quantity=payload.quantity,
        description=payload.description.strip() if payload.description else None,
        value_loss=value_loss,
        date=to_local_time(payload.date),
    )
    product.stock = max(0, product.stock - payload.quantity)
    db.add(item)
    db.commit()
    db.refresh(item)
    logger.info("Recorded damaged item %s: %s x product %s", item.id, item.quantity, product.id)
    return item


@router.get("/damaged-items", response_model=list[DamagedItemOut])
def list_damaged_items(
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    db: Session = Depends(get_db),
):
    query = select(DamagedItem).order_by(DamagedItem.date.desc())
    if date_from is not None:
        query = query.where(DamagedItem.date >= to_local_time(date_from))
    if date_to is not None:
        query = query.where(DamagedItem.date <= to_local_time(date_to))
    return list(db.scalars(query).all())


@router.delete("/damaged-items/{item_id}", response_model=DamagedItemOut)
def delete_damaged_item(item_id: int, db: Session = Depends(get_db)):
    item = db.get(DamagedItem, item_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Damaged item not found")
    result = DamagedItemOut.model_validate(item)
    db.delete(item)
    db.commit()
    return result


@router.post("/expenses", response_model=ExpenseOut, status_code=status.HTTP_201_CREATED)
def create_expense(payload: ExpenseCreate, db: Session = Depends(get_db)):
    expense = Expense(
        amount=payload.amount,
        details=payload.details.strip() if payload.details else None,
        expense_type=payload.expense_type.strip(),
        date=to_local_time(payload.date),
    )
    db.add(expense)
    db.commit()
    db.refresh(expense)
    return expense


@router.get("/expenses", response_model=list[ExpenseOut])
def list_expenses(
    expense_type: str | None = None,
    date_from: datetime | None = Query(default=None),
    date_to: datetime | None = Query(default=None),
    db: Session = Depends(get_db),
):
    query = select(Expense).order_by(Expense.date.desc())
    if expense_type is not None and expense_type.strip():
        query = query.where(func.lower(Expense.expense_type) == expense_type.strip().lower())
    if date_from is not None:
        query = query.where(Expense.date >= to_local_time(date_from))
    if date_to is not None:
        query = query.where(Expense.date <= to_local_time(date_to))
    return list(db.scalars(query).all())


@router.patch("/expenses/{expense_id}", response_model=ExpenseOut)
def update_expense(
    expense_id: int,
    payload: ExpenseUpdate,
    db: Session = Depends(get_db),
):
    expense = db.get(Expense, expense_id)
    if not expense:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")

    if payload.amount is not None:
        expense.amount = payload.amount
    if payload.details is not None:
        expense.details = payload.details.strip() or None
    if payload.expense_type is not None:
        expense.expense_type = payload.expense_type.strip()
    if payload.date is not None:
        expense.date = to_local_time(payload.date)

    db.commit()
    db.refresh(expense)
    return expense


@router.delete("/expenses/{expense_id}", response_model=ExpenseOut)
def delete_expense(expense_id: int, db: Session = Depends(get_db)):
    expense = db.get(Expense, expense_id)
    if not expense:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Expense not found")
    result = ExpenseOut.model_validate(expense)
    db.delete(expense)
    db.commit()
    return result
