from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=160)
    barcode: str = Field(min_length=1, max_length=64)
    alternative_code: str | None = Field(default=None, max_length=64)
    purchase_price: Decimal = Field(ge=0)
    selling_price: Decimal = Field(ge=0)
    stock: int = Field(default=0, ge=0)


class ProductUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=160)
    barcode: str | None = Field(default=None, min_length=1, max_length=64)
    alternative_code: str | None = Field(default=None, max_length=64)
    purchase_price: Decimal | None = Field(default=None, ge=0)
    selling_price: Decimal | None = Field(default=None, ge=0)
    stock: int | None = Field(default=None, ge=0)


class ProductOut(BaseModel):
    id: int
    name: str
    barcode: str
    alternative_code: str | None
    purchase_price: Decimal
    selling_price: Decimal
    stock: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class DamagedItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)
    description: str | None = None
    value_loss: Decimal | None = Field(default=None, ge=0)
    date: datetime | None = None


class DamagedItemOut(BaseModel):
    id: int
    product_id: int
    quantity: int
    description: str | None
    value_loss: Decimal
    date: datetime

    model_config = {"from_attributes": True}


class ExpenseCreate(BaseModel):
    amount: Decimal = Field(gt=0)
    details: str | None = Field(default=None, max_length=255)
    expense_type: str = Field(default="other", min_length=1, max_length=120)
    date: datetime | None = None


class ExpenseUpdate(BaseModel):
    amount: Decimal | None = Field(default=None, gt=0)
    details: str | None = Field(default=None, max_length=255)
    expense_type: str | None = Field(default=None, min_length=1, max_length=120)
    date: datetime | None = None


class ExpenseOut(BaseModel):
    id: int
    amount: Decimal
    details: str | None
    expense_type: str
    date: datetime
    created_at: datetime

    model_config = {"from_attributes": True}
