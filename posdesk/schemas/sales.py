from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

PaymentMethod = Literal["cash", "card", "later"]
PaymentStatus = Literal["paid", "pending", "partial"]


class InvoiceLineIn(BaseModel):
    product_id: int
    product_name: str | None = Field(default=None, max_length=160)
    quantity: int = Field(gt=0)
    price: Decimal = Field(ge=0)
    discount: Decimal = Field(default=Decimal("0"), ge=0, le=100, description="Percentage off the line")


class InvoiceCreate(BaseModel):
    invoice_number: str = Field(min_length=1, max_length=64)
    customer_name: str | None = Field(default=None, max_length=160)
    customer_phone: str | None = Field(default=None, max_length=64)
    date: datetime | None = None
    subtotal: Decimal | None = Field(default=None, ge=0)
    discount: Decimal = Field(default=Decimal("0"), ge=0)
    total: Decimal | None = Field(default=None, ge=0)
    payment_method: PaymentMethod = "cash"
    payment_status: PaymentStatus = "paid"
    notes: str | None = None
    products: list[InvoiceLineIn] = Field(min_length=1)


class InvoiceOut(BaseModel):
    id: int
    invoice_number: str
    customer_name: str | None
    customer_phone: str | None
    date: datetime
    subtotal: Decimal
    discount: Decimal
    total: Decimal
    payment_method: str
    payment_status: str
    notes: str | None
    products_data: str | None
    is_deleted: bool
    created_at: datetime
    updated_at: datetime | None

    model_config = {"from_attributes": True}
