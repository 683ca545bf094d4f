from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field

from backend.app.models.sales import PaymentMethod, SalePaymentStatus


# ─── Input ───────────────────────────────────────────────────────────────────


class SaleItemIn(BaseModel):
    # Register clients send the product id as either ``id`` or ``product_id``
    product_id: UUID = Field(..., validation_alias=AliasChoices("product_id", "id"))
    quantity: int = Field(..., ge=1)


class SaleCreate(BaseModel):
    items: list[SaleItemIn]
    payment_method: PaymentMethod = PaymentMethod.CASH
    discount: Decimal = Field(Decimal("0"), ge=0)
    notes: str | None = None
    customer_name: str | None = None
    customer_phone: str | None = None


class SaleUpdate(BaseModel):
    payment_status: SalePaymentStatus | None = None
    payment_method: PaymentMethod | None = None
    notes: str | None = None
    discount: Decimal | None = Field(None, ge=0)
    subtotal: Decimal | None = Field(None, ge=0)
    total_amount: Decimal | None = Field(None, ge=0)


# ─── Output ──────────────────────────────────────────────────────────────────


class SaleItemOut(BaseModel):
    product_id: UUID | None
    product_name: str
    quantity: int
    unit_price: float
    total_price: float

    class Config:
        from_attributes = True


class CashierOut(BaseModel):
    id: UUID
    name: str
    username: str

    class Config:
        from_attributes = True


class SaleOut(BaseModel):
    id: UUID
    sale_number: str
    items: list[SaleItemOut]
    subtotal: float
    discount: float
    total_amount: float
    payment_method: PaymentMethod
    payment_status: SalePaymentStatus
    notes: str | None
    customer_name: str | None
    customer_phone: str | None
    cashier_id: UUID | None
    cashier: CashierOut | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class SaleEnvelope(BaseModel):
    sale: SaleOut


class SaleResultOut(BaseModel):
    success: bool = True
    message: str
    sale: SaleOut


class PaginationOut(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int


class SaleListOut(BaseModel):
    sales: list[SaleOut]
    pagination: PaginationOut


# ─── Statistics ──────────────────────────────────────────────────────────────


class TopProductOut(BaseModel):
    id: str
    name: str
    quantity: int
    revenue: float


class SaleStatsOut(BaseModel):
    period: str
    total_sales: float
    total_transactions: int
    total_items_sold: int
    average_transaction: float
    sales_trend: float
    top_products: list[TopProductOut]
    payment_methods: dict[str, int]


class DailySalesOut(BaseModel):
    total_sales: float
    total_transactions: int
    items_sold: int
    average_transaction: float
    sales_trend: float
