from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from backend.app.models.inventory import PublishStatus


# ─── Product ─────────────────────────────────────────────────────────────────


class ProductCreate(BaseModel):
    category: str = Field(..., max_length=255)
    name: str = Field(..., max_length=255)
    price: Decimal = Field(..., ge=0)
    notes: str
    product_code: str | None = Field(None, max_length=100)
    expiry_date: date | None = None
    quantity: int | None = Field(None, ge=0)
    publish_status: PublishStatus = PublishStatus.YES
    image: str | None = None

    @field_validator("category", "name", "notes")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class ProductUpdate(BaseModel):
    category: str | None = Field(None, max_length=255)
    name: str | None = Field(None, max_length=255)
    price: Decimal | None = Field(None, ge=0)
    notes: str | None = None
    product_code: str | None = Field(None, max_length=100)
    expiry_date: date | None = None
    quantity: int | None = Field(None, ge=0)
    publish_status: PublishStatus | None = None
    image: str | None = None


class ProductOut(BaseModel):
    id: UUID
    category: str
    name: str
    price: float
    notes: str
    product_code: str | None
    expiry_date: date | None
    quantity: int | None
    publish_status: PublishStatus
    image: str | None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class ProductEnvelope(BaseModel):
    product: ProductOut


class ProductListEnvelope(BaseModel):
    products: list[ProductOut]


# ─── Stock ───────────────────────────────────────────────────────────────────


class StockCreate(BaseModel):
    product_id: UUID
    quantity: int = Field(..., ge=0)
    price: Decimal = Field(..., ge=0)
    total: Decimal = Field(..., ge=0)
    date: datetime
    supplier: str = Field(..., max_length=255)
    notes: str
    image: str | None = None

    @field_validator("supplier", "notes")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        return v.strip()


class StockUpdate(BaseModel):
    quantity: int | None = Field(None, ge=0)
    price: Decimal | None = Field(None, ge=0)
    total: Decimal | None = Field(None, ge=0)
    date: datetime | None = None
    supplier: str | None = Field(None, max_length=255)
    notes: str | None = None
    image: str | None = None


class StockOut(BaseModel):
    id: UUID
    product_id: UUID
    stock_code: str
    quantity: int
    price: float
    total: float
    date: datetime
    supplier: str
    notes: str
    image: str | None
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class StockEnvelope(BaseModel):
    stock: StockOut


class StockListEnvelope(BaseModel):
    stocks: list[StockOut]
