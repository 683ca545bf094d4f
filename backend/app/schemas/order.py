from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import AliasChoices, BaseModel, Field, model_validator

from backend.app.models.order import OrderPaymentStatus, OrderStatus


class OrderItemIn(BaseModel):
    """A cart line.

    Either references a catalogue product (``product_id`` / ``id`` or
    ``product_code``) or is free-form, in which case ``name`` and ``price``
    are taken as given.
    """

    product_id: UUID | None = Field(
        None, validation_alias=AliasChoices("product_id", "id")
    )
    product_code: str | None = None
    name: str | None = None
    price: Decimal = Field(Decimal("0"), ge=0)
    quantity: int = Field(1, ge=1)
    image: str | None = None

    @model_validator(mode="after")
    def free_form_needs_name(self) -> OrderItemIn:
        if self.product_id is None and self.product_code is None and not self.name:
            raise ValueError("Free-form items need a name")
        return self


class OrderCreate(BaseModel):
    items: list[OrderItemIn]
    receipt_code: str | None = Field(None, max_length=100)
    order_number: str | None = Field(None, max_length=100)
    discount: Decimal = Decimal("0")
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
    shipping_address: str | None = None
    notes: str | None = None
    payment_reference: str | None = None


class OrderUpdate(BaseModel):
    status: OrderStatus | None = None
    payment_status: OrderPaymentStatus | None = None
    notes: str | None = None
    shipping_address: str | None = None
    customer_name: str | None = None
    customer_email: str | None = None
    customer_phone: str | None = None
    payment_reference: str | None = None


class OrderItemOut(BaseModel):
    product_id: UUID | None
    name: str
    price: float
    quantity: int
    image: str | None

    class Config:
        from_attributes = True


class OrderOut(BaseModel):
    id: UUID
    order_number: str | None
    receipt_code: str
    items: list[OrderItemOut]
    subtotal: float
    discount: float
    total: float
    status: OrderStatus
    payment_status: OrderPaymentStatus
    payment_reference: str | None
    customer_name: str | None
    customer_email: str | None
    customer_phone: str | None
    shipping_address: str | None
    notes: str | None
    inventory_adjusted: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class OrderEnvelope(BaseModel):
    order: OrderOut


class OrderListEnvelope(BaseModel):
    orders: list[OrderOut]
