"""Storefront orders and the inventory side of their status changes.

Stock is deducted when an order is completed and put back when a completed
order is cancelled; ``Order.inventory_adjusted`` guards both directions.

This module does NOT call db.commit(); the caller (endpoint) is responsible
for committing.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from backend.app.core.exceptions import ConflictError, NotFoundError, ValidationError
from backend.app.models.inventory import Product
from backend.app.models.order import Order, OrderItem, OrderPaymentStatus, OrderStatus
from backend.app.schemas.order import OrderItemIn

logger = logging.getLogger(__name__)

Q = Decimal("0.0001")
ZERO = Decimal("0")

ORDER_UPDATE_FIELDS = (
    "status",
    "payment_status",
    "notes",
    "shipping_address",
    "customer_name",
    "customer_email",
    "customer_phone",
    "payment_reference",
)


def generate_receipt_code(db: Session) -> str:
    """Return an unused receipt code like RCPT-20260315-3F9A1C."""
    today = datetime.now(timezone.utc)
    while True:
        code = f"RCPT-{today:%Y%m%d}-{secrets.token_hex(3).upper()}"
        if not db.query(Order.id).filter(Order.receipt_code == code).first():
            return code


def _resolve_product(db: Session, item: OrderItemIn) -> Product | None:
    if item.product_id is not None:
        product = db.query(Product).filter(Product.id == item.product_id).first()
        if not product:
            raise ValidationError(f"Product {item.product_id} not found")
        return product
    if item.product_code:
        product = (
            db.query(Product).filter(Product.product_code == item.product_code).first()
        )
        if not product:
            raise ValidationError(f"Product {item.product_code} not found")
        return product
    return None


def create_order(
    db: Session,
    *,
    items: list[OrderItemIn],
    discount: Decimal = ZERO,
    receipt_code: str | None = None,
    order_number: str | None = None,
    **details: Any,
) -> Order:
    """Place a pending order.

    Product-backed lines take name and price from the catalogue; free-form
    lines keep what the client sent. Stock is not touched until completion.
    """
    if not items:
        raise ValidationError("Cart items are required")

    lines: list[OrderItem] = []
    subtotal = ZERO
    for position, item in enumerate(items):
        product = _resolve_product(db, item)
        if product is not None:
            name = product.name
            price = Decimal(str(product.price))
            image = item.image or product.image
        else:
            name = item.name
            price = Decimal(str(item.price))
            image = item.image
        price = price.quantize(Q, rounding=ROUND_HALF_UP)
        subtotal += price * item.quantity
        lines.append(
            OrderItem(
                position=position,
                product_id=product.id if product is not None else None,
                name=name,
                price=price,
                quantity=item.quantity,
                image=image,
            )
        )

    if receipt_code:
        if db.query(Order.id).filter(Order.receipt_code == receipt_code).first():
            raise ConflictError("receipt_code already exists")
    else:
        receipt_code = generate_receipt_code(db)
    if order_number:
        if db.query(Order.id).filter(Order.order_number == order_number).first():
            raise ConflictError("order_number already exists")

    discount_value = max(Decimal(str(discount or 0)), ZERO).quantize(Q, rounding=ROUND_HALF_UP)
    order = Order(
        receipt_code=receipt_code,
        order_number=order_number or receipt_code,
        subtotal=subtotal,
        discount=discount_value,
        total=max(subtotal - discount_value, ZERO),
        status=OrderStatus.PENDING,
        payment_status=OrderPaymentStatus.PENDING,
        inventory_adjusted=False,
        items=lines,
        **details,
    )
    db.add(order)
    db.flush()
    logger.info("Order %s placed with %d line(s)", order.receipt_code, len(lines))
    return order


def get_order(db: Session, order_id: UUID) -> Order:
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise NotFoundError("Order not found")
    return order


def list_orders(
    db: Session,
    *,
    status: OrderStatus | None = None,
    payment_status: OrderPaymentStatus | None = None,
) -> list[Order]:
    query = db.query(Order)
    if status:
        query = query.filter(Order.status == status)
    if payment_status:
        query = query.filter(Order.payment_status == payment_status)
    return query.order_by(Order.created_at.desc()).all()


def _product_quantities(order: Order) -> dict[UUID, int]:
    quantities: dict[UUID, int] = {}
    for item in order.items:
        if item.product_id is not None:
            quantities[item.product_id] = quantities.get(item.product_id, 0) + item.quantity
    return quantities


def _lock_products(db: Session, product_ids: list[UUID]) -> dict[UUID, Product]:
    if not product_ids:
        return {}
    rows = (
        db.query(Product)
        .filter(Product.id.in_(product_ids))
        .with_for_update()
        .all()
    )
    return {p.id: p for p in rows}


def update_order(db: Session, order_id: UUID, changes: dict[str, Any]) -> Order:
    """Apply a partial update, adjusting inventory on completion/cancellation."""
    updates = {
        k: v for k, v in changes.items() if k in ORDER_UPDATE_FIELDS and v is not None
    }
    if not updates:
        raise ValidationError("No updates provided")

    order = get_order(db, order_id)
    next_status = updates.get("status", order.status)
    deduct = next_status == OrderStatus.COMPLETED and not order.inventory_adjusted
    restore = next_status == OrderStatus.CANCELLED and order.inventory_adjusted

    quantities = _product_quantities(order) if (deduct or restore) else {}
    products = _lock_products(db, list(quantities))

    if deduct:
        for product_id, quantity in quantities.items():
            product = products.get(product_id)
            if product is None:
                raise ValidationError(f"Product {product_id} no longer exists")
            available = product.quantity or 0
            if available < quantity:
                raise ValidationError(
                    f"Insufficient stock for {product.name}. "
                    f"Available: {available}, Required: {quantity}"
                )

    for field, value in updates.items():
        setattr(order, field, value)

    if deduct:
        for product_id, quantity in quantities.items():
            products[product_id].quantity -= quantity
        order.inventory_adjusted = True
        logger.info("Order %s completed, inventory deducted", order.receipt_code)
    elif restore:
        for product_id, quantity in quantities.items():
            product = products.get(product_id)
            if product is None:
                logger.warning(
                    "Order %s: product %s no longer exists, not restoring %d unit(s)",
                    order.receipt_code,
                    product_id,
                    quantity,
                )
                continue
            product.quantity = (product.quantity or 0) + quantity
        order.inventory_adjusted = False
        logger.info("Order %s cancelled, inventory restored", order.receipt_code)

    db.flush()
    return order


def delete_order(db: Session, order_id: UUID) -> None:
    order = get_order(db, order_id)
    db.delete(order)
    db.flush()
