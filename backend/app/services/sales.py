"""Counter sales: checkout, refunds and reporting.

Checkout deducts product quantities and refund restores them. With
``SALES_USE_TRANSACTIONS`` enabled both run inside a SAVEPOINT with the
affected product rows locked ``FOR UPDATE``.

This module does NOT call db.commit(); the caller (endpoint) is responsible
for committing.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from backend.app.core.config import settings
from backend.app.core.exceptions import NotFoundError, ValidationError
from backend.app.models.inventory import Product
from backend.app.models.sales import PaymentMethod, Sale, SaleItem, SalePaymentStatus
from backend.app.schemas.sales import SaleItemIn

logger = logging.getLogger(__name__)

Q = Decimal("0.0001")
ZERO = Decimal("0")

SALE_UPDATE_FIELDS = (
    "payment_status",
    "payment_method",
    "notes",
    "discount",
    "subtotal",
    "total_amount",
)

# Look-back window per stats period
STATS_PERIODS: dict[str, timedelta | None] = {
    "today": None,
    "week": timedelta(days=7),
    "month": timedelta(days=30),
    "year": timedelta(days=365),
}


def generate_sale_number(db: Session, now: datetime | None = None) -> str:
    """Return the next number for the UTC day, e.g. SALE-20260315-0001."""
    if now is None:
        now = datetime.now(timezone.utc)
    prefix = f"SALE-{now:%Y%m%d}-"
    count = db.query(Sale).filter(Sale.sale_number.like(f"{prefix}%")).count()
    return f"{prefix}{count + 1:04d}"


def _load_products(
    db: Session, product_ids: Iterable[UUID], *, lock: bool
) -> dict[UUID, Product]:
    ids = list(product_ids)
    if not ids:
        return {}
    query = db.query(Product).filter(Product.id.in_(ids))
    if lock:
        query = query.with_for_update()
    return {p.id: p for p in query.all()}


# ─── Checkout ────────────────────────────────────────────────────────────────


def create_sale(
    db: Session,
    *,
    items: list[SaleItemIn],
    cashier_id: UUID,
    payment_method: PaymentMethod = PaymentMethod.CASH,
    discount: Decimal = ZERO,
    notes: str | None = None,
    customer_name: str | None = None,
    customer_phone: str | None = None,
) -> Sale:
    """Record a sale and deduct stock for every line.

    Every product is validated (exists, not expired, enough quantity) before
    anything is written, so a rejected cart leaves inventory untouched.
    """
    if not items:
        raise ValidationError("Cart is empty")

    kwargs = dict(
        items=items,
        cashier_id=cashier_id,
        payment_method=payment_method,
        discount=discount,
        notes=notes,
        customer_name=customer_name,
        customer_phone=customer_phone,
    )
    if settings.SALES_USE_TRANSACTIONS:
        with db.begin_nested():
            return _create_sale(db, lock=True, **kwargs)
    return _create_sale(db, lock=False, **kwargs)


def _create_sale(
    db: Session,
    *,
    lock: bool,
    items: list[SaleItemIn],
    cashier_id: UUID,
    payment_method: PaymentMethod,
    discount: Decimal,
    notes: str | None,
    customer_name: str | None,
    customer_phone: str | None,
) -> Sale:
    # Same product on several lines is checked against its combined quantity
    requested: dict[UUID, int] = {}
    for item in items:
        requested[item.product_id] = requested.get(item.product_id, 0) + item.quantity

    products = _load_products(db, requested, lock=lock)
    for product_id in requested:
        if product_id not in products:
            raise ValidationError(f"Product {product_id} not found")

    now = datetime.now(timezone.utc)
    today = now.date()
    for product_id, quantity in requested.items():
        product = products[product_id]
        if product.expiry_date is not None and product.expiry_date < today:
            raise ValidationError(f"Product {product.name} has expired")
        available = product.quantity or 0
        if available < quantity:
            raise ValidationError(
                f"Insufficient stock for {product.name}. "
                f"Available: {available}, Requested: {quantity}"
            )

    lines: list[SaleItem] = []
    subtotal = ZERO
    for position, item in enumerate(items):
        product = products[item.product_id]
        unit_price = Decimal(str(product.price)).quantize(Q, rounding=ROUND_HALF_UP)
        line_total = (unit_price * item.quantity).quantize(Q, rounding=ROUND_HALF_UP)
        subtotal += line_total
        lines.append(
            SaleItem(
                position=position,
                product_id=product.id,
                product_name=product.name,
                quantity=item.quantity,
                unit_price=unit_price,
                total_price=line_total,
            )
        )

    discount_amount = Decimal(str(discount or 0)).quantize(Q, rounding=ROUND_HALF_UP)
    if discount_amount < ZERO:
        raise ValidationError("Discount cannot be negative")
    if discount_amount > subtotal:
        raise ValidationError("Discount cannot exceed the subtotal")

    sale = Sale(
        sale_number=generate_sale_number(db, now),
        subtotal=subtotal,
        discount=discount_amount,
        total_amount=subtotal - discount_amount,
        payment_method=payment_method,
        payment_status=SalePaymentStatus.COMPLETED,
        notes=notes,
        customer_name=customer_name,
        customer_phone=customer_phone,
        cashier_id=cashier_id,
        created_at=now,
        items=lines,
    )
    db.add(sale)

    for product_id, quantity in requested.items():
        products[product_id].quantity -= quantity

    db.flush()
    logger.info(
        "Sale %s recorded: %d line(s), total %s", sale.sale_number, len(lines), sale.total_amount
    )
    return sale


# ─── Refund ──────────────────────────────────────────────────────────────────


def refund_sale(db: Session, sale_id: UUID) -> Sale:
    """Mark a sale refunded and put its quantities back on the shelf."""
    if settings.SALES_USE_TRANSACTIONS:
        with db.begin_nested():
            return _refund_sale(db, sale_id, lock=True)
    return _refund_sale(db, sale_id, lock=False)


def _refund_sale(db: Session, sale_id: UUID, *, lock: bool) -> Sale:
    query = db.query(Sale).filter(Sale.id == sale_id)
    if lock:
        query = query.with_for_update()
    sale = query.first()
    if not sale:
        raise NotFoundError("Sale not found")
    if sale.payment_status == SalePaymentStatus.REFUNDED:
        raise ValidationError("Sale already refunded")

    restored: dict[UUID, int] = {}
    for item in sale.items:
        if item.product_id is not None:
            restored[item.product_id] = restored.get(item.product_id, 0) + item.quantity

    products = _load_products(db, restored, lock=lock)
    for product_id, quantity in restored.items():
        product = products.get(product_id)
        if product is None:
            logger.warning(
                "Refund of %s: product %s no longer exists, skipping %d unit(s)",
                sale.sale_number,
                product_id,
                quantity,
            )
            continue
        product.quantity = (product.quantity or 0) + quantity

    sale.payment_status = SalePaymentStatus.REFUNDED
    db.flush()
    logger.info("Sale %s refunded", sale.sale_number)
    return sale


# ─── Queries & edits ─────────────────────────────────────────────────────────


def get_sale(db: Session, sale_id: UUID) -> Sale:
    sale = db.query(Sale).filter(Sale.id == sale_id).first()
    if not sale:
        raise NotFoundError("Sale not found")
    return sale


def update_sale(db: Session, sale_id: UUID, changes: dict[str, Any]) -> Sale:
    updates = {
        k: v
        for k, v in changes.items()
        if k in SALE_UPDATE_FIELDS and (v is not None or k == "notes")
    }
    if not updates:
        raise ValidationError("No updates provided")

    sale = get_sale(db, sale_id)
    new_status = updates.get("payment_status")
    if new_status == SalePaymentStatus.REFUNDED:
        raise ValidationError("Refund a sale with DELETE so inventory is restored")
    if (
        new_status is not None
        and sale.payment_status == SalePaymentStatus.REFUNDED
        and new_status != sale.payment_status
    ):
        raise ValidationError("A refunded sale cannot change payment status")

    for field, value in updates.items():
        setattr(sale, field, value)
    db.flush()
    return sale


def list_sales(
    db: Session,
    *,
    page: int = 1,
    limit: int = 50,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    payment_method: PaymentMethod | None = None,
    search: str | None = None,
) -> tuple[list[Sale], int]:
    """Return one page of sales (newest first) and the total match count."""
    query = db.query(Sale)
    if start_date:
        query = query.filter(Sale.created_at >= start_date)
    if end_date:
        query = query.filter(Sale.created_at <= end_date)
    if payment_method:
        query = query.filter(Sale.payment_method == payment_method)
    if search:
        like = f"%{search}%"
        query = query.filter(
            or_(
                Sale.sale_number.ilike(like),
                Sale.customer_name.ilike(like),
                Sale.customer_phone.ilike(like),
            )
        )

    total = query.count()
    sales = (
        query.order_by(Sale.created_at.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return sales, total


# ─── Reporting ───────────────────────────────────────────────────────────────


def _completed_between(
    db: Session, start: datetime, end: datetime | None = None
) -> list[Sale]:
    query = db.query(Sale).filter(
        Sale.payment_status == SalePaymentStatus.COMPLETED,
        Sale.created_at >= start,
    )
    if end is not None:
        query = query.filter(Sale.created_at < end)
    return query.all()


def _sum_total(sales: list[Sale]) -> Decimal:
    return sum((Decimal(str(s.total_amount)) for s in sales), ZERO)


def _items_sold(sales: list[Sale]) -> int:
    return sum(item.quantity for sale in sales for item in sale.items)


def _start_of_day(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def sales_stats(db: Session, period: str = "today") -> dict:
    """Totals, trend against the preceding window, top products and payment mix."""
    if period not in STATS_PERIODS:
        raise ValidationError(f"Unknown period '{period}'")

    now = datetime.now(timezone.utc)
    window = STATS_PERIODS[period]
    start = _start_of_day(now) if window is None else now - window

    sales = _completed_between(db, start)
    previous = _completed_between(db, start - (now - start), start)

    total = _sum_total(sales)
    previous_total = _sum_total(previous)
    count = len(sales)
    trend = (total - previous_total) / previous_total * 100 if previous_total > 0 else ZERO

    products: dict[str, dict] = {}
    for sale in sales:
        for item in sale.items:
            key = str(item.product_id) if item.product_id else item.product_name
            entry = products.setdefault(
                key, {"id": key, "name": item.product_name, "quantity": 0, "revenue": ZERO}
            )
            entry["name"] = item.product_name
            entry["quantity"] += item.quantity
            entry["revenue"] += Decimal(str(item.total_price))
    top_products = sorted(products.values(), key=lambda p: p["revenue"], reverse=True)[:5]

    payment_methods: dict[str, int] = {}
    for sale in sales:
        method = sale.payment_method.value
        payment_methods[method] = payment_methods.get(method, 0) + 1

    return {
        "period": period,
        "total_sales": float(total),
        "total_transactions": count,
        "total_items_sold": _items_sold(sales),
        "average_transaction": float(total / count) if count else 0.0,
        "sales_trend": round(float(trend), 2),
        "top_products": [
            {**p, "revenue": float(p["revenue"])} for p in top_products
        ],
        "payment_methods": payment_methods,
    }


def daily_sales(db: Session) -> dict:
    """Today's totals compared against yesterday (UTC days)."""
    now = datetime.now(timezone.utc)
    start_of_day = _start_of_day(now)
    end_of_day = start_of_day + timedelta(days=1)
    yesterday = start_of_day - timedelta(days=1)

    sales = _completed_between(db, start_of_day, end_of_day)
    yesterday_total = _sum_total(_completed_between(db, yesterday, start_of_day))

    total = _sum_total(sales)
    count = len(sales)
    if yesterday_total > 0:
        trend = float((total - yesterday_total) / yesterday_total * 100)
    else:
        trend = 100.0 if total > 0 else 0.0

    return {
        "total_sales": float(total),
        "total_transactions": count,
        "items_sold": _items_sold(sales),
        "average_transaction": round(float(total / count), 2) if count else 0.0,
        "sales_trend": round(trend, 2),
    }
