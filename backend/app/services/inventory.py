from __future__ import annotations

import logging
import secrets
import string
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from backend.app.core.exceptions import ConflictError, NotFoundError, ValidationError
from backend.app.models.inventory import Product, Stock

logger = logging.getLogger(__name__)

STOCK_CODE_ALPHABET = string.ascii_uppercase + string.digits
STOCK_CODE_LENGTH = 4
STOCK_CODE_MAX_ATTEMPTS = 100

PRODUCT_UPDATE_FIELDS = (
    "category",
    "name",
    "price",
    "notes",
    "product_code",
    "expiry_date",
    "quantity",
    "publish_status",
    "image",
)
STOCK_UPDATE_FIELDS = ("quantity", "price", "total", "date", "supplier", "notes", "image")

# Fields that may be cleared by sending null
PRODUCT_NULLABLE_FIELDS = ("product_code", "expiry_date", "quantity", "image")
STOCK_NULLABLE_FIELDS = ("image",)


def _pick(
    changes: dict[str, Any], allowed: tuple[str, ...], nullable: tuple[str, ...] = ()
) -> dict[str, Any]:
    updates = {
        k: v
        for k, v in changes.items()
        if k in allowed and (v is not None or k in nullable)
    }
    if not updates:
        raise ValidationError("No valid fields to update")
    return updates


# ─── Products ────────────────────────────────────────────────────────────────


def list_products(db: Session, *, in_stock_only: bool = False) -> list[Product]:
    query = db.query(Product)
    if in_stock_only:
        query = query.filter(Product.quantity.is_not(None), Product.quantity > 0)
    return query.order_by(Product.created_at.desc()).all()


def get_product(db: Session, product_id: UUID) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError("Product not found")
    return product


def get_product_by_code(db: Session, product_code: str) -> Product | None:
    return db.query(Product).filter(Product.product_code == product_code).first()


def create_product(db: Session, data: dict[str, Any]) -> Product:
    code = data.get("product_code")
    if code and get_product_by_code(db, code):
        raise ConflictError("product_code already exists")
    product = Product(**data)
    db.add(product)
    db.flush()
    return product


def update_product(db: Session, product_id: UUID, changes: dict[str, Any]) -> Product:
    updates = _pick(changes, PRODUCT_UPDATE_FIELDS, PRODUCT_NULLABLE_FIELDS)
    product = get_product(db, product_id)

    code = updates.get("product_code")
    if code and code != product.product_code:
        existing = get_product_by_code(db, code)
        if existing and existing.id != product.id:
            raise ConflictError("product_code already exists")

    for field, value in updates.items():
        setattr(product, field, value)
    db.flush()
    return product


def delete_product(db: Session, product_id: UUID) -> None:
    product = get_product(db, product_id)
    db.delete(product)
    db.flush()


# ─── Stock batches ───────────────────────────────────────────────────────────


def generate_stock_code(db: Session) -> str:
    """Return an unused 4-character alphanumeric stock code."""
    for _ in range(STOCK_CODE_MAX_ATTEMPTS):
        code = "".join(
            secrets.choice(STOCK_CODE_ALPHABET) for _ in range(STOCK_CODE_LENGTH)
        )
        if not db.query(Stock.id).filter(Stock.stock_code == code).first():
            return code
    logger.error("Exhausted %d attempts generating a stock code", STOCK_CODE_MAX_ATTEMPTS)
    raise RuntimeError("Failed to generate unique stock code")


def list_stocks(db: Session) -> list[Stock]:
    return db.query(Stock).order_by(Stock.created_at.desc()).all()


def get_stock(db: Session, stock_id: UUID) -> Stock:
    stock = db.query(Stock).filter(Stock.id == stock_id).first()
    if not stock:
        raise NotFoundError("Stock not found")
    return stock


def create_stock(db: Session, data: dict[str, Any]) -> Stock:
    """Record a restock batch.

    The batch is bookkeeping only; the product's quantity is maintained
    through the product itself.
    """
    if not db.query(Product.id).filter(Product.id == data["product_id"]).first():
        raise ValidationError(f"Product {data['product_id']} not found")
    stock = Stock(stock_code=generate_stock_code(db), **data)
    db.add(stock)
    db.flush()
    return stock


def update_stock(db: Session, stock_id: UUID, changes: dict[str, Any]) -> Stock:
    updates = _pick(changes, STOCK_UPDATE_FIELDS, STOCK_NULLABLE_FIELDS)
    stock = get_stock(db, stock_id)
    for field, value in updates.items():
        setattr(stock, field, value)
    db.flush()
    return stock


def delete_stock(db: Session, stock_id: UUID) -> None:
    stock = get_stock(db, stock_id)
    db.delete(stock)
    db.flush()
