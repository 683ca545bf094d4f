"""Low-stock and expiry alerts.

Products are evaluated on every create/update and by the periodic scan.
A repeat trigger refreshes the unread alert for the same product and type
rather than adding another one.

This module does NOT call db.commit(); the caller is responsible for
committing.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from backend.app.core.config import settings
from backend.app.core.exceptions import NotFoundError
from backend.app.models.inventory import Product
from backend.app.models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)


def evaluate_product(
    product: Product, today: date | None = None
) -> list[tuple[NotificationType, str, dict[str, Any]]]:
    """Return the (type, message, metadata) alerts *product* currently warrants."""
    if today is None:
        today = datetime.now(timezone.utc).date()
    alerts: list[tuple[NotificationType, str, dict[str, Any]]] = []

    if product.quantity is not None and product.quantity < settings.LOW_STOCK_THRESHOLD:
        alerts.append((
            NotificationType.LOW_STOCK,
            f"{product.name} is low on stock ({product.quantity} remaining)",
            {"quantity": product.quantity},
        ))

    if product.expiry_date is not None:
        days_left = (product.expiry_date - today).days
        meta = {
            "expiry_date": product.expiry_date.isoformat(),
            "days_until_expiry": days_left,
        }
        if days_left < 0:
            alerts.append((
                NotificationType.EXPIRED,
                f"{product.name} has expired on {product.expiry_date.isoformat()}",
                meta,
            ))
        elif days_left <= settings.EXPIRING_DAYS_THRESHOLD:
            plural = "" if days_left == 1 else "s"
            alerts.append((
                NotificationType.EXPIRING,
                f"{product.name} will expire in {days_left} day{plural} "
                f"({product.expiry_date.isoformat()})",
                meta,
            ))

    return alerts


def upsert_notification(
    db: Session,
    *,
    product: Product,
    notification_type: NotificationType,
    message: str,
    details: dict[str, Any],
) -> Notification:
    now = datetime.now(timezone.utc)
    existing = (
        db.query(Notification)
        .filter(
            Notification.product_id == product.id,
            Notification.type == notification_type,
            Notification.is_read.is_(False),
        )
        .first()
    )
    if existing:
        existing.message = message
        existing.product_name = product.name
        existing.details = details
        existing.created_at = now
        db.flush()
        return existing

    notification = Notification(
        type=notification_type,
        message=message,
        product_id=product.id,
        product_name=product.name,
        details=details,
        created_at=now,
    )
    db.add(notification)
    db.flush()
    return notification


def check_product(db: Session, product: Product, today: date | None = None) -> int:
    """Create or refresh alerts for one product. Returns how many were raised."""
    alerts = evaluate_product(product, today)
    for notification_type, message, details in alerts:
        upsert_notification(
            db,
            product=product,
            notification_type=notification_type,
            message=message,
            details=details,
        )
    return len(alerts)


def check_all_products(db: Session, today: date | None = None) -> int:
    raised = 0
    for product in db.query(Product).all():
        raised += check_product(db, product, today)
    return raised


def list_notifications(
    db: Session, *, is_read: bool | None = None, limit: int = 100
) -> list[Notification]:
    query = db.query(Notification)
    if is_read is not None:
        query = query.filter(Notification.is_read.is_(is_read))
    return query.order_by(Notification.created_at.desc()).limit(limit).all()


def unread_count(db: Session) -> int:
    return db.query(Notification).filter(Notification.is_read.is_(False)).count()


def mark_read(db: Session, notification_id: UUID) -> Notification:
    notification = (
        db.query(Notification).filter(Notification.id == notification_id).first()
    )
    if not notification:
        raise NotFoundError("Notification not found")
    if not notification.is_read:
        notification.is_read = True
        notification.read_at = datetime.now(timezone.utc)
        db.flush()
    return notification


def mark_all_read(db: Session) -> int:
    return (
        db.query(Notification)
        .filter(Notification.is_read.is_(False))
        .update(
            {Notification.is_read: True, Notification.read_at: datetime.now(timezone.utc)},
            synchronize_session="fetch",
        )
    )


def delete_notification(db: Session, notification_id: UUID) -> None:
    notification = (
        db.query(Notification).filter(Notification.id == notification_id).first()
    )
    if not notification:
        raise NotFoundError("Notification not found")
    db.delete(notification)
    db.flush()


def purge_read_notifications(db: Session, older_than_days: int | None = None) -> int:
    """Delete read notifications whose read_at is older than the retention window."""
    if older_than_days is None:
        older_than_days = settings.NOTIFICATION_RETENTION_DAYS
    cutoff = datetime.now(timezone.utc) - timedelta(days=older_than_days)
    return (
        db.query(Notification)
        .filter(Notification.is_read.is_(True), Notification.read_at < cutoff)
        .delete(synchronize_session=False)
    )
