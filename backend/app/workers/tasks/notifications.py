"""Inventory alert tasks."""

from __future__ import annotations

import logging

from backend.app.workers.celery_app import celery

logger = logging.getLogger(__name__)


@celery.task(name="backend.app.workers.tasks.notifications.scan_products")
def scan_products() -> dict:
    """Raise low-stock, expiring and expired alerts for every product."""
    from backend.app.core.database import SessionLocal
    from backend.app.services.notifications import check_all_products

    db = SessionLocal()
    try:
        raised = check_all_products(db)
        db.commit()
        logger.info("Product scan raised %d alerts", raised)
        return {"raised": raised}
    finally:
        db.close()


@celery.task(name="backend.app.workers.tasks.notifications.purge_read")
def purge_read() -> dict:
    """Drop read notifications past the retention window."""
    from backend.app.core.database import SessionLocal
    from backend.app.services.notifications import purge_read_notifications

    db = SessionLocal()
    try:
        removed = purge_read_notifications(db)
        db.commit()
        return {"removed": removed}
    finally:
        db.close()
