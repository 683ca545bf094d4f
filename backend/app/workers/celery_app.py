"""Celery application instance.

Start the worker::

    celery -A backend.app.workers.celery_app worker --loglevel=info
    celery -A backend.app.workers.celery_app beat --loglevel=info
"""

from __future__ import annotations

from datetime import timedelta

from celery import Celery
from celery.schedules import crontab

from backend.app.core.config import settings

celery = Celery(
    "pharmacy",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "backend.app.workers.tasks.cleanup",
        "backend.app.workers.tasks.notifications",
    ],
)

celery.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
)

celery.conf.beat_schedule = {
    "cleanup-sessions-hourly": {
        "task": "backend.app.workers.tasks.cleanup.cleanup_sessions",
        "schedule": crontab(minute=0),
    },
    "scan-products-for-alerts": {
        "task": "backend.app.workers.tasks.notifications.scan_products",
        "schedule": timedelta(minutes=settings.NOTIFICATION_CHECK_INTERVAL_MINUTES),
    },
    "purge-read-notifications-daily": {
        "task": "backend.app.workers.tasks.notifications.purge_read",
        "schedule": crontab(hour=3, minute=0),
    },
}
