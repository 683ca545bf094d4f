"""Periodic cleanup tasks."""

from __future__ import annotations

import logging

from backend.app.workers.celery_app import celery

logger = logging.getLogger(__name__)


@celery.task(name="backend.app.workers.tasks.cleanup.cleanup_sessions")
def cleanup_sessions() -> dict:
    """Delete sessions that have expired or were invalidated."""
    from backend.app.core.database import SessionLocal
    from backend.app.services.auth_sessions import cleanup_sessions as purge

    db = SessionLocal()
    try:
        removed = purge(db)
        db.commit()
        if removed:
            logger.info("Removed %d stale sessions", removed)
        return {"removed": removed}
    finally:
        db.close()
