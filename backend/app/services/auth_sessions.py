"""Server-side login sessions.

A session row backs both the ``pharmacy.sid`` cookie and the ``sid`` claim of
bearer tokens. This module does NOT call db.commit(); the caller is
responsible for committing.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.orm import Session

from backend.app.core.config import settings
from backend.app.core.security import new_session_id
from backend.app.models.session import UserSession
from backend.app.models.user import User

logger = logging.getLogger(__name__)


def create_session(
    db: Session,
    user: User,
    *,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> UserSession:
    """Open a new session for *user* valid for ``SESSION_TTL_DAYS``."""
    now = datetime.now(timezone.utc)
    session = UserSession(
        session_id=new_session_id(),
        user_id=user.id,
        role=user.role,
        is_active=True,
        expires_at=now + timedelta(days=settings.SESSION_TTL_DAYS),
        user_agent=(user_agent or "")[:512] or None,
        ip_address=ip_address,
        last_activity=now,
    )
    db.add(session)
    db.flush()
    return session


def get_active_session(db: Session, session_id: str | None) -> UserSession | None:
    """Return the session if it is active and unexpired, touching last_activity."""
    if not session_id:
        return None
    now = datetime.now(timezone.utc)
    session = (
        db.query(UserSession)
        .filter(
            UserSession.session_id == session_id,
            UserSession.is_active.is_(True),
            UserSession.expires_at > now,
        )
        .first()
    )
    if session is None:
        return None
    session.last_activity = now
    db.flush()
    return session


def invalidate_session(db: Session, session_id: str | None) -> bool:
    if not session_id:
        return False
    updated = (
        db.query(UserSession)
        .filter(UserSession.session_id == session_id, UserSession.is_active.is_(True))
        .update({UserSession.is_active: False}, synchronize_session="fetch")
    )
    return updated > 0


def invalidate_user_sessions(db: Session, user_id: UUID) -> int:
    """Deactivate every open session of *user_id*. Returns how many closed."""
    updated = (
        db.query(UserSession)
        .filter(UserSession.user_id == user_id, UserSession.is_active.is_(True))
        .update({UserSession.is_active: False}, synchronize_session="fetch")
    )
    if updated:
        logger.info("Invalidated %d session(s) for user %s", updated, user_id)
    return updated


def cleanup_sessions(db: Session) -> int:
    """Delete expired and inactive sessions. Returns the number removed."""
    now = datetime.now(timezone.utc)
    removed = (
        db.query(UserSession)
        .filter(or_(UserSession.expires_at <= now, UserSession.is_active.is_(False)))
        .delete(synchronize_session=False)
    )
    return removed


def delete_all_sessions(db: Session) -> int:
    return db.query(UserSession).delete(synchronize_session=False)


def active_session_count(db: Session) -> int:
    now = datetime.now(timezone.utc)
    return (
        db.query(UserSession)
        .filter(UserSession.is_active.is_(True), UserSession.expires_at > now)
        .count()
    )
