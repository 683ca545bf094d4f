from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from backend.app.api.permission_deps import require_admin, require_storekeeper
from backend.app.core.database import get_db
from backend.app.core.exceptions import NotFoundError
from backend.app.models.user import User
from backend.app.schemas.notification import (
    MarkAllReadOut,
    NotificationEnvelope,
    NotificationListEnvelope,
    UnreadCountOut,
)
from backend.app.schemas.user import MessageOut
from backend.app.services.notifications import (
    delete_notification,
    list_notifications,
    mark_all_read,
    mark_read,
    unread_count,
)

router = APIRouter()


@router.get("", response_model=NotificationListEnvelope)
def list_all_notifications(
    is_read: bool | None = Query(None),
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_storekeeper),
) -> dict:
    return {"notifications": list_notifications(db, is_read=is_read, limit=limit)}


@router.get("/count", response_model=UnreadCountOut)
def count_unread(
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_storekeeper),
) -> dict[str, int]:
    return {"count": unread_count(db)}


@router.patch("/read-all", response_model=MarkAllReadOut)
def read_all(
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_storekeeper),
) -> dict:
    updated = mark_all_read(db)
    db.commit()
    return {"message": "All notifications marked as read", "updated": updated}


@router.patch("/{notification_id}/read", response_model=NotificationEnvelope)
def read_one(
    notification_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_storekeeper),
) -> dict:
    try:
        notification = mark_read(db, notification_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    db.commit()
    db.refresh(notification)
    return {"notification": notification}


@router.delete("/{notification_id}", response_model=MessageOut)
def remove_notification(
    notification_id: UUID,
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_admin),
) -> dict[str, str]:
    try:
        delete_notification(db, notification_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    db.commit()
    return {"message": "Notification deleted"}
