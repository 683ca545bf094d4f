from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from backend.app.models.notification import NotificationType


class NotificationOut(BaseModel):
    id: UUID
    type: NotificationType
    message: str
    product_id: UUID
    product_name: str
    is_read: bool
    read_at: datetime | None
    metadata: dict[str, Any] | None = Field(None, validation_alias="details")
    created_at: datetime | None = None

    class Config:
        from_attributes = True


class NotificationEnvelope(BaseModel):
    notification: NotificationOut


class NotificationListEnvelope(BaseModel):
    notifications: list[NotificationOut]


class UnreadCountOut(BaseModel):
    count: int


class MarkAllReadOut(BaseModel):
    message: str
    updated: int
