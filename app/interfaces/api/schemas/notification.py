"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from app.domain.entities import NotificationType


class NotificationCreate(BaseModel):
    """Payload used by an administrator to notify a single user."""

    user_id: str = Field(..., min_length=1, description="Destinatario de la notificación")
    title: str = Field(..., min_length=1, max_length=120)
    message: str = Field(..., min_length=1)
    type: NotificationType = NotificationType.INFO


class NotificationBroadcast(BaseModel):
    """Payload used by an administrator to notify every non-admin user."""

    title: str = Field(..., min_length=1, max_length=120)
    message: str = Field(..., min_length=1)
    type: NotificationType = NotificationType.INFO


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    id: str
    user_id: str
    title: str
    message: str
    timestamp: int
    created_at: datetime
    read: bool
    type: NotificationType


class RemotePush(BaseModel):
    """Payload relayed by the push transport to a registered device."""

    token: str = Field(..., min_length=1, max_length=4096)
    id: str | None = None
    title: str | None = None
    message: str | None = None
    type: str | None = None


class RemotePushResult(BaseModel):
    presented: bool


__all__ = [
    "NotificationBroadcast",
    "NotificationCreate",
    "NotificationRead",
    "RemotePush",
    "RemotePushResult",
]
