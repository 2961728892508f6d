"""Serialization of notifications and read-model snapshots for clients."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from app.domain.entities import Notification, SyncState
from app.utils import millis_to_app_datetime


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the JSON payload representation for ``notification``."""

    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "title": notification.title,
        "message": notification.message,
        "timestamp": notification.timestamp,
        "created_at": millis_to_app_datetime(notification.timestamp).isoformat(),
        "read": notification.read,
        "type": notification.type.value,
    }


def serialize_snapshot(
    state: SyncState, notifications: Iterable[Notification]
) -> dict[str, Any]:
    """Return the websocket message describing a read model."""

    return {
        "type": "snapshot",
        "status": state.status.value,
        "reason": state.reason,
        "data": [serialize_notification(notification) for notification in notifications],
    }


__all__ = ["serialize_notification", "serialize_snapshot"]
