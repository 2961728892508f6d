"""Realtime notification helpers for the infrastructure layer."""

from .manager import NotificationConnectionManager
from .presenter import WebSocketPresenter
from .publisher import serialize_notification, serialize_snapshot

__all__ = [
    "NotificationConnectionManager",
    "WebSocketPresenter",
    "serialize_notification",
    "serialize_snapshot",
]
