"""Domain entities exposed by the application."""

from .notification import Notification, NotificationType
from .presentation import (
    PRESENTATIONS,
    AlertColor,
    AlertPriority,
    Presentation,
    presentation_for,
)
from .sync_state import SyncState, SyncStatus
from .user import User

__all__ = [
    "Notification",
    "NotificationType",
    "AlertColor",
    "AlertPriority",
    "Presentation",
    "PRESENTATIONS",
    "presentation_for",
    "SyncState",
    "SyncStatus",
    "User",
]
