"""Notification read model, delivery and sending use cases."""

from .delivery import DEFAULT_DEDUPE_CAPACITY, DeliveryDispatcher
from .events import broadcast_notification, ensure_admin, send_notification
from .listeners import DeliveryRegistry, PresenterFactory
from .sync_service import NotificationSyncService, SyncListener

__all__ = [
    "DEFAULT_DEDUPE_CAPACITY",
    "DeliveryDispatcher",
    "DeliveryRegistry",
    "NotificationSyncService",
    "PresenterFactory",
    "SyncListener",
    "broadcast_notification",
    "ensure_admin",
    "send_notification",
]
