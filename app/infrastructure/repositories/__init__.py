"""Repository implementations for infrastructure layer."""

from .notification_repository import NOTIFICATIONS_COLLECTION, NotificationRepository
from .user_repository import USERS_COLLECTION, UserRepository

__all__ = [
    "NOTIFICATIONS_COLLECTION",
    "NotificationRepository",
    "USERS_COLLECTION",
    "UserRepository",
]
