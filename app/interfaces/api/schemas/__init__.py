from .notification import (
    NotificationBroadcast,
    NotificationCreate,
    NotificationRead,
    RemotePush,
    RemotePushResult,
)
from .user import DeviceTokenUpdate, UserCreate, UserProfileUpdate, UserRead

__all__ = [
    "DeviceTokenUpdate",
    "NotificationBroadcast",
    "NotificationCreate",
    "NotificationRead",
    "RemotePush",
    "RemotePushResult",
    "UserCreate",
    "UserProfileUpdate",
    "UserRead",
]
