"""Domain entity representing a user notification."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class NotificationType(str, Enum):
    """Severity of a notification, used to pick how it is presented."""

    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    SUCCESS = "SUCCESS"

    @classmethod
    def coerce(cls, value: Any) -> "NotificationType":
        """Return the member matching ``value`` or ``INFO`` when unknown."""

        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return cls.INFO


@dataclass(frozen=True)
class Notification:
    """Message delivered to exactly one recipient.

    ``timestamp`` is the creation time in milliseconds since the epoch and is
    the display order (newest first). Only ``read`` ever changes after the
    record is written.
    """

    id: str
    user_id: str
    title: str
    message: str
    timestamp: int
    read: bool = False
    type: NotificationType = NotificationType.INFO


__all__ = ["Notification", "NotificationType"]
