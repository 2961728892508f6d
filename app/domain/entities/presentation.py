"""Visual attributes used when a notification is rendered as an alert."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .notification import NotificationType


class AlertColor(str, Enum):
    INFO_BLUE = "#2196F3"
    AMBER = "#FFC107"
    RED = "#F44336"
    GREEN = "#4CAF50"


class AlertPriority(str, Enum):
    DEFAULT = "default"
    HIGH = "high"


@dataclass(frozen=True)
class Presentation:
    color: AlertColor
    priority: AlertPriority


PRESENTATIONS: dict[NotificationType, Presentation] = {
    NotificationType.INFO: Presentation(AlertColor.INFO_BLUE, AlertPriority.DEFAULT),
    NotificationType.WARNING: Presentation(AlertColor.AMBER, AlertPriority.DEFAULT),
    NotificationType.ERROR: Presentation(AlertColor.RED, AlertPriority.HIGH),
    NotificationType.SUCCESS: Presentation(AlertColor.GREEN, AlertPriority.DEFAULT),
}


def presentation_for(notification_type: NotificationType) -> Presentation:
    """Return the alert styling for ``notification_type``."""

    return PRESENTATIONS[notification_type]


__all__ = [
    "AlertColor",
    "AlertPriority",
    "Presentation",
    "PRESENTATIONS",
    "presentation_for",
]
