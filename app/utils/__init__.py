"""Utility helpers for reusable functionality."""

from .datetime import (
    get_app_timezone,
    millis_to_app_datetime,
    now_in_millis,
)

__all__ = [
    "get_app_timezone",
    "millis_to_app_datetime",
    "now_in_millis",
]
