"""Domain entity representing a user."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """Directory entry for a user that can send or receive notifications."""

    uid: str
    email: str
    name: str
    admin: bool = False
    device_token: str | None = None

    def is_admin(self) -> bool:
        """Return ``True`` when the user may send notifications to others."""

        return self.admin


__all__ = ["User"]
