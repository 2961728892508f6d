"""Interfaces of the collaborators the notification core depends on."""

from __future__ import annotations

from typing import Protocol

from app.domain.entities import AlertColor, AlertPriority


class AuthCollaborator(Protocol):
    """Identity of the signed-in user and their role."""

    def current_user_id(self) -> str | None:
        ...

    async def is_admin(self, user_id: str) -> bool:
        ...


class Presenter(Protocol):
    """Renders an alert on the recipient's device."""

    async def show(
        self,
        *,
        title: str,
        body: str,
        color: AlertColor,
        priority: AlertPriority,
        dedupe_key: str,
    ) -> None:
        ...


__all__ = ["AuthCollaborator", "Presenter"]
