"""Presenter that renders alerts on the recipient's websocket clients."""

from __future__ import annotations

from app.domain.entities import AlertColor, AlertPriority
from app.domain.exceptions import PresentationError

from .manager import NotificationConnectionManager


class WebSocketPresenter:
    """Send alerts for one recipient through its open websockets."""

    def __init__(self, manager: NotificationConnectionManager, user_id: str) -> None:
        self._manager = manager
        self._user_id = user_id

    async def show(
        self,
        *,
        title: str,
        body: str,
        color: AlertColor,
        priority: AlertPriority,
        dedupe_key: str,
    ) -> None:
        message = {
            "type": "alert",
            "data": {
                "title": title,
                "body": body,
                "color": color.value,
                "priority": priority.value,
                "dedupe_key": dedupe_key,
            },
        }
        if not await self._manager.send_to_user(self._user_id, message):
            raise PresentationError(f"No open connection for user {self._user_id}")


__all__ = ["WebSocketPresenter"]
