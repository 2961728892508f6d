"""Turn newly observed unread notifications into rendered alerts."""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from collections.abc import Mapping
from contextlib import aclosing, suppress
from typing import Any
from uuid import uuid4

from app.domain.entities import Notification, NotificationType, presentation_for
from app.domain.exceptions import PresentationError, StoreQueryError
from app.domain.ports import Presenter
from app.infrastructure.repositories import NotificationRepository

logger = logging.getLogger(__name__)

DEFAULT_DEDUPE_CAPACITY = 256
DEFAULT_REMOTE_TITLE = "New notification"


class DeliveryDispatcher:
    """Show one alert per distinct notification id for a single recipient.

    Ids are remembered in a bounded, least-recently-seen set so replays after
    a reconnection are not rendered again. Presentation failures are logged
    and never stop the listener.
    """

    def __init__(
        self,
        repository: NotificationRepository,
        presenter: Presenter,
        *,
        capacity: int = DEFAULT_DEDUPE_CAPACITY,
    ) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self._repository = repository
        self._presenter = presenter
        self._capacity = capacity
        self._seen: OrderedDict[str, None] = OrderedDict()
        self._task: asyncio.Task[None] | None = None
        self._user_id: str | None = None
        self._lock = asyncio.Lock()

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def listening(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self, user_id: str) -> None:
        """Listen for new unread notifications of ``user_id``.

        Any previous listener of this dispatcher is torn down first.
        """

        async with self._lock:
            await self._stop_listener()
            self._user_id = user_id
            logger.info("Listening for new notifications of %s", user_id)
            self._task = asyncio.get_running_loop().create_task(
                self._listen(user_id), name=f"notification-delivery-{user_id}"
            )

    async def stop(self) -> None:
        async with self._lock:
            await self._stop_listener()

    async def _stop_listener(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        logger.info("Stopping notification listener of %s", self._user_id)
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task

    async def deliver(self, notification: Notification) -> bool:
        """Render ``notification`` unless its id was already delivered."""

        return await self._show(
            title=notification.title,
            body=notification.message,
            type=notification.type,
            dedupe_key=notification.id,
        )

    async def present_remote(self, payload: Mapping[str, Any]) -> bool:
        """Render a payload received from a remote push transport."""

        dedupe_key = str(payload.get("id") or f"remote-{uuid4()}")
        return await self._show(
            title=str(payload.get("title") or DEFAULT_REMOTE_TITLE),
            body=str(payload.get("message") or ""),
            type=NotificationType.coerce(payload.get("type")),
            dedupe_key=dedupe_key,
        )

    def _remember(self, dedupe_key: str) -> bool:
        if dedupe_key in self._seen:
            self._seen.move_to_end(dedupe_key)
            return False
        self._seen[dedupe_key] = None
        while len(self._seen) > self._capacity:
            self._seen.popitem(last=False)
        return True

    async def _show(
        self, *, title: str, body: str, type: NotificationType, dedupe_key: str
    ) -> bool:
        if not self._remember(dedupe_key):
            logger.debug("Notification %s was already presented", dedupe_key)
            return False
        presentation = presentation_for(type)
        try:
            await self._presenter.show(
                title=title,
                body=body,
                color=presentation.color,
                priority=presentation.priority,
                dedupe_key=dedupe_key,
            )
        except PresentationError as exc:
            logger.warning("Could not present notification %s: %s", dedupe_key, exc)
            return False
        except Exception:
            logger.exception("Unexpected error presenting notification %s", dedupe_key)
            return False
        return True

    async def _listen(self, user_id: str) -> None:
        try:
            async with aclosing(self._repository.subscribe_new_unread(user_id)) as stream:
                async for notification in stream:
                    logger.debug("New notification %s for %s", notification.id, user_id)
                    await self.deliver(notification)
        except StoreQueryError as exc:
            logger.error("Notification listener of %s stopped: %s", user_id, exc)


__all__ = ["DEFAULT_DEDUPE_CAPACITY", "DeliveryDispatcher"]
