"""Read model of a user's notifications kept in sync with the store."""

from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing, suppress
from typing import Callable

from app.domain.entities import Notification, NotificationType, SyncState
from app.domain.exceptions import NotificationError, StoreQueryError
from app.domain.ports import AuthCollaborator
from app.infrastructure.repositories import NotificationRepository

from .events import send_notification

logger = logging.getLogger(__name__)

SyncListener = Callable[["NotificationSyncService"], None]


class NotificationSyncService:
    """Own the ordered notification list and status observed by a client.

    The list is replaced wholesale with every snapshot from the repository.
    At most one snapshot subscription is active per instance; loading again
    first cancels the previous one and waits for its cleanup. Failures only
    change the status, the last loaded list is kept.
    """

    def __init__(self, repository: NotificationRepository, auth: AuthCollaborator) -> None:
        self._repository = repository
        self._auth = auth
        self._notifications: tuple[Notification, ...] = ()
        self._state = SyncState.idle()
        self._user_id: str | None = None
        self._task: asyncio.Task[None] | None = None
        self._load_lock = asyncio.Lock()
        self._listeners: list[SyncListener] = []

    @property
    def notifications(self) -> tuple[Notification, ...]:
        return self._notifications

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def user_id(self) -> str | None:
        return self._user_id

    @property
    def subscribed(self) -> bool:
        return self._task is not None and not self._task.done()

    def add_listener(self, listener: SyncListener) -> Callable[[], None]:
        """Call ``listener`` after every change; returns a function removing it."""

        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def load(self, user_id: str | None = None) -> None:
        """Subscribe to ``user_id``'s notifications (default: signed-in user)."""

        async with self._load_lock:
            await self._cancel_subscription()
            target = user_id or self._auth.current_user_id()
            if not target:
                self._user_id = None
                self._set_state(SyncState.error("No user is signed in"))
                return
            self._user_id = target
            self._set_state(SyncState.loading())
            self._task = asyncio.get_running_loop().create_task(
                self._consume(target), name=f"notification-sync-{target}"
            )

    async def mark_as_read(self, notification_id: str) -> None:
        self._set_state(SyncState.loading())
        try:
            await self._repository.mark_read(notification_id)
        except NotificationError as exc:
            logger.error("Error marking notification %s as read: %s", notification_id, exc)
            self._set_state(SyncState.error(str(exc) or "Error marking notification as read"))
            return
        await self._reload()

    async def delete_notification(self, notification_id: str) -> None:
        self._set_state(SyncState.loading())
        try:
            await self._repository.delete(notification_id)
        except NotificationError as exc:
            logger.error("Error deleting notification %s: %s", notification_id, exc)
            self._set_state(SyncState.error(str(exc) or "Error deleting notification"))
            return
        await self._reload()

    async def create_notification(
        self,
        user_id: str,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
    ) -> Notification | None:
        """Send a notification to ``user_id`` as the signed-in administrator."""

        self._set_state(SyncState.loading())
        try:
            notification = await send_notification(
                self._repository,
                self._auth,
                user_id=user_id,
                title=title,
                message=message,
                type=type,
            )
        except NotificationError as exc:
            logger.error("Error creating notification for %s: %s", user_id, exc)
            self._set_state(SyncState.error(str(exc) or "Error creating notification"))
            return None
        await self._reload()
        return notification

    async def close(self) -> None:
        """Release the active subscription."""

        async with self._load_lock:
            await self._cancel_subscription()

    async def _reload(self) -> None:
        if self._user_id is None:
            self._set_state(SyncState.success())
            return
        await self.load(self._user_id)

    async def _consume(self, user_id: str) -> None:
        try:
            async with aclosing(self._repository.subscribe_all(user_id)) as snapshots:
                async for snapshot in snapshots:
                    logger.debug("Loaded %d notifications for %s", len(snapshot), user_id)
                    self._notifications = tuple(snapshot)
                    self._set_state(SyncState.success())
        except StoreQueryError as exc:
            logger.error("Error loading notifications for %s: %s", user_id, exc)
            self._set_state(SyncState.error(str(exc) or "Error loading notifications"))
        except Exception as exc:
            logger.exception("Unexpected error loading notifications for %s", user_id)
            self._set_state(SyncState.error(str(exc) or "Error loading notifications"))

    async def _cancel_subscription(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task

    def _set_state(self, state: SyncState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:  # pragma: no cover
                logger.exception("Notification listener %r failed", listener)


__all__ = ["NotificationSyncService", "SyncListener"]
