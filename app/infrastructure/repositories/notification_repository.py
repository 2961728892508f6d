"""Persistence helpers for notification entities."""

from __future__ import annotations

import logging
import math
from collections.abc import AsyncIterator, Iterable, Mapping
from typing import Any, Callable
from uuid import uuid4

from anyio import create_memory_object_stream

from app.domain.entities import Notification, NotificationType
from app.domain.exceptions import StoreQueryError, StoreWriteError
from app.infrastructure.store import StoreAdapter, StoreError, SubscriptionHandle
from app.utils import now_in_millis

logger = logging.getLogger(__name__)

NOTIFICATIONS_COLLECTION = "notifications"
_RECIPIENT_FIELD = "userId"


def _new_notification_id() -> str:
    return str(uuid4())


class NotificationRepository:
    """Provide CRUD operations and live queries for :class:`Notification` objects."""

    def __init__(
        self,
        store: StoreAdapter,
        *,
        clock: Callable[[], int] = now_in_millis,
        id_factory: Callable[[], str] = _new_notification_id,
    ) -> None:
        self.store = store
        self._clock = clock
        self._id_factory = id_factory

    @staticmethod
    def path_for(notification_id: str) -> str:
        return f"{NOTIFICATIONS_COLLECTION}/{notification_id}"

    async def create(
        self,
        user_id: str,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
    ) -> Notification:
        """Write a new unread notification for ``user_id``.

        The record only exists once this coroutine returns; a failed write
        raises :class:`StoreWriteError`.
        """

        notification = Notification(
            id=self._id_factory(),
            user_id=user_id,
            title=title,
            message=message,
            timestamp=self._clock(),
            read=False,
            type=NotificationType.coerce(type),
        )
        logger.debug("Creating notification '%s' for user %s", title, user_id)
        try:
            await self.store.put(self.path_for(notification.id), self._to_record(notification))
        except StoreError as exc:
            logger.error("Could not create notification for user %s: %s", user_id, exc)
            raise StoreWriteError(f"Could not create notification: {exc}") from exc
        return notification

    async def get(self, notification_id: str) -> Notification | None:
        try:
            record = await self.store.get(self.path_for(notification_id))
        except StoreError as exc:
            raise StoreQueryError(f"Could not read notification: {exc}") from exc
        if record is None:
            return None
        return self._to_entity(record)

    async def list_for_user(self, user_id: str) -> list[Notification]:
        """Return the current notifications of ``user_id``, newest first."""

        try:
            records = await self.store.query_equals(
                NOTIFICATIONS_COLLECTION, _RECIPIENT_FIELD, user_id
            ).get()
        except StoreError as exc:
            raise StoreQueryError(f"Could not load notifications: {exc}") from exc
        return self._to_snapshot(records, user_id)

    async def mark_read(self, notification_id: str) -> None:
        """Set ``read`` on the notification. Absent ids are ignored."""

        logger.debug("Marking notification %s as read", notification_id)
        try:
            patched = await self.store.patch(self.path_for(notification_id), {"read": True})
        except StoreError as exc:
            logger.error("Could not mark notification %s as read: %s", notification_id, exc)
            raise StoreWriteError(f"Could not mark notification as read: {exc}") from exc
        if not patched:
            logger.info("Notification %s no longer exists; nothing to mark", notification_id)

    async def delete(self, notification_id: str) -> None:
        """Remove the notification. Deleting an absent id succeeds."""

        logger.debug("Deleting notification %s", notification_id)
        try:
            removed = await self.store.delete(self.path_for(notification_id))
        except StoreError as exc:
            logger.error("Could not delete notification %s: %s", notification_id, exc)
            raise StoreWriteError(f"Could not delete notification: {exc}") from exc
        if not removed:
            logger.info("Notification %s was already deleted", notification_id)

    async def subscribe_all(self, user_id: str) -> AsyncIterator[list[Notification]]:
        """Yield the full, newest-first list of ``user_id``'s notifications.

        One list is produced when the subscription attaches and another after
        every change matching the query. The stream raises
        :class:`StoreQueryError` if the store cancels the subscription; the
        underlying handle is released however iteration ends.
        """

        send, receive = create_memory_object_stream(math.inf)

        def on_snapshot(records: list[dict[str, Any]]) -> None:
            send.send_nowait(self._to_snapshot(records, user_id))

        def on_cancelled(error: Exception) -> None:
            send.send_nowait(StoreQueryError(f"Notification subscription cancelled: {error}"))

        handle = self._subscribe(user_id, on_snapshot=on_snapshot, on_cancelled=on_cancelled)
        try:
            async for item in receive:
                if isinstance(item, StoreQueryError):
                    logger.error("Notification subscription for %s ended: %s", user_id, item)
                    raise item
                yield item
        finally:
            handle.close()
            send.close()
            receive.close()

    async def subscribe_new_unread(self, user_id: str) -> AsyncIterator[Notification]:
        """Yield each unread notification added for ``user_id``.

        Changes and removals are not reported, so updating ``read`` never
        produces a new element. Records already present when the subscription
        attaches are reported as added.
        """

        send, receive = create_memory_object_stream(math.inf)

        def on_child_added(record: dict[str, Any]) -> None:
            notification = self._to_entity(record)
            if notification is None or notification.read or notification.user_id != user_id:
                return
            send.send_nowait(notification)

        def on_cancelled(error: Exception) -> None:
            send.send_nowait(StoreQueryError(f"Notification listener cancelled: {error}"))

        handle = self._subscribe(user_id, on_child_added=on_child_added, on_cancelled=on_cancelled)
        try:
            async for item in receive:
                if isinstance(item, StoreQueryError):
                    logger.error("Notification listener for %s ended: %s", user_id, item)
                    raise item
                yield item
        finally:
            handle.close()
            send.close()
            receive.close()

    def _subscribe(self, user_id: str, **callbacks: Any) -> SubscriptionHandle:
        try:
            return self.store.query_equals(
                NOTIFICATIONS_COLLECTION, _RECIPIENT_FIELD, user_id
            ).subscribe(**callbacks)
        except StoreError as exc:
            raise StoreQueryError(f"Could not subscribe to notifications: {exc}") from exc

    @classmethod
    def _to_snapshot(
        cls, records: Iterable[Mapping[str, Any]], user_id: str
    ) -> list[Notification]:
        notifications = [
            notification
            for notification in (cls._to_entity(record) for record in records)
            if notification is not None and notification.user_id == user_id
        ]
        return sorted(
            notifications,
            key=lambda notification: (notification.timestamp, notification.id),
            reverse=True,
        )

    @staticmethod
    def _to_record(notification: Notification) -> dict[str, Any]:
        return {
            "id": notification.id,
            "userId": notification.user_id,
            "title": notification.title,
            "message": notification.message,
            "timestamp": notification.timestamp,
            "read": notification.read,
            "type": notification.type.value,
        }

    @staticmethod
    def _to_entity(record: Mapping[str, Any]) -> Notification | None:
        timestamp = record.get("timestamp", 0)
        read = record.get("read", False)
        try:
            if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
                raise TypeError("timestamp must be a number")
            if isinstance(timestamp, float) and not math.isfinite(timestamp):
                raise ValueError("timestamp must be finite")
            if not isinstance(read, bool):
                raise TypeError("read must be a boolean")
            return Notification(
                id=str(record["id"]),
                user_id=str(record["userId"]),
                title=str(record.get("title") or ""),
                message=str(record.get("message") or ""),
                timestamp=int(timestamp),
                read=read,
                type=NotificationType.coerce(record.get("type")),
            )
        except (KeyError, TypeError, ValueError):
            logger.warning("Skipping malformed notification record %r", record.get("id"))
            return None


__all__ = ["NOTIFICATIONS_COLLECTION", "NotificationRepository"]
