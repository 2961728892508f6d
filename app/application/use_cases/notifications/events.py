"""Privileged helpers to create notifications for other users."""

from __future__ import annotations

import logging

from app.domain.entities import Notification, NotificationType
from app.domain.exceptions import AuthorizationError
from app.domain.ports import AuthCollaborator
from app.infrastructure.repositories import NotificationRepository, UserRepository

logger = logging.getLogger(__name__)


async def ensure_admin(auth: AuthCollaborator) -> str:
    """Return the signed-in user id, or raise when it is not an administrator."""

    user_id = auth.current_user_id()
    if not user_id:
        raise AuthorizationError("No user is signed in")
    if not await auth.is_admin(user_id):
        logger.warning("User %s tried to send a notification without admin role", user_id)
        raise AuthorizationError("Only administrators can send notifications")
    return user_id


async def send_notification(
    repository: NotificationRepository,
    auth: AuthCollaborator,
    *,
    user_id: str,
    title: str,
    message: str,
    type: NotificationType = NotificationType.INFO,
) -> Notification:
    """Create a notification for ``user_id`` as the signed-in administrator."""

    sender_id = await ensure_admin(auth)
    notification = await repository.create(user_id, title, message, type)
    logger.info(
        "User %s sent notification %s to %s", sender_id, notification.id, user_id
    )
    return notification


async def broadcast_notification(
    repository: NotificationRepository,
    users: UserRepository,
    auth: AuthCollaborator,
    *,
    title: str,
    message: str,
    type: NotificationType = NotificationType.INFO,
) -> list[Notification]:
    """Send the same notification to every non-admin user.

    A failed write stops the fan-out and propagates; notifications created
    before the failure are kept.
    """

    sender_id = await ensure_admin(auth)
    sent: list[Notification] = []
    for recipient in await users.list_recipients():
        sent.append(await repository.create(recipient.uid, title, message, type))
    logger.info("User %s broadcast '%s' to %d users", sender_id, title, len(sent))
    return sent


__all__ = ["broadcast_notification", "ensure_admin", "send_notification"]
