"""Signed-in user resolution backed by the user directory."""

from __future__ import annotations

import logging

from app.infrastructure.repositories import UserRepository

logger = logging.getLogger(__name__)


class UserSession:
    """Identity of the current user and their role.

    Authentication itself happens elsewhere; the session only records which
    user was authenticated and looks up roles in the user directory.
    """

    def __init__(self, users: UserRepository, user_id: str | None = None) -> None:
        self._users = users
        self._user_id = user_id

    def current_user_id(self) -> str | None:
        return self._user_id

    async def is_admin(self, user_id: str) -> bool:
        user = await self._users.get(user_id)
        if user is None:
            logger.info("User %s is not registered in the directory", user_id)
            return False
        return user.is_admin()


__all__ = ["UserSession"]
