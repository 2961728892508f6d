"""Persistence helpers for user directory entries."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from app.domain.entities import User
from app.domain.exceptions import StoreQueryError, StoreWriteError
from app.infrastructure.store import StoreAdapter, StoreError

logger = logging.getLogger(__name__)

USERS_COLLECTION = "users"
_DEVICE_TOKEN_FIELD = "fcmToken"


class UserRepository:
    """Read and write :class:`User` records kept under ``users/<uid>``."""

    def __init__(self, store: StoreAdapter) -> None:
        self.store = store

    async def get(self, uid: str) -> User | None:
        try:
            record = await self.store.get(f"{USERS_COLLECTION}/{uid}")
        except StoreError as exc:
            raise StoreQueryError(f"Could not read user: {exc}") from exc
        return self._to_entity(record) if record is not None else None

    async def save(self, user: User) -> User:
        try:
            await self.store.put(f"{USERS_COLLECTION}/{user.uid}", self._to_record(user))
        except StoreError as exc:
            logger.error("Could not save user %s: %s", user.uid, exc)
            raise StoreWriteError(f"Could not save user: {exc}") from exc
        return user

    async def list_by_device_token(self, token: str) -> list[User]:
        try:
            records = await self.store.query_equals(
                USERS_COLLECTION, _DEVICE_TOKEN_FIELD, token
            ).get()
        except StoreError as exc:
            raise StoreQueryError(f"Could not look up device token: {exc}") from exc
        return sorted((self._to_entity(record) for record in records), key=lambda user: user.uid)

    async def find_by_device_token(self, token: str) -> User | None:
        """Return the user whose registered push channel is ``token``."""

        holders = await self.list_by_device_token(token)
        if len(holders) > 1:
            logger.warning("Device token is registered for %d users", len(holders))
        return holders[0] if holders else None

    async def list_users(self) -> Sequence[User]:
        try:
            records = await self.store.list(USERS_COLLECTION)
        except StoreError as exc:
            raise StoreQueryError(f"Could not list users: {exc}") from exc
        users = [self._to_entity(record) for record in records]
        return sorted(users, key=lambda user: (user.name.lower(), user.uid))

    async def list_recipients(self) -> Sequence[User]:
        """Return the users that receive broadcasts (every non-admin)."""

        return [user for user in await self.list_users() if not user.is_admin()]

    @staticmethod
    def _to_record(user: User) -> dict[str, Any]:
        return {
            "uid": user.uid,
            "email": user.email,
            "name": user.name,
            "admin": user.admin,
            _DEVICE_TOKEN_FIELD: user.device_token,
        }

    @staticmethod
    def _to_entity(record: Mapping[str, Any]) -> User:
        return User(
            uid=str(record.get("uid") or ""),
            email=str(record.get("email") or ""),
            name=str(record.get("name") or ""),
            admin=bool(record.get("admin", False)),
            device_token=record.get(_DEVICE_TOKEN_FIELD) or None,
        )


__all__ = ["USERS_COLLECTION", "UserRepository"]
