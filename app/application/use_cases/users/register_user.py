"""Use cases for creating user directory entries."""

from __future__ import annotations

import logging
from dataclasses import replace

from app.domain.entities import User
from app.domain.exceptions import AuthorizationError
from app.domain.ports import AuthCollaborator
from app.infrastructure.repositories import UserRepository

logger = logging.getLogger(__name__)


async def register_user(
    users: UserRepository,
    *,
    uid: str,
    email: str,
    name: str,
) -> User:
    """Create or update the caller's own profile. Never grants admin."""

    existing = await users.get(uid)
    if existing is None:
        return await users.save(User(uid=uid, email=email, name=name))
    return await users.save(replace(existing, email=email, name=name))


async def create_user(
    users: UserRepository,
    auth: AuthCollaborator,
    *,
    uid: str,
    email: str,
    name: str,
    admin: bool = False,
) -> User:
    """Create a user on behalf of an administrator."""

    actor_id = auth.current_user_id()
    if not actor_id or not await auth.is_admin(actor_id):
        raise AuthorizationError("Only administrators can create users")
    existing = await users.get(uid)
    device_token = existing.device_token if existing is not None else None
    return await users.save(
        User(uid=uid, email=email, name=name, admin=admin, device_token=device_token)
    )


async def register_device_token(users: UserRepository, *, uid: str, token: str) -> User | None:
    """Attach the push channel ``token`` to a registered user.

    A token identifies one device, so it is removed from any other user it
    was registered for. Returns ``None`` when ``uid`` is not registered.
    """

    user = await users.get(uid)
    if user is None:
        return None
    for holder in await users.list_by_device_token(token):
        if holder.uid != uid:
            logger.info("Moving device token from %s to %s", holder.uid, uid)
            await users.save(replace(holder, device_token=None))
    return await users.save(replace(user, device_token=token))


__all__ = ["create_user", "register_device_token", "register_user"]
