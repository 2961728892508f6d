"""Tests for the privileged notification and user directory use cases."""

from __future__ import annotations

import pytest

from app.application.use_cases.notifications import (
    broadcast_notification,
    ensure_admin,
    send_notification,
)
from app.application.use_cases.users import (
    UserSession,
    create_user,
    register_device_token,
    register_user,
)
from app.domain.entities import NotificationType, User
from app.domain.exceptions import AuthorizationError
from app.infrastructure.repositories import UserRepository

pytestmark = pytest.mark.anyio


@pytest.fixture
def users(store) -> UserRepository:
    return UserRepository(store)


@pytest.fixture
async def directory(users) -> UserRepository:
    await users.save(User(uid="root", email="root@x", name="Root", admin=True))
    await users.save(User(uid="u1", email="u1@x", name="Ana"))
    await users.save(User(uid="u2", email="u2@x", name="Bea"))
    return users


async def test_ensure_admin_rejects_anonymous_and_regular_users(directory):
    with pytest.raises(AuthorizationError):
        await ensure_admin(UserSession(directory))
    with pytest.raises(AuthorizationError):
        await ensure_admin(UserSession(directory, "u1"))
    with pytest.raises(AuthorizationError):
        await ensure_admin(UserSession(directory, "unknown"))

    assert await ensure_admin(UserSession(directory, "root")) == "root"


async def test_send_notification_as_admin(repository, directory):
    notification = await send_notification(
        repository,
        UserSession(directory, "root"),
        user_id="u1",
        title="Hi",
        message="There",
        type=NotificationType.WARNING,
    )

    stored = await repository.list_for_user("u1")
    assert [n.id for n in stored] == [notification.id]
    assert stored[0].type is NotificationType.WARNING


async def test_send_notification_denied_writes_nothing(repository, directory):
    with pytest.raises(AuthorizationError):
        await send_notification(
            repository, UserSession(directory, "u1"), user_id="u2", title="t", message="m"
        )

    assert await repository.list_for_user("u2") == []


async def test_broadcast_reaches_every_non_admin(repository, directory):
    sent = await broadcast_notification(
        repository, directory, UserSession(directory, "root"), title="All", message="m"
    )

    assert sorted(n.user_id for n in sent) == ["u1", "u2"]
    assert await repository.list_for_user("root") == []


async def test_register_user_never_grants_admin(directory):
    created = await register_user(directory, uid="u3", email="u3@x", name="Cid")
    assert created.admin is False

    updated = await register_user(directory, uid="root", email="new@x", name="Root")
    assert updated.admin is True
    assert (await directory.get("root")).email == "new@x"


async def test_create_user_requires_admin(directory):
    with pytest.raises(AuthorizationError):
        await create_user(
            directory, UserSession(directory, "u1"), uid="x", email="x@x", name="X", admin=True
        )

    created = await create_user(
        directory, UserSession(directory, "root"), uid="x", email="x@x", name="X", admin=True
    )
    assert created.is_admin()
    assert await UserSession(directory, "x").is_admin("x") is True


async def test_device_token_moves_to_the_latest_user(directory):
    assert await register_device_token(directory, uid="ghost", token="tok") is None

    first = await register_device_token(directory, uid="u1", token="tok")
    assert first.device_token == "tok"

    await register_device_token(directory, uid="u2", token="tok")

    assert (await directory.get("u1")).device_token is None
    assert (await directory.get("u2")).device_token == "tok"
    assert (await directory.find_by_device_token("tok")).uid == "u2"


async def test_profile_updates_keep_the_device_token(directory):
    await register_device_token(directory, uid="u1", token="tok")

    updated = await register_user(directory, uid="u1", email="new@x", name="Ana")

    assert updated.device_token == "tok"
    assert updated.email == "new@x"
