"""Shared fixtures for the notification service tests."""

from __future__ import annotations

import itertools
from typing import Any, Awaitable, Callable

import anyio
import pytest

from app.config import reset_settings_cache
from app.domain.entities import AlertColor, AlertPriority
from app.domain.exceptions import PresentationError
from app.infrastructure.repositories import NotificationRepository
from app.infrastructure.store import MemoryStore


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def settings_env(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("STORE_BACKEND", "memory")
    reset_settings_cache()
    yield
    reset_settings_cache()


async def _eventually(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    with anyio.fail_after(timeout):
        while not predicate():
            await anyio.sleep(0.01)


@pytest.fixture
def eventually() -> Callable[..., Awaitable[None]]:
    """Wait until ``predicate`` holds, failing after ``timeout`` seconds."""

    return _eventually


class FakePresenter:
    def __init__(self) -> None:
        self.shown: list[dict[str, Any]] = []
        self.fail_with: Exception | None = None

    async def show(
        self,
        *,
        title: str,
        body: str,
        color: AlertColor,
        priority: AlertPriority,
        dedupe_key: str,
    ) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.shown.append(
            {
                "title": title,
                "body": body,
                "color": color,
                "priority": priority,
                "dedupe_key": dedupe_key,
            }
        )


class FakeAuth:
    def __init__(self, user_id: str | None = None, admins: set[str] | None = None) -> None:
        self.user_id = user_id
        self.admins = admins or set()

    def current_user_id(self) -> str | None:
        return self.user_id

    async def is_admin(self, user_id: str) -> bool:
        return user_id in self.admins


@pytest.fixture
def presenter() -> FakePresenter:
    return FakePresenter()


@pytest.fixture
def failing_presenter() -> FakePresenter:
    presenter = FakePresenter()
    presenter.fail_with = PresentationError("no channel")
    return presenter


@pytest.fixture
def make_auth() -> Callable[..., FakeAuth]:
    return FakeAuth


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def repository(store: MemoryStore) -> NotificationRepository:
    ticks = itertools.count(1)
    ids = itertools.count(1)
    return NotificationRepository(
        store,
        clock=lambda: next(ticks),
        id_factory=lambda: f"n{next(ids)}",
    )
