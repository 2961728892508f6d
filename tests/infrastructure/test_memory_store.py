"""Tests for the in-memory store adapter and its change feed."""

from __future__ import annotations

import pytest

from app.infrastructure.store import MemoryStore, StoreError, SubscriptionCancelledError, split_path

pytestmark = pytest.mark.anyio


def test_split_path_rejects_nested_or_empty_paths():
    assert split_path("notifications/abc") == ("notifications", "abc")
    assert split_path("/users/u1/") == ("users", "u1")
    for path in ("notifications", "a/b/c", "/x", ""):
        with pytest.raises(StoreError):
            split_path(path)


async def test_put_get_and_list_return_copies():
    store = MemoryStore({"users/u1": {"uid": "u1", "name": "Ana"}})

    record = await store.get("users/u1")
    record["name"] = "changed"

    assert (await store.get("users/u1"))["name"] == "Ana"
    await store.put("users/u2", {"uid": "u2", "name": "Bea"})
    assert sorted(r["uid"] for r in await store.list("users")) == ["u1", "u2"]
    assert await store.get("users/missing") is None


async def test_patch_and_delete_report_absent_records():
    store = MemoryStore({"notifications/n1": {"id": "n1", "read": False}})

    assert await store.patch("notifications/n1", {"read": True}) is True
    assert (await store.get("notifications/n1"))["read"] is True
    assert await store.patch("notifications/missing", {"read": True}) is False
    assert await store.get("notifications/missing") is None

    assert await store.delete("notifications/n1") is True
    assert await store.delete("notifications/n1") is False


async def test_subscription_receives_initial_children_then_snapshot(eventually):
    store = MemoryStore(
        {
            "notifications/n1": {"id": "n1", "userId": "u1"},
            "notifications/n2": {"id": "n2", "userId": "u2"},
        }
    )
    events: list[tuple[str, object]] = []

    handle = store.query_equals("notifications", "userId", "u1").subscribe(
        on_snapshot=lambda records: events.append(("snapshot", [r["id"] for r in records])),
        on_child_added=lambda record: events.append(("added", record["id"])),
    )
    await eventually(lambda: len(events) == 2)

    assert events == [("added", "n1"), ("snapshot", ["n1"])]
    handle.close()


async def test_writes_publish_child_added_and_fresh_snapshots(eventually):
    store = MemoryStore()
    added: list[str] = []
    snapshots: list[list[str]] = []
    store.query_equals("notifications", "userId", "u1").subscribe(
        on_snapshot=lambda records: snapshots.append(sorted(r["id"] for r in records)),
        on_child_added=lambda record: added.append(record["id"]),
    )
    await eventually(lambda: snapshots == [[]])

    await store.put("notifications/n1", {"id": "n1", "userId": "u1", "read": False})
    await store.put("notifications/x", {"id": "x", "userId": "other"})
    await store.patch("notifications/n1", {"read": True})
    await store.delete("notifications/n1")
    await eventually(lambda: len(snapshots) == 4)

    assert added == ["n1"]
    assert snapshots == [[], ["n1"], ["n1"], []]


async def test_closed_handle_stops_callbacks(eventually):
    store = MemoryStore()
    snapshots: list[list[dict]] = []
    handle = store.query_equals("notifications", "userId", "u1").subscribe(
        on_snapshot=snapshots.append
    )
    await eventually(lambda: len(snapshots) == 1)

    handle.close()
    handle.close()
    await store.put("notifications/n1", {"id": "n1", "userId": "u1"})

    assert not handle.active
    assert store.active_subscriptions() == 0
    assert len(snapshots) == 1


async def test_cancel_subscriptions_notifies_owner(eventually):
    store = MemoryStore()
    errors: list[Exception] = []
    handle = store.query_equals("notifications", "userId", "u1").subscribe(
        on_cancelled=errors.append
    )
    store.query_equals("users", "admin", True).subscribe()

    assert store.cancel_subscriptions("notifications", "permission denied") == 1
    await eventually(lambda: len(errors) == 1)

    assert isinstance(errors[0], SubscriptionCancelledError)
    assert not handle.active
    assert store.active_subscriptions("notifications") == 0
    assert store.active_subscriptions("users") == 1
