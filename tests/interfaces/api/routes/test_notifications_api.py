"""Integration tests for the notification and user directory endpoints."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app.infrastructure.security import create_access_token
from app.infrastructure.store import MemoryStore, StoreError
from main import create_app

SEED = {
    "users/root": {"uid": "root", "email": "root@example.com", "name": "Root", "admin": True},
    "users/u1": {"uid": "u1", "email": "u1@example.com", "name": "Ana", "admin": False},
    "users/u2": {"uid": "u2", "email": "u2@example.com", "name": "Bea", "admin": False},
    "notifications/old": {
        "id": "old",
        "userId": "u1",
        "title": "Old",
        "message": "m",
        "timestamp": 1000,
        "read": True,
        "type": "INFO",
    },
    "notifications/new": {
        "id": "new",
        "userId": "u1",
        "title": "New",
        "message": "m",
        "timestamp": 2000,
        "read": False,
        "type": "ERROR",
    },
    "notifications/theirs": {
        "id": "theirs",
        "userId": "u2",
        "title": "Theirs",
        "message": "m",
        "timestamp": 1500,
        "read": False,
        "type": "INFO",
    },
}


class UnavailableStore(MemoryStore):
    async def _scan(self, collection):
        raise StoreError("backend offline")


def _auth(user_id: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
def client():
    app = create_app(store=MemoryStore(SEED))
    with TestClient(app) as test_client:
        yield test_client


def test_requests_without_valid_token_are_rejected(client: TestClient) -> None:
    assert client.get("/notifications/").status_code == 401
    response = client.get("/notifications/", headers={"Authorization": "Bearer nope"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Credenciales inválidas"


def test_list_returns_only_own_notifications_newest_first(client: TestClient) -> None:
    response = client.get("/notifications/", headers=_auth("u1"))

    assert response.status_code == 200
    payload = response.json()
    assert [item["id"] for item in payload] == ["new", "old"]
    assert payload[0]["type"] == "ERROR"
    assert payload[0]["created_at"].startswith("1970-01-01T00:00:02")


def test_only_admins_can_send_notifications(client: TestClient) -> None:
    body = {"user_id": "u2", "title": "Hello", "message": "World", "type": "SUCCESS"}

    assert client.post("/notifications/", json=body, headers=_auth("u1")).status_code == 403

    response = client.post("/notifications/", json=body, headers=_auth("root"))
    assert response.status_code == 201
    created = response.json()
    assert created["user_id"] == "u2"
    assert created["read"] is False

    listed = client.get("/notifications/", headers=_auth("u2")).json()
    assert listed[0]["id"] == created["id"]


def test_broadcast_targets_non_admin_users(client: TestClient) -> None:
    body = {"title": "Maintenance", "message": "Tonight"}

    assert client.post("/notifications/broadcast", json=body, headers=_auth("u2")).status_code == 403

    response = client.post("/notifications/broadcast", json=body, headers=_auth("root"))
    assert response.status_code == 201
    assert sorted(item["user_id"] for item in response.json()) == ["u1", "u2"]
    assert client.get("/notifications/", headers=_auth("root")).json() == []


def test_mark_read_and_delete_own_notifications(client: TestClient) -> None:
    assert client.post("/notifications/theirs/read", headers=_auth("u1")).status_code == 403
    assert client.delete("/notifications/theirs", headers=_auth("u1")).status_code == 403

    assert client.post("/notifications/new/read", headers=_auth("u1")).status_code == 204
    assert client.delete("/notifications/old", headers=_auth("u1")).status_code == 204
    assert client.delete("/notifications/missing", headers=_auth("u1")).status_code == 204
    assert client.post("/notifications/missing/read", headers=_auth("u1")).status_code == 204

    listed = client.get("/notifications/", headers=_auth("u1")).json()
    assert [(item["id"], item["read"]) for item in listed] == [("new", True)]


def test_store_failures_map_to_service_unavailable() -> None:
    app = create_app(store=UnavailableStore())
    with TestClient(app) as test_client:
        response = test_client.get("/notifications/", headers=_auth("u1"))

    assert response.status_code == 503


def test_user_profile_registration(client: TestClient) -> None:
    assert client.get("/users/me", headers=_auth("u9")).status_code == 404

    response = client.put(
        "/users/me",
        json={"email": "u9@example.com", "name": "Nina"},
        headers=_auth("u9"),
    )
    assert response.status_code == 200
    assert response.json() == {
        "uid": "u9",
        "email": "u9@example.com",
        "name": "Nina",
        "admin": False,
        "device_token": None,
    }
    assert client.get("/users/me", headers=_auth("u9")).json()["name"] == "Nina"


def test_user_directory_is_admin_only(client: TestClient) -> None:
    assert client.get("/users/", headers=_auth("u1")).status_code == 403
    new_admin = {"uid": "ops", "email": "ops@example.com", "name": "Ops", "admin": True}
    assert client.post("/users/", json=new_admin, headers=_auth("u1")).status_code == 403

    response = client.post("/users/", json=new_admin, headers=_auth("root"))
    assert response.status_code == 201

    listed = client.get("/users/", headers=_auth("ops")).json()
    assert [user["uid"] for user in listed] == ["u1", "u2", "ops", "root"]


def test_websocket_rejects_invalid_tokens(client: TestClient) -> None:
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/notifications/ws?token=nope") as websocket:
            websocket.receive_json()

    assert exc_info.value.code == 1008


def _receive_until(websocket, predicate, seen, limit=20):
    for _ in range(limit):
        message = websocket.receive_json()
        seen.append(message)
        if predicate(message):
            return message
    raise AssertionError(f"Expected message not received: {seen}")


def _is_loaded_snapshot(message, read: bool) -> bool:
    return (
        message["type"] == "snapshot"
        and message["status"] == "success"
        and [item["id"] for item in message["data"]] == ["new", "old"]
        and message["data"][0]["read"] is read
    )


def test_websocket_streams_snapshots_and_alerts(client: TestClient) -> None:
    token = create_access_token("u1")
    seen: list[dict] = []

    with client.websocket_connect(f"/notifications/ws?token={token}") as websocket:
        _receive_until(websocket, lambda message: _is_loaded_snapshot(message, False), seen)
        if not any(message["type"] == "alert" for message in seen):
            _receive_until(websocket, lambda message: message["type"] == "alert", seen)

        websocket.send_json({"type": "ping"})
        _receive_until(websocket, lambda message: message["type"] == "pong", seen)

        websocket.send_json({"type": "ack", "ids": ["new", "theirs"]})
        _receive_until(websocket, lambda message: _is_loaded_snapshot(message, True), seen)

    alerts = [message for message in seen if message["type"] == "alert"]
    assert len(alerts) == 1
    assert alerts[0]["data"]["dedupe_key"] == "new"
    assert alerts[0]["data"]["priority"] == "high"
    assert alerts[0]["data"]["color"] == "#F44336"

    theirs = client.get("/notifications/", headers=_auth("u2")).json()
    assert theirs[0]["read"] is False


def test_device_token_registration(client: TestClient) -> None:
    assert (
        client.put("/users/me/token", json={"token": "tok"}, headers=_auth("u9")).status_code
        == 404
    )

    response = client.put("/users/me/token", json={"token": "tok"}, headers=_auth("u1"))
    assert response.status_code == 200
    assert response.json()["device_token"] == "tok"

    client.put("/users/me/token", json={"token": "tok"}, headers=_auth("u2"))
    assert client.get("/users/me", headers=_auth("u1")).json()["device_token"] is None


def test_remote_push_requires_admin_and_a_registered_device(client: TestClient) -> None:
    body = {"token": "tok", "id": "p1", "title": "Push"}

    assert client.post("/notifications/push", json=body, headers=_auth("u1")).status_code == 403
    assert client.post("/notifications/push", json=body, headers=_auth("root")).status_code == 404

    client.put("/users/me/token", json={"token": "tok"}, headers=_auth("u1"))
    response = client.post("/notifications/push", json=body, headers=_auth("root"))
    assert response.status_code == 202
    assert response.json() == {"presented": False}


def test_remote_push_reaches_connected_device(client: TestClient) -> None:
    client.put("/users/me/token", json={"token": "tok"}, headers=_auth("u1"))
    seen: list[dict] = []

    with client.websocket_connect(f"/notifications/ws?token={create_access_token('u1')}") as websocket:
        _receive_until(websocket, lambda message: _is_loaded_snapshot(message, False), seen)

        response = client.post(
            "/notifications/push",
            json={"token": "tok", "id": "p1", "message": "Hola", "type": "SUCCESS"},
            headers=_auth("root"),
        )
        assert response.json() == {"presented": True}
        alert = _receive_until(
            websocket,
            lambda message: message["type"] == "alert"
            and message["data"]["dedupe_key"] == "p1",
            seen,
        )

    assert alert["data"]["title"] == "New notification"
    assert alert["data"]["body"] == "Hola"
    assert alert["data"]["color"] == "#4CAF50"
