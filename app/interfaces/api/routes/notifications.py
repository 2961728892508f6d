"""Endpoints and websocket handler for realtime notifications."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from fastapi import (
    APIRouter,
    Depends,
    HTTPException,
    Response,
    WebSocket,
    WebSocketDisconnect,
    status,
)

from app.application.use_cases.notifications import (
    DeliveryRegistry,
    NotificationSyncService,
    broadcast_notification,
    send_notification,
)
from app.application.use_cases.users import UserSession
from app.domain.entities import Notification
from app.domain.exceptions import (
    AuthorizationError,
    NotificationError,
    StoreQueryError,
    StoreWriteError,
)
from app.infrastructure.notifications import (
    NotificationConnectionManager,
    serialize_notification,
    serialize_snapshot,
)
from app.infrastructure.repositories import NotificationRepository, UserRepository
from app.interfaces.api.dependencies import (
    get_current_user_id,
    get_delivery_registry,
    get_notification_repository,
    get_user_repository,
    require_admin,
    resolve_user_id,
)
from app.interfaces.api.schemas import (
    NotificationBroadcast,
    NotificationCreate,
    NotificationRead,
    RemotePush,
    RemotePushResult,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


def _notification_to_schema(notification: Notification) -> NotificationRead:
    return NotificationRead(**serialize_notification(notification))


def _store_unavailable(exc: NotificationError) -> HTTPException:
    logger.error("Notification store failure: %s", exc)
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Servicio de notificaciones no disponible",
    )


async def _ensure_recipient(
    repository: NotificationRepository, notification_id: str, user_id: str
) -> None:
    """Reject changes to notifications addressed to another user."""

    try:
        notification = await repository.get(notification_id)
    except StoreQueryError as exc:
        raise _store_unavailable(exc) from exc
    if notification is not None and notification.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No autorizado")


@router.get("/", response_model=list[NotificationRead])
async def list_notifications(
    user_id: str = Depends(get_current_user_id),
    repository: NotificationRepository = Depends(get_notification_repository),
) -> list[NotificationRead]:
    """Return the notifications of the authenticated user, newest first."""

    try:
        notifications = await repository.list_for_user(user_id)
    except StoreQueryError as exc:
        raise _store_unavailable(exc) from exc
    return [_notification_to_schema(notification) for notification in notifications]


@router.post("/", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
async def create_notification(
    payload: NotificationCreate,
    session: UserSession = Depends(require_admin),
    repository: NotificationRepository = Depends(get_notification_repository),
) -> NotificationRead:
    """Send a notification to a single user."""

    try:
        notification = await send_notification(
            repository,
            session,
            user_id=payload.user_id,
            title=payload.title,
            message=payload.message,
            type=payload.type,
        )
    except AuthorizationError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No autorizado") from exc
    except StoreWriteError as exc:
        raise _store_unavailable(exc) from exc
    return _notification_to_schema(notification)


@router.post(
    "/broadcast",
    response_model=list[NotificationRead],
    status_code=status.HTTP_201_CREATED,
)
async def broadcast(
    payload: NotificationBroadcast,
    session: UserSession = Depends(require_admin),
    repository: NotificationRepository = Depends(get_notification_repository),
    users: UserRepository = Depends(get_user_repository),
) -> list[NotificationRead]:
    """Send the same notification to every non-admin user."""

    try:
        notifications = await broadcast_notification(
            repository,
            users,
            session,
            title=payload.title,
            message=payload.message,
            type=payload.type,
        )
    except AuthorizationError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No autorizado") from exc
    except (StoreQueryError, StoreWriteError) as exc:
        raise _store_unavailable(exc) from exc
    return [_notification_to_schema(notification) for notification in notifications]


@router.post("/{notification_id}/read", status_code=status.HTTP_204_NO_CONTENT)
async def mark_notification_read(
    notification_id: str,
    user_id: str = Depends(get_current_user_id),
    repository: NotificationRepository = Depends(get_notification_repository),
) -> Response:
    await _ensure_recipient(repository, notification_id, user_id)
    try:
        await repository.mark_read(notification_id)
    except StoreWriteError as exc:
        raise _store_unavailable(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(
    notification_id: str,
    user_id: str = Depends(get_current_user_id),
    repository: NotificationRepository = Depends(get_notification_repository),
) -> Response:
    await _ensure_recipient(repository, notification_id, user_id)
    try:
        await repository.delete(notification_id)
    except StoreWriteError as exc:
        raise _store_unavailable(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/push",
    response_model=RemotePushResult,
    status_code=status.HTTP_202_ACCEPTED,
)
async def relay_remote_push(
    payload: RemotePush,
    _: UserSession = Depends(require_admin),
    users: UserRepository = Depends(get_user_repository),
    registry: DeliveryRegistry = Depends(get_delivery_registry),
) -> RemotePushResult:
    """Render a push payload on the device registered with ``payload.token``."""

    try:
        recipient = await users.find_by_device_token(payload.token)
    except StoreQueryError as exc:
        raise _store_unavailable(exc) from exc
    if recipient is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Dispositivo no registrado"
        )
    presented = await registry.present_remote(
        recipient.uid, payload.model_dump(exclude={"token"}, exclude_none=True)
    )
    return RemotePushResult(presented=presented)


async def _forward_messages(queue: asyncio.Queue[dict[str, Any]], websocket: WebSocket) -> None:
    while True:
        message = await queue.get()
        await websocket.send_json(message)


async def _handle_client_message(
    message: Any, websocket: WebSocket, sync: NotificationSyncService
) -> None:
    if not isinstance(message, dict):
        return

    message_type = message.get("type")
    if message_type == "ping":
        await websocket.send_json({"type": "pong"})
        return

    ids = message.get("ids", [])
    if not isinstance(ids, list):
        return
    # Only notifications already in this user's read model can be changed.
    owned = {notification.id for notification in sync.notifications}
    targets = [str(notification_id) for notification_id in ids if str(notification_id) in owned]
    if message_type == "ack":
        for notification_id in targets:
            await sync.mark_as_read(notification_id)
    elif message_type == "delete":
        for notification_id in targets:
            await sync.delete_notification(notification_id)
    elif message_type == "reload":
        await sync.load()


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams the notification list and alerts."""

    try:
        user_id = resolve_user_id(websocket.query_params.get("token"))
    except HTTPException:
        await websocket.close(code=1008)
        return

    state = websocket.app.state
    manager: NotificationConnectionManager = state.connection_manager
    registry: DeliveryRegistry = state.delivery_registry
    repository: NotificationRepository = state.notification_repository

    await manager.connect(user_id, websocket)
    outgoing: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
    sync = NotificationSyncService(
        repository, UserSession(UserRepository(state.store), user_id)
    )
    sync.add_listener(
        lambda service: outgoing.put_nowait(
            serialize_snapshot(service.state, service.notifications)
        )
    )
    forwarder = asyncio.get_running_loop().create_task(_forward_messages(outgoing, websocket))
    try:
        await registry.start(user_id)
        await sync.load(user_id)
        while True:
            try:
                message = await websocket.receive_json()
            except WebSocketDisconnect:
                raise
            except ValueError:
                continue
            await _handle_client_message(message, websocket, sync)
    except WebSocketDisconnect:
        logger.debug("Notification websocket of %s disconnected", user_id)
    finally:
        forwarder.cancel()
        await asyncio.gather(forwarder, return_exceptions=True)
        await sync.close()
        manager.disconnect(user_id, websocket)
        if manager.connection_count(user_id) == 0:
            await registry.stop(user_id)
