"""Rutas para administrar el directorio de usuarios."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.application.use_cases.users import UserSession
from app.application.use_cases.users import create_user as create_user_uc
from app.application.use_cases.users import register_device_token
from app.application.use_cases.users import register_user as register_user_uc
from app.domain.entities import User
from app.domain.exceptions import AuthorizationError, StoreQueryError, StoreWriteError
from app.infrastructure.repositories import UserRepository
from app.interfaces.api.dependencies import (
    get_current_user_id,
    get_user_repository,
    require_admin,
)
from app.interfaces.api.schemas import (
    DeviceTokenUpdate,
    UserCreate,
    UserProfileUpdate,
    UserRead,
)

router = APIRouter(prefix="/users", tags=["users"])
logger = logging.getLogger(__name__)


def _to_read_model(user: User) -> UserRead:
    return UserRead(
        uid=user.uid,
        email=user.email,
        name=user.name,
        admin=user.admin,
        device_token=user.device_token,
    )


def _directory_unavailable(exc: Exception) -> HTTPException:
    logger.error("User directory failure: %s", exc)
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Directorio de usuarios no disponible",
    )


@router.get("/me", response_model=UserRead)
async def read_current_user(
    user_id: str = Depends(get_current_user_id),
    users: UserRepository = Depends(get_user_repository),
) -> UserRead:
    """Devuelve el perfil del usuario autenticado."""

    try:
        user = await users.get(user_id)
    except StoreQueryError as exc:
        raise _directory_unavailable(exc) from exc
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuario no encontrado")
    return _to_read_model(user)


@router.put("/me", response_model=UserRead)
async def register_current_user(
    profile: UserProfileUpdate,
    user_id: str = Depends(get_current_user_id),
    users: UserRepository = Depends(get_user_repository),
) -> UserRead:
    """Registra o actualiza el perfil propio sin privilegios de administrador."""

    try:
        user = await register_user_uc(users, uid=user_id, email=profile.email, name=profile.name)
    except (StoreQueryError, StoreWriteError) as exc:
        raise _directory_unavailable(exc) from exc
    return _to_read_model(user)


@router.put("/me/token", response_model=UserRead)
async def register_current_device(
    payload: DeviceTokenUpdate,
    user_id: str = Depends(get_current_user_id),
    users: UserRepository = Depends(get_user_repository),
) -> UserRead:
    """Registra el token de notificaciones push del dispositivo actual."""

    try:
        user = await register_device_token(users, uid=user_id, token=payload.token)
    except (StoreQueryError, StoreWriteError) as exc:
        raise _directory_unavailable(exc) from exc
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Usuario no encontrado")
    return _to_read_model(user)


@router.get("/", response_model=list[UserRead])
async def list_users(
    _: UserSession = Depends(require_admin),
    users: UserRepository = Depends(get_user_repository),
) -> list[UserRead]:
    try:
        return [_to_read_model(user) for user in await users.list_users()]
    except StoreQueryError as exc:
        raise _directory_unavailable(exc) from exc


@router.post("/", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_in: UserCreate,
    session: UserSession = Depends(require_admin),
    users: UserRepository = Depends(get_user_repository),
) -> UserRead:
    """Crea un usuario, opcionalmente con rol de administrador."""

    try:
        user = await create_user_uc(
            users,
            session,
            uid=user_in.uid,
            email=user_in.email,
            name=user_in.name,
            admin=user_in.admin,
        )
    except AuthorizationError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No autorizado") from exc
    except (StoreQueryError, StoreWriteError) as exc:
        raise _directory_unavailable(exc) from exc
    return _to_read_model(user)
