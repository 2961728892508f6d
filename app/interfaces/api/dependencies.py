"""FastAPI dependency utilities."""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.application.use_cases.notifications import DeliveryRegistry
from app.application.use_cases.users import UserSession
from app.infrastructure.repositories import NotificationRepository, UserRepository
from app.infrastructure.security import decode_access_token
from app.infrastructure.store import StoreAdapter

bearer_scheme = HTTPBearer(auto_error=False)


def get_store(request: Request) -> StoreAdapter:
    return request.app.state.store


def get_notification_repository(request: Request) -> NotificationRepository:
    return request.app.state.notification_repository


def get_user_repository(store: StoreAdapter = Depends(get_store)) -> UserRepository:
    return UserRepository(store)


def get_delivery_registry(request: Request) -> DeliveryRegistry:
    return request.app.state.delivery_registry


def resolve_user_id(token: str | None) -> str:
    """Return the user id carried by ``token`` or raise 401."""

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Credenciales inválidas",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return decode_access_token(token)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Credenciales inválidas",
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    """Return the authenticated user id from the bearer token."""

    return resolve_user_id(credentials.credentials if credentials else None)


def get_user_session(
    user_id: str = Depends(get_current_user_id),
    users: UserRepository = Depends(get_user_repository),
) -> UserSession:
    return UserSession(users, user_id)


async def require_admin(session: UserSession = Depends(get_user_session)) -> UserSession:
    """Ensure the authenticated user has administrator privileges."""

    user_id = session.current_user_id()
    if not user_id or not await session.is_admin(user_id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No autorizado",
        )
    return session
