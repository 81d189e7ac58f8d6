"""FastAPI dependency utilities."""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from church_app.application.use_cases.notifications import (
    NotificationDispatcher,
    NotificationStore,
    PushDeliveryService,
)
from church_app.domain.entities import User
from church_app.infrastructure.notifications import NotificationConnectionManager
from church_app.infrastructure.security import user_from_token

bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized(detail: str = "Invalid credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def resolve_current_user(token: str | None) -> User:
    """Resolve the authenticated user for the provided token."""

    if not token:
        raise _unauthorized("Authentication required")
    try:
        return user_from_token(token)
    except ValueError as exc:
        raise _unauthorized() from exc


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> User:
    """Return the user from the bearer header or, for event streams, ``?token=``."""

    token = credentials.credentials if credentials else request.query_params.get("token")
    return resolve_current_user(token)


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Ensure the authenticated user has administrator privileges."""

    if not current_user.is_admin():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Administrator access required",
        )
    return current_user


def get_notification_store(request: Request) -> NotificationStore:
    return request.app.state.notification_store


def get_connection_manager(request: Request) -> NotificationConnectionManager:
    return request.app.state.connection_manager


def get_push_service(request: Request) -> PushDeliveryService:
    return request.app.state.push_service


def get_dispatcher(request: Request) -> NotificationDispatcher:
    return request.app.state.notification_dispatcher


__all__ = [
    "get_connection_manager",
    "get_current_user",
    "get_dispatcher",
    "get_notification_store",
    "get_push_service",
    "require_admin",
    "resolve_current_user",
]
