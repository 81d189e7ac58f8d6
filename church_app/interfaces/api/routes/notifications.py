"""Endpoints and event stream for member notifications."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse

from church_app.application.use_cases.notifications import (
    NotificationDispatcher,
    NotificationNotFoundError,
    NotificationStore,
    kinds,
)
from church_app.domain.entities import User
from church_app.infrastructure.notifications import NotificationConnectionManager
from church_app.interfaces.api.dependencies import (
    get_connection_manager,
    get_current_user,
    get_dispatcher,
    get_notification_store,
    require_admin,
)
from church_app.interfaces.api.schemas import (
    ActionResult,
    NotificationActionRequest,
    NotificationListResponse,
    NotificationRead,
    NotificationSendRequest,
    StreamStatusRead,
    UnreadCountResponse,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])

logger = logging.getLogger(__name__)

_STREAM_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _mark_read(store: NotificationStore, notification_id: str, user: User) -> ActionResult:
    try:
        marked = store.mark_read(notification_id, user.id)
    except NotificationNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found"
        ) from exc
    if not marked:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not mark the notification as read",
        )
    return ActionResult(success=True, message="Notification marked as read")


def _mark_all_read(store: NotificationStore, user: User) -> ActionResult:
    if not store.mark_all_read(user.id, user.role):
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not mark notifications as read",
        )
    return ActionResult(success=True, message="All notifications marked as read")


@router.get("/", response_model=NotificationListResponse)
def list_notifications(
    limit: int = Query(50, ge=1, le=100),
    include_read: bool = Query(True),
    store: NotificationStore = Depends(get_notification_store),
    current_user: User = Depends(get_current_user),
) -> NotificationListResponse:
    """Return the notifications visible to the authenticated user, newest first."""

    notifications = store.list_for_user(
        current_user.id, current_user.role, limit=limit, include_read=include_read
    )
    return NotificationListResponse(
        notifications=[NotificationRead.from_entity(item) for item in notifications],
        unread_count=store.count_unread(current_user.id, current_user.role),
        total=len(notifications),
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
def unread_count(
    store: NotificationStore = Depends(get_notification_store),
    current_user: User = Depends(get_current_user),
) -> UnreadCountResponse:
    return UnreadCountResponse(
        unread_count=store.count_unread(current_user.id, current_user.role)
    )


@router.post("/read-all", response_model=ActionResult)
def mark_all_notifications_read(
    store: NotificationStore = Depends(get_notification_store),
    current_user: User = Depends(get_current_user),
) -> ActionResult:
    return _mark_all_read(store, current_user)


@router.post("/{notification_id}/read", response_model=ActionResult)
def mark_notification_read(
    notification_id: str,
    store: NotificationStore = Depends(get_notification_store),
    current_user: User = Depends(get_current_user),
) -> ActionResult:
    return _mark_read(store, notification_id, current_user)


@router.post("/", response_model=ActionResult)
def notification_action(
    payload: NotificationActionRequest,
    store: NotificationStore = Depends(get_notification_store),
    current_user: User = Depends(get_current_user),
) -> ActionResult:
    """Single endpoint form of mark-read and mark-all-read."""

    if payload.action == "mark_read":
        return _mark_read(store, payload.notification_id or "", current_user)
    return _mark_all_read(store, current_user)


@router.post("/send", response_model=NotificationRead, status_code=status.HTTP_201_CREATED)
async def send_notification(
    payload: NotificationSendRequest,
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    current_user: User = Depends(require_admin),
) -> NotificationRead:
    """Create a notification on behalf of an administrator and deliver it."""

    try:
        draft = kinds.custom(**payload.model_dump())
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    notification = await dispatcher.publish(draft)
    if notification is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not create the notification",
        )
    logger.info("User %s sent notification %s", current_user.id, notification.id)
    return NotificationRead.from_entity(notification)


@router.get("/stream")
async def notification_stream(
    connection_id: str | None = Query(None, alias="connectionId", max_length=64),
    manager: NotificationConnectionManager = Depends(get_connection_manager),
    current_user: User = Depends(get_current_user),
) -> StreamingResponse:
    """Open a server-sent event stream of notifications for the caller."""

    connection = await manager.connect(
        user_id=current_user.id, role=current_user.role, connection_id=connection_id
    )
    return StreamingResponse(
        connection.stream(), media_type="text/event-stream", headers=_STREAM_HEADERS
    )


@router.get("/stream/status", response_model=StreamStatusRead)
def stream_status(
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    _: User = Depends(require_admin),
) -> StreamStatusRead:
    return StreamStatusRead(**dispatcher.status())
