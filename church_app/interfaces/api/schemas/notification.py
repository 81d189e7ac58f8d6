"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from church_app.domain.entities import AUDIENCE_SPECIFIC, Notification


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    id: str
    title: str
    message: str
    type: str
    priority: str
    target_audience: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    action_url: str | None = None
    expires_at: datetime | None = None
    created_at: datetime | None = None
    read: bool = False

    @classmethod
    def from_entity(cls, notification: Notification) -> "NotificationRead":
        return cls(
            id=notification.id or "",
            title=notification.title,
            message=notification.message,
            type=notification.type,
            priority=notification.priority,
            target_audience=notification.target_audience,
            metadata=notification.metadata or {},
            action_url=notification.action_url,
            expires_at=notification.expires_at,
            created_at=notification.created_at,
            read=notification.read,
        )


class NotificationListResponse(BaseModel):
    notifications: list[NotificationRead]
    unread_count: int
    total: int


class UnreadCountResponse(BaseModel):
    unread_count: int


class NotificationActionRequest(BaseModel):
    """Body of the single ``POST /notifications/`` endpoint kept for older clients."""

    action: Literal["mark_read", "mark_all_read"]
    notification_id: str | None = None

    @model_validator(mode="after")
    def _require_id_for_mark_read(self) -> "NotificationActionRequest":
        if self.action == "mark_read" and not self.notification_id:
            raise ValueError("notification_id is required for mark_read")
        return self


class ActionResult(BaseModel):
    success: bool
    message: str


class NotificationSendRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    type: Literal["announcement", "event", "prayer_request", "system", "admin"]
    priority: Literal["low", "medium", "high", "urgent"] = "medium"
    target_audience: Literal["all", "members", "admin", "specific"] = "all"
    specific_user_ids: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)
    action_url: str | None = Field(default=None, max_length=500)
    expires_at: datetime | None = None
    send_push: bool = True

    @model_validator(mode="after")
    def _require_recipients(self) -> "NotificationSendRequest":
        if self.target_audience == AUDIENCE_SPECIFIC and not self.specific_user_ids:
            raise ValueError("specific_user_ids is required when target_audience is 'specific'")
        return self


class StreamStatusRead(BaseModel):
    active_connections: int
    broadcast_enabled: bool
    push_configured: bool
    pending_tasks: int
    timestamp: datetime


__all__ = [
    "ActionResult",
    "NotificationActionRequest",
    "NotificationListResponse",
    "NotificationRead",
    "NotificationSendRequest",
    "StreamStatusRead",
    "UnreadCountResponse",
]
