"""Pydantic models for Web Push subscription endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class PushKeys(BaseModel):
    p256dh: str = Field(..., min_length=1)
    auth: str = Field(..., min_length=1)


class PushSubscriptionPayload(BaseModel):
    """The ``PushSubscription.toJSON()`` object produced by the browser."""

    endpoint: str = Field(..., min_length=1, max_length=2000)
    keys: PushKeys


class PushSubscribeRequest(BaseModel):
    subscription: PushSubscriptionPayload
    device_name: str | None = Field(default=None, max_length=100)


class PushUnsubscribeRequest(BaseModel):
    endpoint: str = Field(..., min_length=1)


class PushSubscriptionRead(BaseModel):
    id: int
    endpoint: str
    user_agent: str | None = None
    device_name: str | None = None
    last_used: datetime | None = None
    created_at: datetime | None = None


class PushSubscriptionListResponse(BaseModel):
    configured: bool
    subscriptions: list[PushSubscriptionRead]


class PublicKeyResponse(BaseModel):
    public_key: str


__all__ = [
    "PublicKeyResponse",
    "PushKeys",
    "PushSubscribeRequest",
    "PushSubscriptionListResponse",
    "PushSubscriptionPayload",
    "PushSubscriptionRead",
    "PushUnsubscribeRequest",
]
