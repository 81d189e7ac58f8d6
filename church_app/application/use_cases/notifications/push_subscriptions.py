"""Use cases for registering and listing a user's push devices."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from church_app.domain.entities import PushSubscription, User, normalize_role
from church_app.infrastructure.repositories import (
    NotificationPreferencesRepository,
    PushSubscriptionRepository,
)


def register_push_subscription(
    session: Session,
    *,
    user: User,
    endpoint: str,
    p256dh: str,
    auth: str,
    user_agent: str | None = None,
    device_name: str | None = None,
) -> PushSubscription:
    """Store the device for ``user`` and switch their push preference on.

    Registering an endpoint that already exists updates its keys and owner instead
    of adding a second row.
    """

    endpoint = endpoint.strip()
    if not endpoint:
        raise ValueError("Subscription endpoint is required")
    if not p256dh or not auth:
        raise ValueError("Subscription keys are required")

    subscription = PushSubscriptionRepository(session).upsert(
        user_id=user.id,
        user_role=normalize_role(user.role),
        endpoint=endpoint,
        p256dh=p256dh,
        auth=auth,
        user_agent=user_agent,
        device_name=device_name,
    )
    NotificationPreferencesRepository(session).upsert(user.id, {"push_enabled": True})
    return subscription


def unregister_push_subscription(session: Session, *, user_id: str, endpoint: str) -> bool:
    """Delete the caller's row for ``endpoint``; ``False`` when nothing matched."""

    return PushSubscriptionRepository(session).delete_for_user(
        user_id=user_id, endpoint=endpoint
    ) > 0


def list_push_subscriptions(session: Session, user_id: str) -> Sequence[PushSubscription]:
    return PushSubscriptionRepository(session).list_active_for_user(user_id)


__all__ = [
    "list_push_subscriptions",
    "register_push_subscription",
    "unregister_push_subscription",
]
