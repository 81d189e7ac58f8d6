"""Web Push delivery honoring user preferences and pruning dead endpoints."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from datetime import time, timedelta
from functools import partial
from typing import TYPE_CHECKING, Any

import anyio
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from church_app.domain.entities import (
    AUDIENCE_SPECIFIC,
    Notification,
    NotificationPreferences,
    PushSubscription,
)
from church_app.domain.targeting import push_suppression_reason, roles_for_audience
from church_app.infrastructure.database import SessionLocal
from church_app.infrastructure.repositories import (
    NotificationPreferencesRepository,
    PushSubscriptionRepository,
)
from church_app.infrastructure.webpush import (
    PushDeliveryError,
    PushEndpointGoneError,
    WebPushSender,
)
from church_app.utils import current_time_of_day, now_in_app_timezone

if TYPE_CHECKING:
    from church_app.config import Settings

logger = logging.getLogger(__name__)

DEFAULT_ICON = "/icons/icon-192x192.png"
DEFAULT_BADGE = "/icons/badge-72x72.png"
DEFAULT_URL = "/"


@dataclass(frozen=True)
class PushResult:
    """Aggregated outcome of a push fan-out."""

    success: int = 0
    failed: int = 0

    def __add__(self, other: "PushResult") -> "PushResult":
        return PushResult(self.success + other.success, self.failed + other.failed)

    @property
    def attempted(self) -> int:
        return self.success + self.failed


def build_push_payload(notification: Notification) -> dict[str, Any]:
    """Return the message shown by the service worker for ``notification``."""

    return {
        "title": notification.title,
        "body": notification.message,
        "icon": DEFAULT_ICON,
        "badge": DEFAULT_BADGE,
        "tag": f"notification-{notification.id}",
        "data": {
            "url": notification.action_url or DEFAULT_URL,
            "notification_id": notification.id,
            "type": notification.type,
        },
        "require_interaction": notification.requires_interaction(),
        "actions": [
            {"action": "view", "title": "View"},
            {"action": "dismiss", "title": "Dismiss"},
        ],
    }


class PushDeliveryService:
    """Deliver payloads to every active device of one or many users.

    Without a sender (VAPID keys missing) every send returns ``PushResult(0, 0)``
    and no network call is made.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        *,
        sender: WebPushSender | None = None,
        public_key: str | None = None,
        batch_size: int = 10,
        time_of_day: Callable[[], time] = current_time_of_day,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be positive")
        self._session_factory = session_factory
        self._sender = sender
        self._public_key = public_key
        self._batch_size = batch_size
        self._time_of_day = time_of_day

    @classmethod
    def from_settings(cls, settings: "Settings", **kwargs: Any) -> "PushDeliveryService":
        sender = None
        if settings.push_configured:
            sender = WebPushSender(
                settings.vapid_private_key,
                settings.vapid_subject,
                ttl=settings.push_ttl_seconds,
            )
        else:
            logger.info("VAPID keys not configured; push delivery disabled")
        return cls(
            sender=sender,
            public_key=settings.vapid_public_key if sender else None,
            batch_size=settings.push_batch_size,
            **kwargs,
        )

    def is_configured(self) -> bool:
        return self._sender is not None

    @property
    def public_key(self) -> str | None:
        return self._public_key

    async def send_to_user(
        self,
        user_id: str,
        payload: dict[str, Any],
        notification_type: str | None = None,
    ) -> PushResult:
        """Send ``payload`` to every active device of ``user_id``."""

        if self._sender is None:
            return PushResult()

        subscriptions, preferences = await anyio.to_thread.run_sync(
            self._load_targets, user_id, notification_type is not None
        )
        if not subscriptions:
            return PushResult()

        if notification_type is not None:
            reason = push_suppression_reason(
                preferences, notification_type, current=self._time_of_day()
            )
            if reason is not None:
                logger.debug("Push to user %s suppressed: %s", user_id, reason)
                return PushResult()

        urgency = "high" if payload.get("require_interaction") else "normal"
        outcomes: list[bool] = []

        async def deliver(subscription: PushSubscription) -> None:
            outcomes.append(await self._deliver(subscription, payload, urgency))

        async with anyio.create_task_group() as tg:
            for subscription in subscriptions:
                tg.start_soon(deliver, subscription)

        success = sum(1 for outcome in outcomes if outcome)
        return PushResult(success=success, failed=len(outcomes) - success)

    async def send_to_users(
        self,
        user_ids: Iterable[str],
        payload: dict[str, Any],
        notification_type: str | None = None,
    ) -> PushResult:
        """Send to many users, ``batch_size`` users at a time."""

        if self._sender is None:
            return PushResult()

        unique_ids = list(dict.fromkeys(user_id for user_id in user_ids if user_id))
        total = PushResult()
        for start in range(0, len(unique_ids), self._batch_size):
            batch = unique_ids[start : start + self._batch_size]
            results: list[PushResult] = []

            async def send_one(user_id: str) -> None:
                results.append(await self.send_to_user(user_id, payload, notification_type))

            async with anyio.create_task_group() as tg:
                for user_id in batch:
                    tg.start_soon(send_one, user_id)
            for result in results:
                total += result
        return total

    async def send_to_audience(
        self,
        audience: str,
        payload: dict[str, Any],
        notification_type: str | None = None,
    ) -> PushResult:
        """Send to subscription owners whose stored role can see ``audience``."""

        if self._sender is None:
            return PushResult()
        if audience == AUDIENCE_SPECIFIC:
            raise ValueError("Use send_to_users for the 'specific' audience")

        roles = roles_for_audience(audience)
        if not roles:
            return PushResult()
        user_ids = await anyio.to_thread.run_sync(self._load_owner_ids, roles)
        return await self.send_to_users(user_ids, payload, notification_type)

    async def send_for_notification(self, notification: Notification) -> PushResult:
        if self._sender is None:
            return PushResult()
        payload = build_push_payload(notification)
        if notification.target_audience == AUDIENCE_SPECIFIC:
            result = await self.send_to_users(
                notification.specific_user_ids, payload, notification.type
            )
        else:
            result = await self.send_to_audience(
                notification.target_audience, payload, notification.type
            )
        logger.info(
            "Push for notification %s: %d sent, %d failed",
            notification.id,
            result.success,
            result.failed,
        )
        return result

    def deactivate_stale_subscriptions(self, days: int) -> int:
        """Mark subscriptions unused for ``days`` as inactive; 0 on failure."""

        if days <= 0:
            raise ValueError("Stale threshold must be at least one day")
        cutoff = now_in_app_timezone() - timedelta(days=days)
        session = self._session_factory()
        try:
            count = PushSubscriptionRepository(session).deactivate_unused_since(cutoff)
        except SQLAlchemyError:
            session.rollback()
            logger.exception("Failed to deactivate stale push subscriptions")
            return 0
        finally:
            session.close()
        logger.info("Deactivated %d push subscriptions unused for %d days", count, days)
        return count

    async def _deliver(
        self, subscription: PushSubscription, payload: dict[str, Any], urgency: str
    ) -> bool:
        sender = self._sender
        if sender is None:  # pragma: no cover - callers check first
            return False
        try:
            await anyio.to_thread.run_sync(
                partial(sender.send, subscription, payload, urgency=urgency)
            )
        except PushEndpointGoneError as exc:
            logger.info(
                "Subscription %s is gone (%s); marking inactive",
                subscription.id,
                exc.status_code,
            )
            await anyio.to_thread.run_sync(self._mark_inactive, subscription.id)
            return False
        except PushDeliveryError as exc:
            logger.warning("Push to subscription %s failed: %s", subscription.id, exc)
            return False
        await anyio.to_thread.run_sync(self._touch, subscription.id)
        return True

    def _load_targets(
        self, user_id: str, with_preferences: bool
    ) -> tuple[Sequence[PushSubscription], NotificationPreferences | None]:
        session = self._session_factory()
        try:
            subscriptions = PushSubscriptionRepository(session).list_active_for_user(user_id)
            preferences = None
            if subscriptions and with_preferences:
                preferences = NotificationPreferencesRepository(session).get(user_id)
            return subscriptions, preferences
        except SQLAlchemyError:
            logger.exception("Failed to load push subscriptions for user %s", user_id)
            return [], None
        finally:
            session.close()

    def _load_owner_ids(self, roles: Iterable[str]) -> list[str]:
        session = self._session_factory()
        try:
            return PushSubscriptionRepository(session).list_active_owner_ids(roles=roles)
        except SQLAlchemyError:
            logger.exception("Failed to resolve push audience")
            return []
        finally:
            session.close()

    def _mark_inactive(self, subscription_id: int | None) -> None:
        if subscription_id is None:
            return
        session = self._session_factory()
        try:
            PushSubscriptionRepository(session).mark_inactive(subscription_id)
        except SQLAlchemyError:
            session.rollback()
            logger.exception("Failed to deactivate push subscription %s", subscription_id)
        finally:
            session.close()

    def _touch(self, subscription_id: int | None) -> None:
        if subscription_id is None:
            return
        session = self._session_factory()
        try:
            PushSubscriptionRepository(session).touch(subscription_id)
        except SQLAlchemyError:
            session.rollback()
            logger.exception("Failed to record use of push subscription %s", subscription_id)
        finally:
            session.close()


__all__ = ["PushDeliveryService", "PushResult", "build_push_payload"]
