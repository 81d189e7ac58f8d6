"""Persist a notification, then fan it out without blocking the caller."""

from __future__ import annotations

import logging
from typing import Any

import anyio

from church_app.domain.entities import Notification, NotificationDraft
from church_app.infrastructure.notifications import (
    BackgroundTaskRunner,
    NotificationConnectionManager,
)
from church_app.utils import now_in_app_timezone

from .push import PushDeliveryService
from .store import NotificationStore

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Entry point used by features that create notifications.

    The store write is the only step whose outcome is reported. Live broadcast
    and push delivery run through the :class:`BackgroundTaskRunner`, so their
    failures are logged and never reach the caller.
    """

    def __init__(
        self,
        store: NotificationStore,
        manager: NotificationConnectionManager,
        push_service: PushDeliveryService,
        runner: BackgroundTaskRunner | None = None,
    ) -> None:
        self.store = store
        self.manager = manager
        self.push_service = push_service
        self.runner = runner or BackgroundTaskRunner()

    async def publish(self, draft: NotificationDraft) -> Notification | None:
        """Persist ``draft`` from the event loop and schedule its delivery."""

        notification = await anyio.to_thread.run_sync(self.store.create, draft)
        if notification is not None:
            self._fan_out(notification, draft)
        return notification

    def publish_sync(self, draft: NotificationDraft) -> Notification | None:
        """Same as :meth:`publish` for code running in a worker thread."""

        notification = self.store.create(draft)
        if notification is not None:
            self._fan_out(notification, draft)
        return notification

    async def publish_many(self, drafts: list[NotificationDraft]) -> list[Notification | None]:
        return [await self.publish(draft) for draft in drafts]

    def status(self) -> dict[str, Any]:
        return {
            "active_connections": len(self.manager),
            "broadcast_enabled": self.manager.broadcast_enabled,
            "push_configured": self.push_service.is_configured(),
            "pending_tasks": self.runner.pending,
            "timestamp": now_in_app_timezone().isoformat(),
        }

    def _fan_out(self, notification: Notification, draft: NotificationDraft) -> None:
        self.runner.call_soon(self.manager.broadcast, notification)
        if draft.send_push and self.push_service.is_configured():
            self.runner.spawn(
                self.push_service.send_for_notification,
                notification,
                name=f"push:{notification.id}",
            )
        else:
            logger.debug("Push skipped for notification %s", notification.id)


__all__ = ["NotificationDispatcher"]
