"""Per-process registry of live notification streams."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from church_app.domain.entities import Notification, normalize_role
from church_app.domain.targeting import is_visible_to
from church_app.utils import now_in_app_timezone

from .connection import ConnectionState, LiveConnection, StreamSendError

if TYPE_CHECKING:
    from church_app.application.use_cases.notifications.store import NotificationStore
    from church_app.config import Settings

logger = logging.getLogger(__name__)


class NotificationConnectionManager:
    """Own the open streams of this process and fan notifications out to them.

    The registry is never shared between processes. Clients connected to another
    instance receive the notification through their own polling loop.
    """

    def __init__(
        self,
        store: "NotificationStore",
        *,
        heartbeat_interval: float = 30.0,
        poll_interval: float = 5.0,
        max_duration: float = 290.0,
        initial_batch_size: int = 20,
        poll_batch_size: int = 10,
        queue_size: int = 100,
        broadcast_enabled: bool = True,
    ) -> None:
        self._store = store
        self._connections: dict[str, LiveConnection] = {}
        self._connection_options = {
            "heartbeat_interval": heartbeat_interval,
            "poll_interval": poll_interval,
            "max_duration": max_duration,
            "initial_batch_size": initial_batch_size,
            "poll_batch_size": poll_batch_size,
            "queue_size": queue_size,
        }
        self.broadcast_enabled = broadcast_enabled

    @classmethod
    def from_settings(
        cls, store: "NotificationStore", settings: "Settings"
    ) -> "NotificationConnectionManager":
        return cls(
            store,
            heartbeat_interval=settings.stream_heartbeat_seconds,
            poll_interval=settings.stream_poll_seconds,
            max_duration=settings.stream_max_duration_seconds,
            initial_batch_size=settings.stream_initial_batch_size,
            poll_batch_size=settings.stream_poll_batch_size,
            queue_size=settings.stream_queue_size,
        )

    def __len__(self) -> int:
        return len(self._connections)

    def __contains__(self, connection_id: object) -> bool:
        return connection_id in self._connections

    def get(self, connection_id: str) -> LiveConnection | None:
        return self._connections.get(connection_id)

    async def connect(
        self, *, user_id: str, role: str, connection_id: str | None = None
    ) -> LiveConnection:
        """Register a new stream for the user and send its opening frames."""

        previous = self._connections.get(connection_id) if connection_id else None
        if previous is not None and previous.user_id != user_id:
            # A stream may only be replaced by its own user.
            logger.warning(
                "Stream id %s belongs to another user; issuing a new id for %s",
                connection_id,
                user_id,
            )
            previous = None
            connection_id = None
        connection_id = connection_id or uuid4().hex
        if previous is not None:
            previous.close(ConnectionState.CLOSED)

        connection = LiveConnection(
            connection_id,
            user_id=user_id,
            role=normalize_role(role),
            store=self._store,
            on_close=self.unregister,
            **self._connection_options,
        )
        self.register(connection)
        try:
            await connection.open()
        except BaseException:
            connection.close(ConnectionState.ERRORED)
            raise
        return connection

    def register(self, connection: LiveConnection) -> None:
        self._connections[connection.id] = connection
        logger.info("Stream %s registered, %d active", connection.id, len(self._connections))

    def unregister(self, connection: LiveConnection) -> None:
        """Drop ``connection`` from the registry; a replacement with the same id stays."""

        if self._connections.get(connection.id) is connection:
            del self._connections[connection.id]
            logger.info(
                "Stream %s unregistered, %d active", connection.id, len(self._connections)
            )

    def broadcast(self, notification: Notification) -> int:
        """Send ``notification`` to every stream allowed to see it.

        Push preferences are not consulted; they only govern Web Push. Streams whose
        send fails are closed after the pass. Returns the number of streams reached.
        """

        if not self.broadcast_enabled:
            return 0

        now = now_in_app_timezone()
        delivered = 0
        dead: list[LiveConnection] = []
        for connection in list(self._connections.values()):
            if not is_visible_to(notification, connection.user_id, connection.role, now=now):
                continue
            try:
                connection.deliver(notification)
            except StreamSendError:
                logger.warning("Dropping stream %s after failed send", connection.id)
                dead.append(connection)
            else:
                delivered += 1
        self.sweep(dead)
        logger.debug(
            "Notification %s broadcast to %d of %d streams",
            notification.id,
            delivered,
            len(self._connections),
        )
        return delivered

    def sweep(self, connections: list[LiveConnection]) -> int:
        removed = 0
        for connection in connections:
            if connection.close(ConnectionState.ERRORED):
                removed += 1
        if removed:
            logger.info("Removed %d dead streams, %d active", removed, len(self._connections))
        return removed

    def close_all(self) -> None:
        for connection in list(self._connections.values()):
            connection.close(ConnectionState.CLOSED)

    def status(self) -> dict[str, Any]:
        return {
            "active_connections": len(self._connections),
            "broadcast_enabled": self.broadcast_enabled,
            "timestamp": now_in_app_timezone().isoformat(),
        }


__all__ = ["NotificationConnectionManager"]
