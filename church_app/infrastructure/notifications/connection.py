"""State of a single live notification stream."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from datetime import datetime
from enum import Enum
from functools import partial
from typing import TYPE_CHECKING, Any, Callable, Sequence

import anyio

from church_app.domain.entities import Notification

from .publisher import (
    FRAME_CONNECTED,
    FRAME_HEARTBEAT,
    FRAME_INITIAL_NOTIFICATIONS,
    FRAME_NOTIFICATION,
    encode_frame,
    serialize_notification,
)

if TYPE_CHECKING:
    from church_app.application.use_cases.notifications.store import NotificationStore

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"
    TIMED_OUT = "timed_out"
    ERRORED = "errored"


TERMINAL_STATES = frozenset(
    {ConnectionState.CLOSED, ConnectionState.TIMED_OUT, ConnectionState.ERRORED}
)


class StreamSendError(RuntimeError):
    """Raised when a frame cannot be queued for the client."""


class LiveConnection:
    """One open stream: outgoing frame queue, timers and the last-seen cursor.

    Frames are queued by :meth:`send` and drained by :meth:`stream`, which the HTTP
    layer hands to the streaming response. Every exit path goes through
    :meth:`close`, which cancels the heartbeat, polling and timeout tasks.
    """

    def __init__(
        self,
        connection_id: str,
        *,
        user_id: str,
        role: str,
        store: "NotificationStore",
        on_close: Callable[["LiveConnection"], None],
        heartbeat_interval: float = 30.0,
        poll_interval: float = 5.0,
        max_duration: float = 290.0,
        initial_batch_size: int = 20,
        poll_batch_size: int = 10,
        queue_size: int = 100,
    ) -> None:
        self.id = connection_id
        self.user_id = user_id
        self.role = role
        self.state = ConnectionState.CONNECTING
        self.last_seen: datetime | None = None
        self._store = store
        self._on_close = on_close
        self._heartbeat_interval = heartbeat_interval
        self._poll_interval = poll_interval
        self._max_duration = max_duration
        self._initial_batch_size = initial_batch_size
        self._poll_batch_size = poll_batch_size
        self._queue: asyncio.Queue[str | None] = asyncio.Queue(maxsize=queue_size)
        self._pending: list[Notification] = []
        self._sent_ids: set[str] = set()
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def is_closed(self) -> bool:
        return self.state in TERMINAL_STATES

    @property
    def active_timers(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    async def open(self) -> None:
        """Acknowledge the connection, send the initial batch and start the timers."""

        self.send(FRAME_CONNECTED, {"connection_id": self.id, "user_id": self.user_id})

        initial = await self._load(limit=self._initial_batch_size, include_read=True)
        if self.is_closed:
            return
        self.send(
            FRAME_INITIAL_NOTIFICATIONS,
            [serialize_notification(notification) for notification in initial],
        )
        self._sent_ids.update(notification.id for notification in initial if notification.id)
        self._advance(initial)

        self.state = ConnectionState.OPEN
        # Live notifications that arrived while the initial batch was loading.
        pending, self._pending = self._pending, []
        for notification in pending:
            if notification.id not in self._sent_ids:
                self._send_notification(notification)

        self._tasks = [
            asyncio.create_task(self._heartbeat_loop(), name=f"heartbeat:{self.id}"),
            asyncio.create_task(self._poll_loop(), name=f"poll:{self.id}"),
            asyncio.create_task(self._expire(), name=f"timeout:{self.id}"),
        ]
        logger.info("Stream %s open for user %s (%s)", self.id, self.user_id, self.role)

    def send(self, frame_type: str, payload: Any) -> None:
        if self.is_closed:
            raise StreamSendError(f"Stream {self.id} is closed")
        try:
            chunk = encode_frame(frame_type, payload)
        except (TypeError, ValueError) as exc:
            raise StreamSendError(f"Could not encode {frame_type} frame") from exc
        try:
            self._queue.put_nowait(chunk)
        except asyncio.QueueFull as exc:
            raise StreamSendError(f"Stream {self.id} is not being drained") from exc

    def deliver(self, notification: Notification) -> None:
        """Send a live notification, holding it back until the initial batch is out."""

        if self.state is ConnectionState.CONNECTING:
            self._pending.append(notification)
            return
        self._send_notification(notification)

    async def poll_once(self) -> int:
        """Send unread notifications newer than the cursor; return how many were sent."""

        unread = await self._load(limit=self._poll_batch_size, include_read=False)
        fresh = sorted(
            (
                notification
                for notification in unread
                if notification.created_at is not None
                and (self.last_seen is None or notification.created_at > self.last_seen)
            ),
            key=lambda notification: notification.created_at,
        )
        sent = 0
        for notification in fresh:
            if notification.id in self._sent_ids:
                continue
            self._send_notification(notification)
            sent += 1
        self._advance(fresh)
        return sent

    async def stream(self) -> AsyncIterator[str]:
        """Yield encoded frames until the connection closes."""

        try:
            while True:
                chunk = await self._queue.get()
                if chunk is None:
                    break
                yield chunk
        finally:
            self.close()

    def close(self, state: ConnectionState = ConnectionState.CLOSED) -> bool:
        """Tear the connection down; returns ``False`` when it was already closed."""

        if self.is_closed:
            return False
        self.state = state

        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        for task in self._tasks:
            if task is not current and not task.done():
                task.cancel()
        self._tasks = []
        self._pending.clear()

        self._on_close(self)
        self._wake_stream()
        logger.info("Stream %s %s", self.id, state.value)
        return True

    def _send_notification(self, notification: Notification) -> None:
        self.send(FRAME_NOTIFICATION, serialize_notification(notification))
        if notification.id:
            self._sent_ids.add(notification.id)

    def _advance(self, notifications: Sequence[Notification]) -> None:
        for notification in notifications:
            created_at = notification.created_at
            if created_at is not None and (self.last_seen is None or created_at > self.last_seen):
                self.last_seen = created_at

    async def _load(self, *, limit: int, include_read: bool) -> list[Notification]:
        return await anyio.to_thread.run_sync(
            partial(
                self._store.list_for_user,
                self.user_id,
                self.role,
                limit=limit,
                include_read=include_read,
            )
        )

    async def _heartbeat_loop(self) -> None:
        while not self.is_closed:
            await asyncio.sleep(self._heartbeat_interval)
            try:
                self.send(FRAME_HEARTBEAT, {"timestamp": int(time.time() * 1000)})
            except StreamSendError:
                logger.info("Heartbeat failed on stream %s", self.id)
                self.close(ConnectionState.ERRORED)
                return

    async def _poll_loop(self) -> None:
        while not self.is_closed:
            await asyncio.sleep(self._poll_interval)
            try:
                await self.poll_once()
            except StreamSendError:
                logger.info("Polling could not write to stream %s", self.id)
                self.close(ConnectionState.ERRORED)
                return
            except Exception:
                logger.exception("Polling tick failed on stream %s; retrying next tick", self.id)

    async def _expire(self) -> None:
        await asyncio.sleep(self._max_duration)
        logger.info("Stream %s reached its %.0fs ceiling", self.id, self._max_duration)
        self.close(ConnectionState.TIMED_OUT)

    def _wake_stream(self) -> None:
        while True:
            try:
                self._queue.put_nowait(None)
                return
            except asyncio.QueueFull:
                self._queue.get_nowait()


__all__ = ["ConnectionState", "LiveConnection", "StreamSendError", "TERMINAL_STATES"]
