"""Tests for live notification streams and the connection registry."""

import asyncio

import pytest

from church_app.domain.entities import Notification, NotificationDraft
from church_app.infrastructure.notifications import (
    ConnectionState,
    LiveConnection,
    NotificationConnectionManager,
    decode_frame,
)
from church_app.utils import now_in_app_timezone


async def _next_frame(stream, timeout=2.0):
    return decode_frame(await asyncio.wait_for(stream.__anext__(), timeout))


def _manager(store, **overrides):
    options = {
        "heartbeat_interval": 60.0,
        "poll_interval": 60.0,
        "max_duration": 60.0,
    }
    options.update(overrides)
    return NotificationConnectionManager(store, **options)


def _draft(**overrides):
    values = {"title": "Welcome", "message": "Hello church", "type": "announcement"}
    values.update(overrides)
    return NotificationDraft(**values)


class _StaticStore:
    def __init__(self, notifications=()):
        self.notifications = list(notifications)

    def list_for_user(self, user_id, role, *, limit=50, include_read=False):
        return list(self.notifications)


@pytest.mark.anyio
async def test_connect_sends_ack_then_initial_batch(store):
    existing = store.create(_draft(title="Earlier"))
    manager = _manager(store)

    connection = await manager.connect(user_id="m1", role="member", connection_id="c1")
    stream = connection.stream()
    try:
        connected = await _next_frame(stream)
        initial = await _next_frame(stream)

        assert connected["type"] == "connected"
        assert connected["payload"]["connection_id"] == "c1"
        assert initial["type"] == "initial_notifications"
        assert [item["id"] for item in initial["payload"]] == [existing.id]
        assert connection.state is ConnectionState.OPEN
        assert connection.last_seen == existing.created_at
        assert "c1" in manager
    finally:
        await stream.aclose()

    assert len(manager) == 0


@pytest.mark.anyio
async def test_broadcast_reaches_matching_connections_only(store):
    manager = _manager(store)
    member = await manager.connect(user_id="m1", role="member")
    visitor = await manager.connect(user_id="v1", role="visitor")
    member_stream, visitor_stream = member.stream(), visitor.stream()
    try:
        for stream in (member_stream, visitor_stream):
            await _next_frame(stream)
            await _next_frame(stream)

        notification = store.create(_draft(target_audience="members"))
        assert manager.broadcast(notification) == 1

        frame = await _next_frame(member_stream)
        assert frame["type"] == "notification"
        assert frame["payload"]["id"] == notification.id
        assert frame["payload"]["title"] == notification.title
        with pytest.raises(asyncio.TimeoutError):
            await _next_frame(visitor_stream, timeout=0.1)
    finally:
        manager.close_all()
        await member_stream.aclose()
        await visitor_stream.aclose()


@pytest.mark.anyio
async def test_polling_delivers_when_broadcast_is_disabled(store):
    manager = _manager(store, poll_interval=0.05, broadcast_enabled=False)
    connection = await manager.connect(user_id="m1", role="member")
    stream = connection.stream()
    try:
        await _next_frame(stream)
        await _next_frame(stream)

        notification = store.create(_draft())
        assert manager.broadcast(notification) == 0

        frame = await _next_frame(stream)
        assert frame["type"] == "notification"
        assert frame["payload"]["id"] == notification.id
        assert frame["payload"]["read"] is False
        assert connection.last_seen == notification.created_at
        # The high-water mark prevents a second delivery on the next tick.
        assert await connection.poll_once() == 0
    finally:
        await stream.aclose()

    assert [item.id for item in store.list_for_user("m1", "member")] == [notification.id]


@pytest.mark.anyio
async def test_poller_skips_notifications_already_broadcast(store):
    manager = _manager(store)
    connection = await manager.connect(user_id="m1", role="member")
    stream = connection.stream()
    try:
        await _next_frame(stream)
        await _next_frame(stream)
        notification = store.create(_draft())
        manager.broadcast(notification)
        await _next_frame(stream)

        assert await connection.poll_once() == 0
    finally:
        await stream.aclose()


@pytest.mark.anyio
async def test_heartbeat_is_sent_periodically(store):
    manager = _manager(store, heartbeat_interval=0.05)
    connection = await manager.connect(user_id="m1", role="member")
    stream = connection.stream()
    try:
        await _next_frame(stream)
        await _next_frame(stream)

        frame = await _next_frame(stream)
        assert frame["type"] == "heartbeat"
        assert isinstance(frame["payload"]["timestamp"], int)
    finally:
        await stream.aclose()


@pytest.mark.anyio
async def test_connection_is_closed_after_max_duration(store):
    manager = _manager(store, max_duration=0.1)
    connection = await manager.connect(user_id="m1", role="member")
    stream = connection.stream()

    frames = [decode_frame(chunk) async for chunk in stream]

    assert [frame["type"] for frame in frames] == ["connected", "initial_notifications"]
    assert connection.state is ConnectionState.TIMED_OUT
    assert connection.active_timers == 0
    assert len(manager) == 0


@pytest.mark.anyio
async def test_close_twice_is_harmless(store):
    manager = _manager(store)
    first = await manager.connect(user_id="m1", role="member")
    await manager.connect(user_id="m2", role="member")

    assert len(manager) == 2
    assert first.close() is True
    assert first.close() is False
    assert len(manager) == 1
    assert first.active_timers == 0
    manager.close_all()
    assert len(manager) == 0


@pytest.mark.anyio
async def test_undrained_connection_is_swept_on_broadcast(store):
    manager = _manager(store, queue_size=2)
    connection = await manager.connect(user_id="m1", role="member")

    notification = store.create(_draft())
    assert manager.broadcast(notification) == 0

    assert connection.state is ConnectionState.ERRORED
    assert len(manager) == 0


@pytest.mark.anyio
async def test_reusing_connection_id_replaces_previous_stream(store):
    manager = _manager(store)
    old = await manager.connect(user_id="m1", role="member", connection_id="tab")
    new = await manager.connect(user_id="m1", role="member", connection_id="tab")

    assert old.is_closed
    assert manager.get("tab") is new
    assert len(manager) == 1
    manager.close_all()


@pytest.mark.anyio
async def test_connection_id_of_another_user_is_not_taken_over(store):
    manager = _manager(store)
    owner = await manager.connect(user_id="m1", role="member", connection_id="tab")
    other = await manager.connect(user_id="m2", role="member", connection_id="tab")

    assert owner.state is ConnectionState.OPEN
    assert manager.get("tab") is owner
    assert other.id != "tab"
    assert manager.get(other.id) is other
    assert len(manager) == 2
    manager.close_all()


class _FlakyStore(_StaticStore):
    """Fails the first poll after the initial batch, then recovers."""

    def __init__(self, notifications=()):
        super().__init__(notifications)
        self.calls = 0

    def list_for_user(self, user_id, role, *, limit=50, include_read=False):
        self.calls += 1
        if self.calls == 2:
            raise RuntimeError("database unavailable")
        return super().list_for_user(user_id, role, limit=limit, include_read=include_read)


@pytest.mark.anyio
async def test_failed_poll_keeps_connection_open():
    flaky = _FlakyStore()
    connection = LiveConnection(
        "c1",
        user_id="m1",
        role="member",
        store=flaky,
        on_close=lambda _: None,
        heartbeat_interval=60.0,
        poll_interval=0.05,
        max_duration=60.0,
    )
    await connection.open()
    stream = connection.stream()
    try:
        await _next_frame(stream)
        await _next_frame(stream)
        flaky.notifications = [
            Notification(
                id="later",
                title="Later",
                message="m",
                type="event",
                created_at=now_in_app_timezone(),
            )
        ]

        frame = await _next_frame(stream)

        assert flaky.calls >= 3
        assert frame["type"] == "notification"
        assert frame["payload"]["id"] == "later"
        assert connection.state is ConnectionState.OPEN
        assert connection.active_timers == 3
    finally:
        await stream.aclose()


@pytest.mark.anyio
async def test_live_notification_waits_for_initial_batch():
    earlier = Notification(id="old", title="Old", message="m", type="event")
    live = Notification(id="live", title="Live", message="m", type="event")
    connection = LiveConnection(
        "c1",
        user_id="m1",
        role="member",
        store=_StaticStore([earlier]),
        on_close=lambda _: None,
        heartbeat_interval=60.0,
        poll_interval=60.0,
        max_duration=60.0,
    )

    connection.deliver(live)
    await connection.open()
    stream = connection.stream()
    try:
        types = [(await _next_frame(stream))["type"] for _ in range(3)]
    finally:
        await stream.aclose()

    assert types == ["connected", "initial_notifications", "notification"]


def test_status_reports_active_connections(store):
    manager = _manager(store)

    status = manager.status()

    assert status["active_connections"] == 0
    assert status["broadcast_enabled"] is True
