"""Tests for publishing notifications through the dispatcher."""

import asyncio

import pytest

from church_app.application.use_cases.notifications import (
    NotificationDispatcher,
    NotificationStore,
    PushDeliveryService,
    register_push_subscription,
)
from church_app.domain.entities import NotificationDraft, User
from church_app.infrastructure.database import build_engine
from church_app.infrastructure.notifications import (
    BackgroundTaskRunner,
    NotificationConnectionManager,
    decode_frame,
)
from sqlalchemy.orm import sessionmaker


def _draft(**overrides):
    values = {"title": "Bible study", "message": "Wednesday 7pm", "type": "event"}
    values.update(overrides)
    return NotificationDraft(**values)


def _dispatcher(store, push_service):
    manager = NotificationConnectionManager(
        store, heartbeat_interval=60.0, poll_interval=60.0, max_duration=60.0
    )
    return NotificationDispatcher(store, manager, push_service, BackgroundTaskRunner())


@pytest.mark.anyio
async def test_publish_persists_broadcasts_and_pushes(store, session_factory, fake_sender):
    session = session_factory()
    try:
        register_push_subscription(
            session,
            user=User(id="m1", role="member"),
            endpoint="https://push.example/m1",
            p256dh="key",
            auth="secret",
        )
    finally:
        session.close()
    push_service = PushDeliveryService(session_factory, sender=fake_sender, public_key="pk")
    dispatcher = _dispatcher(store, push_service)
    connection = await dispatcher.manager.connect(user_id="m1", role="member")
    stream = connection.stream()
    try:
        await stream.__anext__()
        await stream.__anext__()

        notification = await dispatcher.publish(_draft())
        await dispatcher.runner.drain()

        frame = decode_frame(await asyncio.wait_for(stream.__anext__(), 2))
        assert frame["payload"]["id"] == notification.id
        assert [endpoint for endpoint, _, _ in fake_sender.sent] == ["https://push.example/m1"]
    finally:
        await stream.aclose()


@pytest.mark.anyio
async def test_publish_without_push_flag_skips_push(store, session_factory, fake_sender):
    push_service = PushDeliveryService(session_factory, sender=fake_sender, public_key="pk")
    dispatcher = _dispatcher(store, push_service)

    notification = await dispatcher.publish(_draft(send_push=False))
    await dispatcher.runner.drain()

    assert notification is not None
    assert dispatcher.runner.pending == 0
    assert fake_sender.sent == []


def test_publish_sync_outside_event_loop(store, session_factory):
    dispatcher = _dispatcher(store, PushDeliveryService(session_factory))

    notification = dispatcher.publish_sync(_draft())

    assert notification is not None
    assert store.get(notification.id).title == "Bible study"


@pytest.mark.anyio
async def test_store_failure_returns_none_without_fan_out(tmp_path, fake_sender):
    engine = build_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    broken_store = NotificationStore(sessionmaker(bind=engine))
    dispatcher = _dispatcher(
        broken_store, PushDeliveryService(sessionmaker(bind=engine), sender=fake_sender)
    )

    assert await dispatcher.publish(_draft()) is None
    assert dispatcher.runner.pending == 0
    engine.dispose()


def test_status_reports_push_capability(store, session_factory, fake_sender):
    unconfigured = _dispatcher(store, PushDeliveryService(session_factory))
    configured = _dispatcher(
        store, PushDeliveryService(session_factory, sender=fake_sender, public_key="pk")
    )

    assert unconfigured.status()["push_configured"] is False
    assert configured.status()["push_configured"] is True
    assert configured.status()["active_connections"] == 0
