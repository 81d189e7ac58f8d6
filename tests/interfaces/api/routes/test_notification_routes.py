"""Integration tests for the notification HTTP endpoints."""

from __future__ import annotations

import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from church_app.application.use_cases.notifications import (
    NotificationDispatcher,
    NotificationStore,
    PushDeliveryService,
)
from church_app.domain.entities import NotificationDraft, User
from church_app.infrastructure.database import build_engine, get_db
from church_app.infrastructure.notifications import (
    BackgroundTaskRunner,
    NotificationConnectionManager,
)
from church_app.infrastructure.security import create_user_token


def _headers(user_id: str, role: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_user_token(User(id=user_id, role=role))}"}


MEMBER = _headers("member-1", "member")
ADMIN = _headers("admin-1", "admin")


@pytest.fixture
def push_sender():
    return None


@pytest.fixture
def app(session_factory):
    from main import create_app

    application = create_app()

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest.fixture
def client(app, session_factory, push_sender):
    with TestClient(app) as test_client:
        store = NotificationStore(session_factory)
        manager = NotificationConnectionManager(store)
        push_service = PushDeliveryService(
            session_factory,
            sender=push_sender,
            public_key="public-key" if push_sender else None,
        )
        app.state.notification_store = store
        app.state.connection_manager = manager
        app.state.push_service = push_service
        app.state.notification_dispatcher = NotificationDispatcher(
            store, manager, push_service, BackgroundTaskRunner()
        )
        yield test_client


def _create(app, **overrides):
    values = {"title": "Potluck", "message": "Bring a dish", "type": "event"}
    values.update(overrides)
    return app.state.notification_store.create(NotificationDraft(**values))


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_requests_without_token_are_rejected(client):
    assert client.get("/notifications/").status_code == 401
    assert client.get("/notifications/stream").status_code == 401
    assert client.get("/notifications/unread-count", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_list_returns_visible_notifications_with_counts(app, client):
    visible = _create(app)
    _create(app, target_audience="admin")

    response = client.get("/notifications/", headers=MEMBER)

    assert response.status_code == 200
    body = response.json()
    assert [item["id"] for item in body["notifications"]] == [visible.id]
    assert body["notifications"][0]["read"] is False
    assert body["unread_count"] == 1
    assert body["total"] == 1


def test_list_limit_is_bounded(client):
    assert client.get("/notifications/?limit=0", headers=MEMBER).status_code == 422
    assert client.get("/notifications/?limit=101", headers=MEMBER).status_code == 422


def test_token_query_parameter_is_accepted(app, client):
    _create(app)
    token = create_user_token(User(id="member-1", role="member"))

    response = client.get(f"/notifications/unread-count?token={token}")

    assert response.json() == {"unread_count": 1}


def test_mark_read_and_mark_all_read(app, client):
    first = _create(app)
    _create(app, title="Choir practice")

    response = client.post(f"/notifications/{first.id}/read", headers=MEMBER)
    assert response.status_code == 200
    assert client.post(f"/notifications/{first.id}/read", headers=MEMBER).status_code == 200
    assert client.get("/notifications/unread-count", headers=MEMBER).json()["unread_count"] == 1

    assert client.post("/notifications/read-all", headers=MEMBER).json()["success"] is True
    assert client.get("/notifications/unread-count", headers=MEMBER).json()["unread_count"] == 0


def test_mark_read_unknown_notification_returns_404(client):
    assert client.post("/notifications/missing/read", headers=MEMBER).status_code == 404


def test_store_failures_are_reported_as_server_errors(app, client, tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'empty.db'}")
    app.state.notification_store = NotificationStore(sessionmaker(bind=engine))
    try:
        assert client.post("/notifications/some-id/read", headers=MEMBER).status_code == 500
        assert client.post("/notifications/read-all", headers=MEMBER).status_code == 500
    finally:
        engine.dispose()


def test_action_endpoint(app, client):
    notification = _create(app)

    assert client.post("/notifications/", json={"action": "mark_read"}, headers=MEMBER).status_code == 422
    marked = client.post(
        "/notifications/",
        json={"action": "mark_read", "notification_id": notification.id},
        headers=MEMBER,
    )
    assert marked.status_code == 200
    assert client.post("/notifications/", json={"action": "mark_all_read"}, headers=MEMBER).status_code == 200
    assert client.get("/notifications/unread-count", headers=MEMBER).json()["unread_count"] == 0


def test_send_requires_admin(client):
    payload = {"title": "Fasting week", "message": "Join us", "type": "announcement"}

    assert client.post("/notifications/send", json=payload, headers=MEMBER).status_code == 403

    response = client.post("/notifications/send", json=payload, headers=ADMIN)
    assert response.status_code == 201
    created = response.json()
    assert created["target_audience"] == "all"

    listed = client.get("/notifications/", headers=MEMBER).json()["notifications"]
    assert [item["id"] for item in listed] == [created["id"]]


def test_send_specific_requires_recipients(client):
    payload = {
        "title": "For you",
        "message": "Hello",
        "type": "system",
        "target_audience": "specific",
    }

    assert client.post("/notifications/send", json=payload, headers=ADMIN).status_code == 422


def test_stream_status_is_admin_only(client):
    assert client.get("/notifications/stream/status", headers=MEMBER).status_code == 403

    status_body = client.get("/notifications/stream/status", headers=ADMIN).json()
    assert status_body["active_connections"] == 0
    assert status_body["push_configured"] is False


def test_push_endpoints_report_missing_configuration(client):
    assert client.get("/notifications/push/public-key").status_code == 503
    subscribe = client.post(
        "/notifications/push/subscribe",
        json={"subscription": {"endpoint": "https://push.example/1", "keys": {"p256dh": "k", "auth": "a"}}},
        headers=MEMBER,
    )
    assert subscribe.status_code == 503
    listed = client.get("/notifications/push/subscriptions", headers=MEMBER).json()
    assert listed == {"configured": False, "subscriptions": []}


class _NullSender:
    def send(self, subscription, payload, *, urgency="normal"):
        return None


@pytest.mark.parametrize("push_sender", [_NullSender()])
def test_subscribe_and_unsubscribe(client, push_sender):
    body = {
        "subscription": {"endpoint": "https://push.example/1", "keys": {"p256dh": "k", "auth": "a"}},
        "device_name": "Phone",
    }

    assert client.get("/notifications/push/public-key").json() == {"public_key": "public-key"}
    first = client.post("/notifications/push/subscribe", json=body, headers=MEMBER)
    second = client.post("/notifications/push/subscribe", json=body, headers=MEMBER)
    assert first.status_code == second.status_code == 200
    assert first.json()["id"] == second.json()["id"]

    listed = client.get("/notifications/push/subscriptions", headers=MEMBER).json()
    assert listed["configured"] is True
    assert [item["device_name"] for item in listed["subscriptions"]] == ["Phone"]
    assert client.get("/notifications/preferences", headers=MEMBER).json()["push_enabled"] is True

    removed = client.post(
        "/notifications/push/unsubscribe", json={"endpoint": "https://push.example/1"}, headers=MEMBER
    )
    assert removed.status_code == 200
    again = client.post(
        "/notifications/push/unsubscribe", json={"endpoint": "https://push.example/1"}, headers=MEMBER
    )
    assert again.status_code == 404


def test_preferences_defaults_and_update(client):
    defaults = client.get("/notifications/preferences", headers=MEMBER).json()
    assert defaults["is_default"] is True
    assert defaults["push_enabled"] is True
    assert defaults["quiet_hours_enabled"] is False

    updated = client.put(
        "/notifications/preferences",
        json={
            "events": False,
            "quiet_hours_enabled": True,
            "quiet_hours_start": "22:00",
            "quiet_hours_end": "07:00",
        },
        headers=MEMBER,
    )
    assert updated.status_code == 200

    stored = client.get("/notifications/preferences", headers=MEMBER).json()
    assert stored["is_default"] is False
    assert stored["events"] is False
    assert stored["announcements"] is True
    assert (stored["quiet_hours_start"], stored["quiet_hours_end"]) == ("22:00", "07:00")


@pytest.mark.parametrize(
    "payload",
    [
        {"quiet_hours_start": "25:00"},
        {"quiet_hours_end": "7pm"},
        {"quiet_hours_enabled": True, "quiet_hours_start": "22:00"},
    ],
)
def test_preferences_reject_invalid_quiet_hours(client, payload):
    response = client.put("/notifications/preferences", json=payload, headers=MEMBER)

    assert response.status_code == 400
