"""Tests for translating pywebpush outcomes into delivery errors."""

from types import SimpleNamespace

import pytest
from pywebpush import WebPushException

from church_app.domain.entities import PushSubscription
from church_app.infrastructure import webpush as webpush_module
from church_app.infrastructure.webpush import (
    PushDeliveryError,
    PushEndpointGoneError,
    WebPushSender,
)


def _subscription(endpoint="https://push.example/1"):
    return PushSubscription(
        id=1, user_id="u1", user_role="member", endpoint=endpoint, p256dh="key", auth="secret"
    )


def _raising(exc):
    def fake_webpush(**kwargs):
        raise exc

    return fake_webpush


def _rejected(status_code):
    response = SimpleNamespace(status_code=status_code, text="rejected")
    return WebPushException("Push failed", response=response)


def test_send_passes_vapid_claims_and_urgency(monkeypatch):
    calls = []
    monkeypatch.setattr(webpush_module, "webpush", lambda **kwargs: calls.append(kwargs))
    sender = WebPushSender("private", "mailto:admin@example.com", ttl=60)

    sender.send(_subscription(), {"title": "Hi"}, urgency="high")
    sender.send(_subscription(), {"title": "Again"})

    assert calls[0]["subscription_info"]["endpoint"] == "https://push.example/1"
    assert calls[0]["data"] == '{"title": "Hi"}'
    assert calls[0]["vapid_claims"] == {"sub": "mailto:admin@example.com"}
    assert calls[0]["ttl"] == 60
    assert calls[0]["headers"] == {"Urgency": "high"}
    # Each call gets its own claims dict.
    assert calls[0]["vapid_claims"] is not calls[1]["vapid_claims"]


@pytest.mark.parametrize("status_code", [404, 410])
def test_missing_endpoint_is_reported_as_gone(monkeypatch, status_code):
    monkeypatch.setattr(webpush_module, "webpush", _raising(_rejected(status_code)))
    sender = WebPushSender("private", "mailto:admin@example.com")

    with pytest.raises(PushEndpointGoneError) as excinfo:
        sender.send(_subscription(), {"title": "Hi"})

    assert excinfo.value.status_code == status_code
    assert excinfo.value.endpoint == "https://push.example/1"


@pytest.mark.parametrize(
    "error",
    [
        _rejected(500),
        WebPushException("No response"),
        ConnectionError("network down"),
        TimeoutError("read timed out"),
        ValueError("Could not deserialize key data"),
    ],
)
def test_other_errors_are_transient(monkeypatch, error):
    monkeypatch.setattr(webpush_module, "webpush", _raising(error))
    sender = WebPushSender("private", "mailto:admin@example.com")

    with pytest.raises(PushDeliveryError) as excinfo:
        sender.send(_subscription(), {"title": "Hi"})

    assert not isinstance(excinfo.value, PushEndpointGoneError)
    assert excinfo.value.__cause__ is error
