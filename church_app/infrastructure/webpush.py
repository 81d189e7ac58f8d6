"""Thin wrapper around ``pywebpush`` used by the push delivery service."""

from __future__ import annotations

import json
import logging
from typing import Any

from pywebpush import WebPushException, webpush

from church_app.domain.entities import PushSubscription

logger = logging.getLogger(__name__)

GONE_STATUS_CODES = frozenset({404, 410})


class PushDeliveryError(RuntimeError):
    """Raised when a push message could not be delivered for a transient reason."""


class PushEndpointGoneError(PushDeliveryError):
    """Raised when the push service reports that the endpoint no longer exists."""

    def __init__(self, endpoint: str, status_code: int) -> None:
        super().__init__(f"Push endpoint gone ({status_code}): {endpoint}")
        self.endpoint = endpoint
        self.status_code = status_code


class WebPushSender:
    """Sign and send one Web Push message with the configured VAPID key."""

    def __init__(self, private_key: str, subject: str, *, ttl: int = 86400) -> None:
        self.private_key = private_key
        self.subject = subject
        self.ttl = ttl

    def send(
        self,
        subscription: PushSubscription,
        payload: dict[str, Any],
        *,
        urgency: str = "normal",
    ) -> None:
        """Deliver ``payload`` to ``subscription`` or raise :class:`PushDeliveryError`."""

        try:
            webpush(
                subscription_info=subscription.to_subscription_info(),
                data=json.dumps(payload),
                vapid_private_key=self.private_key,
                # pywebpush adds ``aud`` and ``exp`` to the claims dict it receives.
                vapid_claims={"sub": self.subject},
                ttl=self.ttl,
                headers={"Urgency": urgency},
            )
        except WebPushException as exc:
            response = getattr(exc, "response", None)
            status_code = getattr(response, "status_code", None)
            if status_code in GONE_STATUS_CODES:
                raise PushEndpointGoneError(subscription.endpoint, status_code) from exc
            raise PushDeliveryError(str(exc)) from exc
        except Exception as exc:
            # Network failures, timeouts and malformed keys are transient for the caller.
            raise PushDeliveryError(f"{type(exc).__name__}: {exc}") from exc


__all__ = [
    "GONE_STATUS_CODES",
    "PushDeliveryError",
    "PushEndpointGoneError",
    "WebPushSender",
]
