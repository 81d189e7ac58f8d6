"""Serialization helpers shared by the live stream and the HTTP endpoints."""

from __future__ import annotations

import json
from typing import Any

from church_app.domain.entities import Notification

FRAME_CONNECTED = "connected"
FRAME_INITIAL_NOTIFICATIONS = "initial_notifications"
FRAME_NOTIFICATION = "notification"
FRAME_HEARTBEAT = "heartbeat"
FRAME_TYPES = (
    FRAME_CONNECTED,
    FRAME_INITIAL_NOTIFICATIONS,
    FRAME_NOTIFICATION,
    FRAME_HEARTBEAT,
)


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the JSON payload representation for ``notification``."""

    return {
        "id": notification.id,
        "title": notification.title,
        "message": notification.message,
        "type": notification.type,
        "priority": notification.priority,
        "target_audience": notification.target_audience,
        "metadata": notification.metadata or {},
        "action_url": notification.action_url,
        "expires_at": notification.expires_at.isoformat()
        if notification.expires_at
        else None,
        "created_at": notification.created_at.isoformat()
        if notification.created_at
        else None,
        "read": notification.read,
    }


def encode_frame(frame_type: str, payload: Any) -> str:
    """Encode one server-sent event carrying ``{"type": ..., "payload": ...}``."""

    if frame_type not in FRAME_TYPES:
        raise ValueError(f"Unknown frame type '{frame_type}'")
    body = json.dumps({"type": frame_type, "payload": payload}, separators=(",", ":"))
    return f"data: {body}\n\n"


def decode_frame(chunk: str) -> dict[str, Any]:
    """Parse a chunk produced by :func:`encode_frame`."""

    line = chunk.strip()
    if not line.startswith("data:"):
        raise ValueError("Not a server-sent event data line")
    return json.loads(line[len("data:"):].strip())


__all__ = [
    "FRAME_CONNECTED",
    "FRAME_HEARTBEAT",
    "FRAME_INITIAL_NOTIFICATIONS",
    "FRAME_NOTIFICATION",
    "FRAME_TYPES",
    "decode_frame",
    "encode_frame",
    "serialize_notification",
]
