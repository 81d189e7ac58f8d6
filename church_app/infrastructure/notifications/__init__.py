"""Realtime notification helpers for the infrastructure layer."""

from .connection import ConnectionState, LiveConnection, StreamSendError
from .manager import NotificationConnectionManager
from .publisher import (
    FRAME_CONNECTED,
    FRAME_HEARTBEAT,
    FRAME_INITIAL_NOTIFICATIONS,
    FRAME_NOTIFICATION,
    decode_frame,
    encode_frame,
    serialize_notification,
)
from .tasks import BackgroundTaskRunner

__all__ = [
    "BackgroundTaskRunner",
    "ConnectionState",
    "LiveConnection",
    "NotificationConnectionManager",
    "StreamSendError",
    "FRAME_CONNECTED",
    "FRAME_HEARTBEAT",
    "FRAME_INITIAL_NOTIFICATIONS",
    "FRAME_NOTIFICATION",
    "decode_frame",
    "encode_frame",
    "serialize_notification",
]
