"""Use cases for creating, reading and delivering notifications."""

from . import kinds
from .dispatcher import NotificationDispatcher
from .preferences import get_preferences, update_preferences
from .push import PushDeliveryService, PushResult, build_push_payload
from .push_subscriptions import (
    list_push_subscriptions,
    register_push_subscription,
    unregister_push_subscription,
)
from .store import UNREAD_COUNT_CAP, NotificationNotFoundError, NotificationStore

__all__ = [
    "NotificationDispatcher",
    "NotificationNotFoundError",
    "NotificationStore",
    "PushDeliveryService",
    "PushResult",
    "UNREAD_COUNT_CAP",
    "build_push_payload",
    "get_preferences",
    "kinds",
    "list_push_subscriptions",
    "register_push_subscription",
    "unregister_push_subscription",
    "update_preferences",
]
