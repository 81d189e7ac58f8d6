"""Aggregate application use cases."""

from .notifications import NotificationDispatcher, NotificationStore, PushDeliveryService

__all__ = [
    "NotificationDispatcher",
    "NotificationStore",
    "PushDeliveryService",
]
