"""Repository implementations for infrastructure layer."""

from .notification_preferences_repository import NotificationPreferencesRepository
from .notification_repository import NotificationRepository
from .push_subscription_repository import PushSubscriptionRepository

__all__ = [
    "NotificationPreferencesRepository",
    "NotificationRepository",
    "PushSubscriptionRepository",
]
