"""ORM models used by the application infrastructure."""

from .notification import NotificationModel, NotificationReadModel
from .notification_preferences import NotificationPreferencesModel
from .push_subscription import PushSubscriptionModel

__all__ = [
    "NotificationModel",
    "NotificationReadModel",
    "NotificationPreferencesModel",
    "PushSubscriptionModel",
]
