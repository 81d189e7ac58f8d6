"""Domain entities exposed by the application."""

from .notification import (
    AUDIENCE_ADMIN,
    AUDIENCE_ALL,
    AUDIENCE_MEMBERS,
    AUDIENCE_SPECIFIC,
    NOTIFICATION_PRIORITIES,
    NOTIFICATION_TYPES,
    NOTIFICATION_TYPE_ADMIN,
    NOTIFICATION_TYPE_ANNOUNCEMENT,
    NOTIFICATION_TYPE_EVENT,
    NOTIFICATION_TYPE_PRAYER_REQUEST,
    NOTIFICATION_TYPE_SYSTEM,
    PRIORITY_HIGH,
    PRIORITY_LOW,
    PRIORITY_MEDIUM,
    PRIORITY_URGENT,
    TARGET_AUDIENCES,
    Notification,
    NotificationDraft,
)
from .notification_preferences import NotificationPreferences
from .push_subscription import PushSubscription
from .user import (
    ROLES,
    ROLE_ADMIN,
    ROLE_MEMBER,
    ROLE_SUPER_ADMIN,
    ROLE_VISITOR,
    User,
    normalize_role,
)

__all__ = [
    "AUDIENCE_ADMIN",
    "AUDIENCE_ALL",
    "AUDIENCE_MEMBERS",
    "AUDIENCE_SPECIFIC",
    "NOTIFICATION_PRIORITIES",
    "NOTIFICATION_TYPES",
    "NOTIFICATION_TYPE_ADMIN",
    "NOTIFICATION_TYPE_ANNOUNCEMENT",
    "NOTIFICATION_TYPE_EVENT",
    "NOTIFICATION_TYPE_PRAYER_REQUEST",
    "NOTIFICATION_TYPE_SYSTEM",
    "PRIORITY_HIGH",
    "PRIORITY_LOW",
    "PRIORITY_MEDIUM",
    "PRIORITY_URGENT",
    "TARGET_AUDIENCES",
    "Notification",
    "NotificationDraft",
    "NotificationPreferences",
    "PushSubscription",
    "ROLES",
    "ROLE_ADMIN",
    "ROLE_MEMBER",
    "ROLE_SUPER_ADMIN",
    "ROLE_VISITOR",
    "User",
    "normalize_role",
]
