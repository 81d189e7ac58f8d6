"""Domain entity holding per-user push delivery preferences."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from .notification import (
    NOTIFICATION_TYPE_ADMIN,
    NOTIFICATION_TYPE_ANNOUNCEMENT,
    NOTIFICATION_TYPE_EVENT,
    NOTIFICATION_TYPE_PRAYER_REQUEST,
    NOTIFICATION_TYPE_SYSTEM,
)


@dataclass
class NotificationPreferences:
    """Push preferences; a missing row behaves like :meth:`defaults`."""

    user_id: str
    push_enabled: bool = True
    announcements: bool = True
    events: bool = True
    prayer_requests: bool = True
    system_alerts: bool = True
    quiet_hours_enabled: bool = False
    quiet_hours_start: str | None = None
    quiet_hours_end: str | None = None
    updated_at: datetime | None = None

    @classmethod
    def defaults(cls, user_id: str) -> "NotificationPreferences":
        return cls(user_id=user_id)

    def allows_type(self, notification_type: str) -> bool:
        """Return the type-specific flag; unknown types are allowed."""

        flags = {
            NOTIFICATION_TYPE_ANNOUNCEMENT: self.announcements,
            NOTIFICATION_TYPE_EVENT: self.events,
            NOTIFICATION_TYPE_PRAYER_REQUEST: self.prayer_requests,
            NOTIFICATION_TYPE_SYSTEM: self.system_alerts,
            NOTIFICATION_TYPE_ADMIN: self.system_alerts,
        }
        return flags.get(notification_type, True)


__all__ = ["NotificationPreferences"]
