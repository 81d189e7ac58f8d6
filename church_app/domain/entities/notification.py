"""Domain entities describing persisted notifications."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

NOTIFICATION_TYPE_ANNOUNCEMENT = "announcement"
NOTIFICATION_TYPE_EVENT = "event"
NOTIFICATION_TYPE_PRAYER_REQUEST = "prayer_request"
NOTIFICATION_TYPE_SYSTEM = "system"
NOTIFICATION_TYPE_ADMIN = "admin"
NOTIFICATION_TYPES = (
    NOTIFICATION_TYPE_ANNOUNCEMENT,
    NOTIFICATION_TYPE_EVENT,
    NOTIFICATION_TYPE_PRAYER_REQUEST,
    NOTIFICATION_TYPE_SYSTEM,
    NOTIFICATION_TYPE_ADMIN,
)

PRIORITY_LOW = "low"
PRIORITY_MEDIUM = "medium"
PRIORITY_HIGH = "high"
PRIORITY_URGENT = "urgent"
NOTIFICATION_PRIORITIES = (PRIORITY_LOW, PRIORITY_MEDIUM, PRIORITY_HIGH, PRIORITY_URGENT)

AUDIENCE_ALL = "all"
AUDIENCE_MEMBERS = "members"
AUDIENCE_ADMIN = "admin"
AUDIENCE_SPECIFIC = "specific"
TARGET_AUDIENCES = (AUDIENCE_ALL, AUDIENCE_MEMBERS, AUDIENCE_ADMIN, AUDIENCE_SPECIFIC)


@dataclass
class Notification:
    """A message shown to every user whose role or id matches its audience."""

    id: str | None
    title: str
    message: str
    type: str
    priority: str = PRIORITY_MEDIUM
    target_audience: str = AUDIENCE_ALL
    specific_user_ids: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)
    action_url: str | None = None
    expires_at: datetime | None = None
    created_at: datetime | None = None
    read: bool = False

    def is_expired(self, now: datetime) -> bool:
        """Return ``True`` once ``expires_at`` lies in the past relative to ``now``."""

        return self.expires_at is not None and self.expires_at < now

    def requires_interaction(self) -> bool:
        return self.priority in (PRIORITY_HIGH, PRIORITY_URGENT)


@dataclass(frozen=True)
class NotificationDraft:
    """Input accepted by the store when a collaborator creates a notification."""

    title: str
    message: str
    type: str
    priority: str = PRIORITY_MEDIUM
    target_audience: str = AUDIENCE_ALL
    specific_user_ids: tuple[str, ...] = ()
    metadata: dict[str, Any] = field(default_factory=dict)
    action_url: str | None = None
    expires_at: datetime | None = None
    send_push: bool = True

    def __post_init__(self) -> None:
        if self.type not in NOTIFICATION_TYPES:
            raise ValueError(f"Unknown notification type '{self.type}'")
        if self.priority not in NOTIFICATION_PRIORITIES:
            raise ValueError(f"Unknown notification priority '{self.priority}'")
        if self.target_audience not in TARGET_AUDIENCES:
            raise ValueError(f"Unknown target audience '{self.target_audience}'")
        if self.target_audience == AUDIENCE_SPECIFIC and not self.specific_user_ids:
            raise ValueError("A 'specific' audience requires at least one recipient")

    def recipients(self) -> list[str]:
        """Return the explicit recipients, which only apply to ``specific`` audiences."""

        if self.target_audience != AUDIENCE_SPECIFIC:
            return []
        return list(dict.fromkeys(self.specific_user_ids))


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
]
