"""Pydantic models for notification preference endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from church_app.domain.entities import NotificationPreferences


class PreferencesRead(BaseModel):
    push_enabled: bool
    announcements: bool
    events: bool
    prayer_requests: bool
    system_alerts: bool
    quiet_hours_enabled: bool
    quiet_hours_start: str | None = None
    quiet_hours_end: str | None = None
    updated_at: datetime | None = None
    is_default: bool = False

    @classmethod
    def from_entity(
        cls, preferences: NotificationPreferences, *, is_default: bool = False
    ) -> "PreferencesRead":
        return cls(
            push_enabled=preferences.push_enabled,
            announcements=preferences.announcements,
            events=preferences.events,
            prayer_requests=preferences.prayer_requests,
            system_alerts=preferences.system_alerts,
            quiet_hours_enabled=preferences.quiet_hours_enabled,
            quiet_hours_start=preferences.quiet_hours_start,
            quiet_hours_end=preferences.quiet_hours_end,
            updated_at=preferences.updated_at,
            is_default=is_default,
        )


class PreferencesUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value."""

    push_enabled: bool | None = None
    announcements: bool | None = None
    events: bool | None = None
    prayer_requests: bool | None = None
    system_alerts: bool | None = None
    quiet_hours_enabled: bool | None = None
    quiet_hours_start: str | None = None
    quiet_hours_end: str | None = None

    def changes(self) -> dict[str, object]:
        """Return the submitted fields; ``null`` only clears the quiet hour bounds."""

        submitted = self.model_dump(exclude_unset=True)
        return {
            name: value
            for name, value in submitted.items()
            if value is not None or name in ("quiet_hours_start", "quiet_hours_end")
        }


__all__ = ["PreferencesRead", "PreferencesUpdate"]
