"""Persistence helpers for notification preferences."""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from church_app.domain.entities import NotificationPreferences
from church_app.infrastructure.models import NotificationPreferencesModel
from church_app.utils import ensure_app_timezone

_UPDATABLE_FIELDS = (
    "push_enabled",
    "announcements",
    "events",
    "prayer_requests",
    "system_alerts",
    "quiet_hours_enabled",
    "quiet_hours_start",
    "quiet_hours_end",
)


class NotificationPreferencesRepository:
    """Read and upsert :class:`NotificationPreferences` rows."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: str) -> NotificationPreferences | None:
        model = self.session.get(NotificationPreferencesModel, user_id)
        if model is None:
            return None
        return self._to_entity(model)

    def upsert(self, user_id: str, changes: dict[str, Any]) -> NotificationPreferences:
        """Apply ``changes`` on top of the stored row, or on top of the defaults."""

        unknown = set(changes) - set(_UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown preference fields: {', '.join(sorted(unknown))}")

        model = self.session.get(NotificationPreferencesModel, user_id)
        if model is None:
            defaults = NotificationPreferences.defaults(user_id)
            model = NotificationPreferencesModel(
                user_id=user_id,
                **{name: getattr(defaults, name) for name in _UPDATABLE_FIELDS},
            )
            self.session.add(model)
        for name, value in changes.items():
            setattr(model, name, value)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    @staticmethod
    def _to_entity(model: NotificationPreferencesModel) -> NotificationPreferences:
        return NotificationPreferences(
            user_id=model.user_id,
            push_enabled=bool(model.push_enabled),
            announcements=bool(model.announcements),
            events=bool(model.events),
            prayer_requests=bool(model.prayer_requests),
            system_alerts=bool(model.system_alerts),
            quiet_hours_enabled=bool(model.quiet_hours_enabled),
            quiet_hours_start=model.quiet_hours_start,
            quiet_hours_end=model.quiet_hours_end,
            updated_at=ensure_app_timezone(model.updated_at),
        )


__all__ = ["NotificationPreferencesRepository"]
