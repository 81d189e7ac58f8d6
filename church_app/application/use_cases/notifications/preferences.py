"""Use cases for reading and updating push preferences."""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from church_app.domain.entities import NotificationPreferences
from church_app.infrastructure.repositories import NotificationPreferencesRepository
from church_app.utils import parse_time_of_day

_QUIET_HOUR_FIELDS = ("quiet_hours_start", "quiet_hours_end")


def get_preferences(session: Session, user_id: str) -> tuple[NotificationPreferences, bool]:
    """Return the stored preferences and whether the defaults were used instead."""

    preferences = NotificationPreferencesRepository(session).get(user_id)
    if preferences is None:
        return NotificationPreferences.defaults(user_id), True
    return preferences, False


def update_preferences(
    session: Session, user_id: str, changes: dict[str, Any]
) -> NotificationPreferences:
    """Apply a partial update, validating quiet hour bounds as ``HH:MM``."""

    normalized = dict(changes)
    for name in _QUIET_HOUR_FIELDS:
        if name not in normalized:
            continue
        value = normalized[name]
        normalized[name] = parse_time_of_day(value).strftime("%H:%M") if value else None

    repository = NotificationPreferencesRepository(session)
    if normalized.get("quiet_hours_enabled"):
        current = repository.get(user_id)
        start = normalized.get("quiet_hours_start", current.quiet_hours_start if current else None)
        end = normalized.get("quiet_hours_end", current.quiet_hours_end if current else None)
        if not start or not end:
            raise ValueError("Quiet hours need both a start and an end time")

    return repository.upsert(user_id, normalized)


__all__ = ["get_preferences", "update_preferences"]
