"""Pure rules deciding who may see a notification and who may be pushed one."""

from __future__ import annotations

from datetime import datetime, time

from church_app.domain.entities import (
    AUDIENCE_ADMIN,
    AUDIENCE_ALL,
    AUDIENCE_MEMBERS,
    AUDIENCE_SPECIFIC,
    ROLE_ADMIN,
    ROLE_MEMBER,
    ROLE_VISITOR,
    Notification,
    NotificationPreferences,
    normalize_role,
)
from church_app.utils import parse_time_of_day

_AUDIENCES_BY_ROLE: dict[str, frozenset[str]] = {
    ROLE_ADMIN: frozenset({AUDIENCE_ALL, AUDIENCE_ADMIN, AUDIENCE_MEMBERS}),
    ROLE_MEMBER: frozenset({AUDIENCE_ALL, AUDIENCE_MEMBERS}),
    ROLE_VISITOR: frozenset({AUDIENCE_ALL}),
}


def allowed_audiences(role: str | None) -> frozenset[str]:
    """Return the role-based audiences visible to ``role``.

    ``specific`` is never part of the result: it depends on the user id and is
    checked separately by :func:`is_visible_to`.
    """

    return _AUDIENCES_BY_ROLE[normalize_role(role)]


def roles_for_audience(audience: str) -> frozenset[str]:
    """Return the roles that can see ``audience``; the inverse of :func:`allowed_audiences`."""

    return frozenset(
        role for role, audiences in _AUDIENCES_BY_ROLE.items() if audience in audiences
    )


def is_visible_to(
    notification: Notification,
    user_id: str | None,
    role: str | None,
    *,
    now: datetime,
) -> bool:
    """Return ``True`` when ``notification`` may be shown to the given user."""

    if notification.is_expired(now):
        return False
    if notification.target_audience == AUDIENCE_SPECIFIC:
        return bool(user_id) and user_id in (notification.specific_user_ids or [])
    return notification.target_audience in allowed_audiences(role)


def is_in_quiet_hours(current: time, start: time, end: time) -> bool:
    """Return ``True`` when ``current`` falls inside the ``[start, end)`` window.

    A window whose start is not before its end wraps past midnight.
    """

    if start < end:
        return start <= current < end
    return current >= start or current < end


def push_suppression_reason(
    preferences: NotificationPreferences | None,
    notification_type: str,
    *,
    current: time,
) -> str | None:
    """Return why a push must be suppressed, or ``None`` when delivery is allowed.

    Checks run in order: global flag, per-type flag, quiet hours. The first one
    that fails decides.
    """

    if preferences is None:
        return None
    if not preferences.push_enabled:
        return "push disabled"
    if not preferences.allows_type(notification_type):
        return f"{notification_type} notifications disabled"
    if (
        preferences.quiet_hours_enabled
        and preferences.quiet_hours_start
        and preferences.quiet_hours_end
    ):
        start = parse_time_of_day(preferences.quiet_hours_start)
        end = parse_time_of_day(preferences.quiet_hours_end)
        if is_in_quiet_hours(current, start, end):
            return "quiet hours"
    return None


def push_allowed(
    preferences: NotificationPreferences | None,
    notification_type: str,
    *,
    current: time,
) -> bool:
    return push_suppression_reason(preferences, notification_type, current=current) is None


__all__ = [
    "allowed_audiences",
    "is_in_quiet_hours",
    "is_visible_to",
    "push_allowed",
    "push_suppression_reason",
    "roles_for_audience",
]
