"""One builder per notification kind.

Each builder fixes the type, audience, priority and link of its kind and returns a
:class:`NotificationDraft`; publishing it is up to the caller.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Sequence

from church_app.domain.entities import (
    AUDIENCE_ADMIN,
    AUDIENCE_ALL,
    AUDIENCE_SPECIFIC,
    NOTIFICATION_TYPE_ADMIN,
    NOTIFICATION_TYPE_ANNOUNCEMENT,
    NOTIFICATION_TYPE_EVENT,
    NOTIFICATION_TYPE_PRAYER_REQUEST,
    NOTIFICATION_TYPE_SYSTEM,
    PRIORITY_HIGH,
    PRIORITY_LOW,
    PRIORITY_MEDIUM,
    NotificationDraft,
)

REMINDER_24H = "24h"
REMINDER_1H = "1h"
REMINDER_DAY_OF = "day_of"
REMINDER_CUSTOM = "custom"

_REMINDER_PRIORITIES = {
    REMINDER_24H: PRIORITY_MEDIUM,
    REMINDER_1H: PRIORITY_HIGH,
    REMINDER_DAY_OF: PRIORITY_HIGH,
    REMINDER_CUSTOM: PRIORITY_MEDIUM,
}

_PRAYER_STATUS_MESSAGES = {
    "approved": 'Your prayer request "{title}" has been approved and is now visible to the church.',
    "answered": 'Praise God! Your prayer request "{title}" has been marked as answered.',
    "archived": 'Your prayer request "{title}" has been archived.',
}


def _preview(text: str, limit: int) -> str:
    if len(text) > limit:
        return f"{text[:limit]}..."
    return text


def new_prayer_request(
    *, request_id: str, request_title: str, requester_name: str, is_guest: bool = False
) -> NotificationDraft:
    return NotificationDraft(
        title="New Prayer Request",
        message=f'{requester_name} has submitted a prayer request: "{request_title}"',
        type=NOTIFICATION_TYPE_PRAYER_REQUEST,
        priority=PRIORITY_HIGH,
        target_audience=AUDIENCE_ADMIN,
        metadata={
            "request_id": request_id,
            "requester_name": requester_name,
            "is_guest": is_guest,
        },
        action_url="/admin/prayer-requests",
    )


def new_user_registration(*, user_id: str, user_name: str, user_email: str) -> NotificationDraft:
    return NotificationDraft(
        title="New User Registration",
        message=f"{user_name} ({user_email}) has registered as a new member",
        type=NOTIFICATION_TYPE_ADMIN,
        priority=PRIORITY_MEDIUM,
        target_audience=AUDIENCE_ADMIN,
        metadata={"admin_action": "user_registration", "target_user_id": user_id},
        action_url="/admin/users",
    )


def new_membership_request(*, request_id: str, name: str, email: str) -> NotificationDraft:
    return NotificationDraft(
        title="New Membership Request",
        message=f"{name} ({email}) has submitted a membership request",
        type=NOTIFICATION_TYPE_ADMIN,
        priority=PRIORITY_HIGH,
        target_audience=AUDIENCE_ADMIN,
        metadata={"admin_action": "membership_request", "target_resource": request_id},
        action_url="/admin/membership-requests",
    )


def new_event(*, event_id: str, title: str, date: str, organizer: str) -> NotificationDraft:
    return NotificationDraft(
        title="New Event",
        message=f'{organizer} has created a new event: "{title}" on {date}',
        type=NOTIFICATION_TYPE_EVENT,
        priority=PRIORITY_MEDIUM,
        target_audience=AUDIENCE_ALL,
        metadata={"event_id": event_id, "event_date": date},
        action_url="/events",
    )


def new_announcement(*, announcement_id: str, title: str, author: str) -> NotificationDraft:
    return NotificationDraft(
        title="New Announcement",
        message=f'{author} has posted: "{title}"',
        type=NOTIFICATION_TYPE_ANNOUNCEMENT,
        priority=PRIORITY_MEDIUM,
        target_audience=AUDIENCE_ALL,
        metadata={"announcement_id": announcement_id, "author": author},
        action_url="/announcements",
    )


def new_event_registration(
    *, event_id: str, event_title: str, user_name: str, user_email: str
) -> NotificationDraft:
    return NotificationDraft(
        title="New Event Registration",
        message=f'{user_name} has registered for "{event_title}"',
        type=NOTIFICATION_TYPE_EVENT,
        priority=PRIORITY_LOW,
        target_audience=AUDIENCE_ADMIN,
        metadata={"event_id": event_id, "user_name": user_name, "user_email": user_email},
        action_url="/admin/events",
    )


def user_status_change(
    *, user_id: str, user_name: str, status: str, changed_by: str
) -> NotificationDraft:
    return NotificationDraft(
        title="User Status Changed",
        message=f"{changed_by} has changed {user_name}'s status to: {status}",
        type=NOTIFICATION_TYPE_ADMIN,
        priority=PRIORITY_MEDIUM,
        target_audience=AUDIENCE_ADMIN,
        metadata={
            "admin_action": "user_status_change",
            "target_user_id": user_id,
            "changes": {"status": status},
        },
        action_url="/admin/users",
    )


def system_alert(
    *, title: str, message: str, priority: str = "normal", url: str | None = None
) -> NotificationDraft:
    """Alert administrators; ``normal`` is accepted as an alias of ``medium``."""

    return NotificationDraft(
        title=title,
        message=message,
        type=NOTIFICATION_TYPE_SYSTEM,
        priority=PRIORITY_MEDIUM if priority == "normal" else priority,
        target_audience=AUDIENCE_ADMIN,
        metadata={"action": "system_alert", "details": {"url": url} if url else {}},
        action_url=url,
    )


def new_blog_post(*, post_id: str, title: str, author: str) -> NotificationDraft:
    return NotificationDraft(
        title="New Blog Post",
        message=f'{author} published a new article: "{title}"',
        type=NOTIFICATION_TYPE_ANNOUNCEMENT,
        priority=PRIORITY_MEDIUM,
        target_audience=AUDIENCE_ALL,
        metadata={"post_id": post_id, "author": author},
        action_url=f"/blog/{post_id}",
    )


def new_sermon(
    *, sermon_id: str, title: str, speaker: str, media_type: str = "video"
) -> NotificationDraft:
    if media_type not in ("video", "audio"):
        raise ValueError("media_type must be 'video' or 'audio'")
    is_video = media_type == "video"
    label = "video sermon" if is_video else "audio message"
    return NotificationDraft(
        title="New Video Sermon" if is_video else "New Audio Message",
        message=f'A new {label} "{title}" by {speaker} is now available',
        type=NOTIFICATION_TYPE_ANNOUNCEMENT,
        priority=PRIORITY_MEDIUM,
        target_audience=AUDIENCE_ALL,
        metadata={"sermon_id": sermon_id, "speaker": speaker, "type": media_type},
        action_url="/sermons" if is_video else "/audio-messages",
    )


def membership_request_processed(
    *, request_id: str, user_id: str, user_name: str, status: str, processed_by: str
) -> NotificationDraft:
    approved = status == "approved"
    if approved:
        message = f"Welcome to the church, {user_name}! Your membership has been approved."
    else:
        message = (
            "Your membership request has been reviewed. "
            "Please contact the church for more information."
        )
    return NotificationDraft(
        title="Membership Approved!" if approved else "Membership Request Update",
        message=message,
        type=NOTIFICATION_TYPE_SYSTEM,
        priority=PRIORITY_HIGH if approved else PRIORITY_MEDIUM,
        target_audience=AUDIENCE_SPECIFIC,
        specific_user_ids=(user_id,),
        metadata={"request_id": request_id, "status": status, "processed_by": processed_by},
        action_url="/members/dashboard",
    )


def prayer_request_status_update(
    *, request_id: str, user_id: str, request_title: str, status: str
) -> NotificationDraft:
    template = _PRAYER_STATUS_MESSAGES.get(status)
    if template is None:
        raise ValueError(f"Unknown prayer request status '{status}'")
    answered = status == "answered"
    return NotificationDraft(
        title="Prayer Answered!" if answered else "Prayer Request Update",
        message=template.format(title=request_title),
        type=NOTIFICATION_TYPE_PRAYER_REQUEST,
        priority=PRIORITY_HIGH if answered else PRIORITY_MEDIUM,
        target_audience=AUDIENCE_SPECIFIC,
        specific_user_ids=(user_id,),
        metadata={"request_id": request_id, "status": status},
        action_url="/members/prayer",
    )


def new_blog_comment(
    *,
    post_id: str,
    post_slug: str,
    post_title: str,
    author_id: str,
    commenter_name: str,
    comment_preview: str,
    is_reply: bool = False,
) -> tuple[NotificationDraft, NotificationDraft]:
    """Return the drafts for the post author and for the administrators."""

    metadata = {
        "post_id": post_id,
        "post_slug": post_slug,
        "post_title": post_title,
        "commenter_name": commenter_name,
        "is_reply": is_reply,
    }
    action_url = f"/blog/{post_slug}#comments"
    verb = "replied to a comment on" if is_reply else "commented on"
    author_draft = NotificationDraft(
        title="New Reply on Your Blog Post" if is_reply else "New Comment on Your Blog Post",
        message=f'{commenter_name} {verb} "{post_title}": "{_preview(comment_preview, 100)}"',
        type=NOTIFICATION_TYPE_ANNOUNCEMENT,
        priority=PRIORITY_MEDIUM,
        target_audience=AUDIENCE_SPECIFIC,
        specific_user_ids=(author_id,),
        metadata=dict(metadata),
        action_url=action_url,
    )
    admin_draft = NotificationDraft(
        title="New Blog Comment",
        message=f'{commenter_name} commented on "{post_title}": "{_preview(comment_preview, 80)}"',
        type=NOTIFICATION_TYPE_ADMIN,
        priority=PRIORITY_LOW,
        target_audience=AUDIENCE_ADMIN,
        metadata=dict(metadata),
        action_url=action_url,
    )
    return author_draft, admin_draft


def event_reminder(
    *,
    event_id: str,
    title: str,
    date: str,
    reminder_type: str,
    time: str | None = None,
    location: str | None = None,
    registered_user_ids: Sequence[str] = (),
) -> NotificationDraft:
    """Remind registrants of an event, or everybody when nobody registered."""

    priority = _REMINDER_PRIORITIES.get(reminder_type)
    if priority is None:
        raise ValueError(f"Unknown reminder type '{reminder_type}'")
    time_info = f" at {time}" if time else ""
    messages = {
        REMINDER_24H: f'Reminder: "{title}" is happening tomorrow{time_info}',
        REMINDER_1H: f'Reminder: "{title}" starts in 1 hour{time_info}',
        REMINDER_DAY_OF: f'Reminder: "{title}" is happening today{time_info}',
        REMINDER_CUSTOM: f'Reminder: "{title}" on {date}{time_info}',
    }
    recipients = tuple(registered_user_ids)
    return NotificationDraft(
        title="Event Reminder",
        message=messages[reminder_type],
        type=NOTIFICATION_TYPE_EVENT,
        priority=priority,
        target_audience=AUDIENCE_SPECIFIC if recipients else AUDIENCE_ALL,
        specific_user_ids=recipients,
        metadata={
            "event_id": event_id,
            "event_date": date,
            "location": location,
            "reminder_type": reminder_type,
        },
        action_url="/events",
    )


def upcoming_event_alert(
    *, event_id: str, title: str, date: str, days_until: int
) -> NotificationDraft:
    plural = "s" if days_until > 1 else ""
    return NotificationDraft(
        title="Upcoming Event",
        message=f'Don\'t miss "{title}" happening in {days_until} day{plural} on {date}',
        type=NOTIFICATION_TYPE_EVENT,
        priority=PRIORITY_MEDIUM,
        target_audience=AUDIENCE_ALL,
        metadata={"event_id": event_id, "event_date": date, "days_until": days_until},
        action_url="/events",
    )


def custom(
    *,
    title: str,
    message: str,
    type: str,
    priority: str = PRIORITY_MEDIUM,
    target_audience: str = AUDIENCE_ALL,
    specific_user_ids: Sequence[str] = (),
    metadata: dict[str, Any] | None = None,
    action_url: str | None = None,
    expires_at: datetime | None = None,
    send_push: bool = True,
) -> NotificationDraft:
    return NotificationDraft(
        title=title,
        message=message,
        type=type,
        priority=priority,
        target_audience=target_audience,
        specific_user_ids=tuple(specific_user_ids),
        metadata=dict(metadata or {}),
        action_url=action_url,
        expires_at=expires_at,
        send_push=send_push,
    )


__all__ = [
    "REMINDER_1H",
    "REMINDER_24H",
    "REMINDER_CUSTOM",
    "REMINDER_DAY_OF",
    "custom",
    "event_reminder",
    "membership_request_processed",
    "new_announcement",
    "new_blog_comment",
    "new_blog_post",
    "new_event",
    "new_event_registration",
    "new_membership_request",
    "new_prayer_request",
    "new_sermon",
    "prayer_request_status_update",
    "system_alert",
    "upcoming_event_alert",
    "user_status_change",
]
