"""Tests for the per-kind notification builders."""

import pytest

from church_app.application.use_cases.notifications import kinds


def test_new_prayer_request_targets_admins():
    draft = kinds.new_prayer_request(
        request_id="p1", request_title="Healing", requester_name="Ana"
    )

    assert (draft.type, draft.target_audience, draft.priority) == ("prayer_request", "admin", "high")
    assert draft.action_url == "/admin/prayer-requests"
    assert draft.message == 'Ana has submitted a prayer request: "Healing"'


def test_new_event_registration_is_low_priority():
    draft = kinds.new_event_registration(
        event_id="e1", event_title="Retreat", user_name="Ana", user_email="ana@example.com"
    )

    assert (draft.type, draft.target_audience, draft.priority) == ("event", "admin", "low")


@pytest.mark.parametrize(("given", "expected"), [("normal", "medium"), ("urgent", "urgent")])
def test_system_alert_maps_normal_priority(given, expected):
    draft = kinds.system_alert(title="Disk", message="Almost full", priority=given)

    assert draft.priority == expected
    assert draft.type == "system"
    assert draft.target_audience == "admin"


def test_new_sermon_links_by_media_type():
    video = kinds.new_sermon(sermon_id="s1", title="Grace", speaker="Pastor Lee")
    audio = kinds.new_sermon(sermon_id="s2", title="Hope", speaker="Pastor Lee", media_type="audio")

    assert (video.title, video.action_url) == ("New Video Sermon", "/sermons")
    assert (audio.title, audio.action_url) == ("New Audio Message", "/audio-messages")


def test_membership_request_processed_goes_to_the_applicant():
    approved = kinds.membership_request_processed(
        request_id="r1", user_id="u1", user_name="Ana", status="approved", processed_by="admin"
    )
    rejected = kinds.membership_request_processed(
        request_id="r1", user_id="u1", user_name="Ana", status="rejected", processed_by="admin"
    )

    assert approved.recipients() == ["u1"]
    assert approved.priority == "high"
    assert rejected.priority == "medium"
    assert rejected.title == "Membership Request Update"


def test_prayer_request_status_update_rejects_unknown_status():
    with pytest.raises(ValueError):
        kinds.prayer_request_status_update(
            request_id="p1", user_id="u1", request_title="Healing", status="pending"
        )


def test_new_blog_comment_builds_author_and_admin_drafts():
    author, admin = kinds.new_blog_comment(
        post_id="b1",
        post_slug="easter",
        post_title="Easter",
        author_id="writer",
        commenter_name="Ana",
        comment_preview="x" * 120,
    )

    assert author.recipients() == ["writer"]
    assert author.message.endswith('"' + "x" * 100 + '..."')
    assert admin.target_audience == "admin"
    assert admin.message.endswith('"' + "x" * 80 + '..."')
    assert author.action_url == admin.action_url == "/blog/easter#comments"


@pytest.mark.parametrize(
    ("reminder_type", "priority"),
    [("24h", "medium"), ("1h", "high"), ("day_of", "high"), ("custom", "medium")],
)
def test_event_reminder_priority(reminder_type, priority):
    draft = kinds.event_reminder(
        event_id="e1", title="Picnic", date="2024-06-01", reminder_type=reminder_type
    )

    assert draft.priority == priority
    assert draft.target_audience == "all"


def test_event_reminder_targets_registrants():
    draft = kinds.event_reminder(
        event_id="e1",
        title="Picnic",
        date="2024-06-01",
        reminder_type="1h",
        time="10:00",
        registered_user_ids=["u1", "u2"],
    )

    assert draft.target_audience == "specific"
    assert draft.recipients() == ["u1", "u2"]
    assert draft.message == 'Reminder: "Picnic" starts in 1 hour at 10:00'


def test_upcoming_event_alert_pluralizes_days():
    one = kinds.upcoming_event_alert(event_id="e1", title="Picnic", date="June 1", days_until=1)
    three = kinds.upcoming_event_alert(event_id="e1", title="Picnic", date="June 1", days_until=3)

    assert "in 1 day on" in one.message
    assert "in 3 days on" in three.message


def test_custom_validates_like_any_draft():
    with pytest.raises(ValueError):
        kinds.custom(title="t", message="m", type="event", target_audience="specific")
