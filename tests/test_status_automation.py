"""
test_status_automation.py - Scheduled Job Tests

Covers: time-based event transitions, monthly counter reset, expired
Premium downgrade, auto-completion of approved applications three days
after the event, the 24h completion reminder to organizers and the
pre-event reminders (in-app + email) to organizers and approved CTVs.
"""

import asyncio
from datetime import datetime, timedelta
from unittest.mock import AsyncMock, patch

from jobevent.models import Notification
from jobevent.services.status_automation import (
    auto_complete_events,
    check_expired_subscriptions,
    reset_monthly_limits,
    send_completion_reminders,
    send_pre_event_reminders,
    update_event_statuses,
)

NOW = datetime(2025, 6, 15, 12, 0)


# ── Event statuses ───────────────────────────────────────────────────


def test_update_event_statuses(db_session, btc_user, make_event):
    started = make_event(btc_user, start_time=NOW - timedelta(hours=1), end_time=NOW + timedelta(hours=3))
    ended = make_event(btc_user, start_time=NOW - timedelta(days=1), end_time=NOW - timedelta(hours=16))
    preparing_ended = make_event(
        btc_user, status="PREPARING", start_time=NOW - timedelta(days=2), end_time=NOW - timedelta(days=1)
    )
    future = make_event(btc_user, start_time=NOW + timedelta(days=3))
    cancelled = make_event(btc_user, status="CANCELLED", start_time=NOW - timedelta(days=2))

    summary = update_event_statuses(db_session, now=NOW)

    # ended RECRUITING events pass through PREPARING first, then both move on
    assert summary == {"recruiting_to_preparing": 2, "to_completed": 2}
    for event in (started, ended, preparing_ended, future, cancelled):
        db_session.refresh(event)
    assert started.status == "PREPARING"
    assert ended.status == "COMPLETED"
    assert preparing_ended.status == "COMPLETED"
    assert future.status == "RECRUITING"
    assert cancelled.status == "CANCELLED"


# ── Subscription housekeeping ────────────────────────────────────────


def test_reset_monthly_limits(db_session, make_btc):
    users = [make_btc(post_used=3, urgent_used=0), make_btc(premium=True, post_used=9, urgent_used=2)]

    assert reset_monthly_limits(db_session) == 2

    for user in users:
        db_session.refresh(user)
        assert (user.post_used, user.urgent_used) == (0, 0)


def test_check_expired_subscriptions(db_session, make_btc):
    expired = make_btc(subscription_plan="PREMIUM", subscription_expired_at=NOW - timedelta(minutes=1))
    active = make_btc(subscription_plan="PREMIUM", subscription_expired_at=NOW + timedelta(days=5))

    assert check_expired_subscriptions(db_session, now=NOW) == 1

    db_session.refresh(expired)
    db_session.refresh(active)
    assert expired.subscription_plan == "FREE"
    assert expired.subscription_expired_at is None
    assert active.subscription_plan == "PREMIUM"


# ── Auto-complete ────────────────────────────────────────────────────


def test_auto_complete_events(db_session, btc_user, make_ctv, make_event, make_application):
    old = make_event(btc_user, start_time=NOW - timedelta(days=5), end_time=NOW - timedelta(days=4))
    recent = make_event(btc_user, start_time=NOW - timedelta(days=2), end_time=NOW - timedelta(days=1))
    worker = make_ctv()
    worker.ctv_profile.trust_score = 7
    db_session.commit()
    done = make_application(old, worker, status="APPROVED", assigned_role="Usher")
    pending = make_application(old, make_ctv())
    too_soon = make_application(recent, make_ctv(), status="APPROVED")

    assert auto_complete_events(db_session, now=NOW) == 1

    for application in (done, pending, too_soon):
        db_session.refresh(application)
    assert done.status == "COMPLETED"
    assert pending.status == "PENDING"
    assert too_soon.status == "APPROVED"
    db_session.refresh(worker.ctv_profile)
    assert worker.ctv_profile.trust_score == 8
    assert worker.ctv_profile.joined_events[0]["eventId"] == old.id
    note = db_session.query(Notification).filter(Notification.user_id == worker.id).one()
    assert note.type == "COMPLETION"


# ── Reminders ────────────────────────────────────────────────────────


def test_completion_reminder_only_for_events_with_approved(
    db_session, make_btc, make_ctv, make_event, make_application
):
    with_staff, without_staff = make_btc(), make_btc()
    end = NOW - timedelta(hours=24, minutes=30)
    staffed = make_event(with_staff, start_time=end - timedelta(hours=4), end_time=end)
    make_application(staffed, make_ctv(), status="APPROVED")
    make_event(without_staff, start_time=end - timedelta(hours=4), end_time=end)
    make_event(with_staff, start_time=NOW - timedelta(days=3), end_time=NOW - timedelta(days=2))

    assert send_completion_reminders(db_session, now=NOW) == 1

    note = db_session.query(Notification).one()
    assert note.user_id == with_staff.id
    assert note.type == "REMINDER"
    assert note.related_id == staffed.id


def test_pre_event_reminders(db_session, btc_user, make_ctv, make_event, make_application):
    start = NOW + timedelta(hours=24, minutes=5)
    event = make_event(btc_user, title="Expo", start_time=start, location="SECC")
    approved = make_ctv()
    make_application(event, approved, status="APPROVED")
    make_application(event, make_ctv())
    make_event(btc_user, start_time=NOW + timedelta(hours=30))

    with patch(
        "jobevent.services.status_automation.send_organizer_reminder_email", new_callable=AsyncMock
    ) as organizer_email, patch(
        "jobevent.services.status_automation.send_collaborator_reminder_email", new_callable=AsyncMock
    ) as ctv_email:
        sent = asyncio.run(send_pre_event_reminders(db_session, now=NOW))

    assert sent == 2
    organizer_email.assert_awaited_once_with(to=btc_user.email, event_title="Expo")
    ctv_email.assert_awaited_once_with(
        to=approved.email,
        event_title="Expo",
        start_time=start.strftime("%H:%M %d/%m/%Y"),
        location="SECC",
    )
    assert db_session.query(Notification).filter(Notification.type == "REMINDER").count() == 2


def test_pre_event_reminders_skip_cancelled(db_session, btc_user, make_event):
    make_event(btc_user, status="CANCELLED", start_time=NOW + timedelta(hours=24, minutes=1))
    with patch(
        "jobevent.services.status_automation.send_organizer_reminder_email", new_callable=AsyncMock
    ) as organizer_email:
        assert asyncio.run(send_pre_event_reminders(db_session, now=NOW)) == 0
    organizer_email.assert_not_awaited()
