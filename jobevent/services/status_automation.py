"""
Scheduled status transitions and reminders
Handles RECRUITING → PREPARING → COMPLETED event transitions,
monthly post counters, expired Premium downgrades,
auto-completion of approved applications and event reminders
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ..domain.applications.repository import ApplicationRepository
from ..domain.applications.service import credit_completion
from ..email_service import send_collaborator_reminder_email, send_organizer_reminder_email
from ..models import Event, User
from .notification_service import create_notification, notify_user

logger = logging.getLogger(__name__)

AUTO_COMPLETE_AFTER = timedelta(days=3)
COMPLETION_REMINDER_AFTER = timedelta(hours=24)
REMINDER_WINDOW = timedelta(hours=1)
PRE_EVENT_REMINDER_BEFORE = timedelta(hours=24)
# Matches the 10-minute cron so each event falls in exactly one run
PRE_EVENT_WINDOW = timedelta(minutes=10)


def update_event_statuses(db: Session, now: Optional[datetime] = None) -> dict:
    """
    Move events along their lifecycle based on time

    Event statuses: RECRUITING → PREPARING (start arrived) → COMPLETED (end passed)

    Returns:
        dict: Summary of status changes made
    """
    now = now or datetime.utcnow()
    summary = {"recruiting_to_preparing": 0, "to_completed": 0}

    try:
        summary["recruiting_to_preparing"] = (
            db.query(Event)
            .filter(Event.status == "RECRUITING", Event.start_time <= now)
            .update({Event.status: "PREPARING"}, synchronize_session=False)
        )
        summary["to_completed"] = (
            db.query(Event)
            .filter(Event.status.in_(("RECRUITING", "PREPARING")), Event.end_time <= now)
            .update({Event.status: "COMPLETED"}, synchronize_session=False)
        )
        db.commit()
        logger.info(f"✅ Event status updated: {summary}")
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Error updating event statuses: {str(e)}")

    return summary


def reset_monthly_limits(db: Session) -> int:
    """Zero post_used/urgent_used for every user on a plan"""
    try:
        count = (
            db.query(User)
            .filter(User.subscription_plan.in_(("FREE", "PREMIUM")))
            .update({User.post_used: 0, User.urgent_used: 0}, synchronize_session=False)
        )
        db.commit()
        logger.info(f"✅ Monthly limits reset for {count} users")
        return count
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Error resetting monthly limits: {str(e)}")
        return 0


def check_expired_subscriptions(db: Session, now: Optional[datetime] = None) -> int:
    """Downgrade PREMIUM users whose expiry has passed to FREE"""
    now = now or datetime.utcnow()
    try:
        count = (
            db.query(User)
            .filter(User.subscription_plan == "PREMIUM", User.subscription_expired_at <= now)
            .update(
                {User.subscription_plan: "FREE", User.subscription_expired_at: None},
                synchronize_session=False,
            )
        )
        db.commit()
        logger.info(f"✅ Expired subscriptions downgraded: {count}")
        return count
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Error checking expired subscriptions: {str(e)}")
        return 0


def auto_complete_events(db: Session, now: Optional[datetime] = None) -> int:
    """
    Complete APPROVED applications for events that ended more than 3 days ago.
    Each one earns the same trust credit as a manual completion.
    """
    now = now or datetime.utcnow()
    completed = 0

    try:
        applications = ApplicationRepository.approved_for_events_ended_before(db, now - AUTO_COMPLETE_AFTER)
    except Exception as e:
        logger.error(f"❌ [Auto-Complete] Query failed: {str(e)}")
        return 0

    for application in applications:
        try:
            application.status = "COMPLETED"
            credit_completion(db, application)
            create_notification(
                db,
                user_id=application.ctv_id,
                notification_type="COMPLETION",
                title="Event Automatically Completed",
                content=f'Event "{application.event.title}" marked as completed.',
                related_id=application.id,
                related_model="Application",
                commit=False,
            )
            db.commit()
            completed += 1
        except Exception as e:
            db.rollback()
            logger.error(f"❌ [Auto-Complete] Application {application.id} failed: {str(e)}")

    logger.info(f"🕐 [Auto-Complete] Processed {completed} applications")
    return completed


def send_completion_reminders(db: Session, now: Optional[datetime] = None) -> int:
    """Remind organizers to complete events that ended 24-25 hours ago"""
    now = now or datetime.utcnow()
    end = now - COMPLETION_REMINDER_AFTER
    sent = 0

    try:
        events = ApplicationRepository.events_ended_between(db, end - REMINDER_WINDOW, end)
        for event in events:
            if not ApplicationRepository.has_approved(db, event.id):
                continue
            create_notification(
                db,
                user_id=event.btc_id,
                notification_type="REMINDER",
                title="Event Completion Reminder",
                content=(
                    f'It has been 24h since "{event.title}" ended. '
                    "Please complete the event and review your candidates."
                ),
                related_id=event.id,
                related_model="Event",
            )
            sent += 1
    except Exception as e:
        db.rollback()
        logger.error(f"❌ [Reminder] Completion reminders failed: {str(e)}")

    logger.info(f"🕐 [Reminder] Sent {sent} completion reminders")
    return sent


async def send_pre_event_reminders(db: Session, now: Optional[datetime] = None) -> int:
    """Notify and email the organizer and approved CTVs of events starting in ~24 hours"""
    now = now or datetime.utcnow()
    start = now + PRE_EVENT_REMINDER_BEFORE
    sent = 0

    try:
        events = ApplicationRepository.events_starting_between(db, start, start + PRE_EVENT_WINDOW)
    except Exception as e:
        logger.error(f"❌ [Reminder] Pre-event query failed: {str(e)}")
        return 0

    for event in events:
        start_label = event.start_time.strftime("%H:%M %d/%m/%Y")

        organizer = db.query(User).filter(User.id == event.btc_id).first()
        if organizer:
            await notify_user(
                db,
                organizer,
                "REMINDER",
                title="Upcoming Event Reminder",
                content=f'Your event "{event.title}" starts in 24 hours.',
                related_id=event.id,
                related_model="Event",
                email_func=send_organizer_reminder_email,
                email_kwargs={"event_title": event.title},
            )
            sent += 1

        for application in ApplicationRepository.approved_for_event(db, event.id):
            if not application.ctv:
                continue
            await notify_user(
                db,
                application.ctv,
                "REMINDER",
                title="Event Reminder",
                content=f"Event \"{event.title}\" starts in 24 hours. Don't be late!",
                related_id=event.id,
                related_model="Event",
                email_func=send_collaborator_reminder_email,
                email_kwargs={
                    "event_title": event.title,
                    "start_time": start_label,
                    "location": event.location,
                },
            )
            sent += 1

    logger.info(f"🕐 [Reminder] Sent {sent} pre-event reminders")
    return sent
