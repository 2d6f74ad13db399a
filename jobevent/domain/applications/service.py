"""Application service - Apply, review and close out CTV applications"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Application, User
from ...shared.charts import daily_counts, window_start
from ...shared.pagination import paginate_query
from ..events.repository import EventRepository
from ..notifications.service import NotificationService
from .repository import ApplicationRepository
from .schemas import BulkApproveRequest, BulkRejectRequest

logger = logging.getLogger(__name__)

COMPLETION_TRUST_BONUS = 1
VIOLATION_TRUST_PENALTY = -2
NO_SHOW_ROLE = "No-show"
DEFAULT_VIOLATION_NOTE = "No-show / Violation reported by Organizer"


def credit_completion(db: Session, application: Application) -> None:
    """Trust +1 and a joined-event entry for a completed application"""
    profile = ApplicationRepository.get_ctv_profile(db, application.ctv_id)
    if not profile:
        return
    profile.update_trust_score(COMPLETION_TRUST_BONUS)
    profile.add_joined_event(application.event_id, application.assigned_role)


def _set_status(application: Application, status: str) -> None:
    """Status change that keeps the event's approved_count in step"""
    event = application.event
    was_approved = application.status == "APPROVED"
    application.status = status
    if event is None:
        return
    if status == "APPROVED" and not was_approved:
        event.approved_count = (event.approved_count or 0) + 1
    elif was_approved and status in ("REJECTED", "CANCELLED"):
        event.approved_count = max(0, (event.approved_count or 0) - 1)


class ApplicationService:
    """Service layer for application business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ApplicationRepository()
        self.notifications = NotificationService(db)

    # ------------------------------------------------------------------
    # CTV side
    # ------------------------------------------------------------------

    def apply(self, event_id: int, cover_letter: Optional[str], user: User) -> Application:
        event = EventRepository.get_event(self.db, event_id)
        if not event:
            raise HTTPException(status_code=404, detail="Event not found")

        if not event.can_apply():
            raise HTTPException(status_code=400, detail="This event is not accepting applications")

        if self.repo.find_for_ctv(self.db, event_id, user.id):
            raise HTTPException(status_code=400, detail="You have already applied to this event")

        application = self.repo.create_application(
            self.db,
            event_id=event_id,
            ctv_id=user.id,
            cover_letter=cover_letter,
            status="PENDING",
        )
        event.applied_count = (event.applied_count or 0) + 1

        self.notifications.create(
            user_id=event.btc_id,
            notification_type="APPLICATION",
            title="New Application",
            content=f"New applicant for event: {event.title}",
            related_id=application.id,
            related_model="Application",
            commit=False,
        )
        self.db.commit()
        self.db.refresh(application)
        logger.info(f"✅ CTV {user.id} applied to event {event_id}")
        return application

    def list_for_ctv(self, user: User, status: Optional[str], page: int, limit: int):
        return paginate_query(self.repo.query_for_ctv(self.db, user.id, status), page, limit)

    def ctv_dashboard_stats(self, user: User) -> dict:
        counts = self.repo.count_by_status(self.db, user.id)
        completed = counts.get("COMPLETED", 0)

        upcoming = [
            {
                "id": app.event.id,
                "title": app.event.title,
                "location": app.event.location,
                "startTime": app.event.start_time,
                "endTime": app.event.end_time,
                "eventType": app.event.event_type,
                "role": app.assigned_role,
            }
            for app in self.repo.upcoming_approved(self.db, user.id, datetime.utcnow())
        ]

        timestamps = self.repo.updated_dates_since(self.db, user.id, window_start(7))
        return {
            "totalApplications": sum(counts.values()),
            "approvedCount": counts.get("APPROVED", 0),
            "completedCount": completed,
            "pendingCount": counts.get("PENDING", 0),
            "rejectedCount": counts.get("REJECTED", 0),
            "eventsJoined": completed,
            "upcomingEvents": upcoming,
            "chartData": daily_counts(timestamps, 7),
        }

    # ------------------------------------------------------------------
    # BTC side
    # ------------------------------------------------------------------

    def list_for_event(self, event_id: int, user: User, status: Optional[str], page: int, limit: int):
        """Returns (applications, total, {ctv_id: CTVProfile})"""
        event = EventRepository.get_event(self.db, event_id)
        if not event:
            raise HTTPException(status_code=404, detail="Event not found")
        if event.btc_id != user.id:
            raise HTTPException(
                status_code=403, detail="Not authorized to view applications for this event"
            )

        items, total = paginate_query(self.repo.query_for_event(self.db, event_id, status), page, limit)
        profiles = self.repo.get_ctv_profiles(self.db, [a.ctv_id for a in items])
        return items, total, profiles

    def _get_owned(self, application_id: int, user: User) -> Application:
        application = self.repo.get_application(self.db, application_id)
        if not application:
            raise HTTPException(status_code=404, detail="Application not found")
        if application.event is None or application.event.btc_id != user.id:
            raise HTTPException(status_code=403, detail="Not authorized")
        return application

    def _notify(self, application: Application, notification_type: str, title: str, content: str):
        self.notifications.create(
            user_id=application.ctv_id,
            notification_type=notification_type,
            title=title,
            content=content,
            related_id=application.id,
            related_model="Application",
            commit=False,
        )

    def approve(self, application_id: int, assigned_role: Optional[str], user: User) -> Application:
        application = self._get_owned(application_id, user)
        _set_status(application, "APPROVED")
        if assigned_role:
            application.assigned_role = assigned_role

        self._notify(
            application,
            "APPROVAL",
            "Application Approved",
            f'Your application for "{application.event.title}" has been approved',
        )
        self.db.commit()
        self.db.refresh(application)
        logger.info(f"✅ Application {application.id} approved")
        return application

    def reject(self, application_id: int, rejection_reason: Optional[str], user: User) -> Application:
        application = self._get_owned(application_id, user)
        _set_status(application, "REJECTED")
        if rejection_reason:
            application.rejection_reason = rejection_reason

        self._notify(
            application,
            "REJECTION",
            "Application Rejected",
            f'Your application for "{application.event.title}" has been rejected',
        )
        self.db.commit()
        self.db.refresh(application)
        logger.info(f"✅ Application {application.id} rejected")
        return application

    def _get_owned_batch(self, application_ids: list[int], user: User, action: str) -> list[Application]:
        if not application_ids:
            raise HTTPException(status_code=400, detail="Application IDs are required")

        applications = self.repo.get_applications(self.db, application_ids)
        if any(app.event is None or app.event.btc_id != user.id for app in applications):
            raise HTTPException(status_code=403, detail=f"Not authorized to {action} some applications")
        return applications

    def bulk_approve(self, data: BulkApproveRequest, user: User) -> int:
        applications = self._get_owned_batch(data.applicationIds, user, "approve")
        for application in applications:
            _set_status(application, "APPROVED")
            if data.role:
                application.assigned_role = data.role
            self._notify(
                application,
                "APPROVAL",
                "Application Approved",
                f'Your application for "{application.event.title}" has been approved',
            )
        self.db.commit()
        logger.info(f"✅ Bulk approved {len(applications)} applications for BTC {user.id}")
        return len(data.applicationIds)

    def bulk_reject(self, data: BulkRejectRequest, user: User) -> int:
        applications = self._get_owned_batch(data.applicationIds, user, "reject")
        for application in applications:
            _set_status(application, "REJECTED")
            if data.rejectionReason:
                application.rejection_reason = data.rejectionReason
            self._notify(
                application,
                "REJECTION",
                "Application Rejected",
                f'Your application for "{application.event.title}" has been rejected',
            )
        self.db.commit()
        logger.info(f"✅ Bulk rejected {len(applications)} applications for BTC {user.id}")
        return len(data.applicationIds)

    def complete(self, application_id: int, user: User) -> Application:
        application = self._get_owned(application_id, user)
        if application.status != "APPROVED":
            raise HTTPException(
                status_code=400, detail="Only approved applications can be marked as completed"
            )

        application.status = "COMPLETED"
        self._notify(
            application,
            "COMPLETION",
            "Event Completed",
            f'You have successfully completed the event "{application.event.title}"',
        )
        credit_completion(self.db, application)
        self.db.commit()
        self.db.refresh(application)
        logger.info(f"✅ Application {application.id} completed")
        return application

    def report_violation(self, application_id: int, reason: Optional[str], user: User) -> Application:
        application = self._get_owned(application_id, user)
        if application.status != "APPROVED":
            raise HTTPException(
                status_code=400, detail="Only approved applications can be reported for violation"
            )

        application.status = "NO_SHOW"
        application.notes = reason or DEFAULT_VIOLATION_NOTE
        self._notify(
            application,
            "VIOLATION",
            "Reported: No-show/Violation",
            f'You have been reported for violation/no-show in event "{application.event.title}". Pending review.',
        )

        profile = self.repo.get_ctv_profile(self.db, application.ctv_id)
        if profile:
            profile.update_trust_score(VIOLATION_TRUST_PENALTY)
            entries = list(profile.joined_events or [])
            entries.append(
                {
                    "eventId": application.event_id,
                    "role": NO_SHOW_ROLE,
                    "joinedAt": datetime.utcnow().isoformat(),
                }
            )
            profile.joined_events = entries

        self.db.commit()
        self.db.refresh(application)
        logger.warning(f"⚠️ Violation reported on application {application.id}")
        return application
