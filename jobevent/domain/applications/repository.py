"""Application repository - Database operations for applications"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Query, Session, joinedload

from ...models import Application, CTVProfile, Event


class ApplicationRepository:
    """Repository for application database operations"""

    @staticmethod
    def get_application(db: Session, application_id: int) -> Optional[Application]:
        return (
            db.query(Application)
            .options(joinedload(Application.event))
            .filter(Application.id == application_id)
            .first()
        )

    @staticmethod
    def get_applications(db: Session, application_ids: list[int]) -> list[Application]:
        return (
            db.query(Application)
            .options(joinedload(Application.event))
            .filter(Application.id.in_(application_ids))
            .all()
        )

    @staticmethod
    def find_for_ctv(db: Session, event_id: int, ctv_id: int) -> Optional[Application]:
        return (
            db.query(Application)
            .filter(Application.event_id == event_id, Application.ctv_id == ctv_id)
            .first()
        )

    @staticmethod
    def create_application(db: Session, **application_data) -> Application:
        application = Application(**application_data)
        db.add(application)
        db.flush()
        return application

    @staticmethod
    def query_for_ctv(db: Session, ctv_id: int, status: Optional[str] = None) -> Query:
        query = db.query(Application).options(joinedload(Application.event)).filter(Application.ctv_id == ctv_id)
        if status:
            query = query.filter(Application.status == status)
        return query.order_by(Application.created_at.desc(), Application.id.desc())

    @staticmethod
    def query_for_event(db: Session, event_id: int, status: Optional[str] = None) -> Query:
        query = db.query(Application).filter(Application.event_id == event_id)
        if status:
            query = query.filter(Application.status == status)
        return query.order_by(Application.created_at.desc(), Application.id.desc())

    @staticmethod
    def get_ctv_profile(db: Session, user_id: int) -> Optional[CTVProfile]:
        return db.query(CTVProfile).filter(CTVProfile.user_id == user_id).first()

    @staticmethod
    def get_ctv_profiles(db: Session, user_ids: list[int]) -> dict[int, CTVProfile]:
        if not user_ids:
            return {}
        profiles = db.query(CTVProfile).filter(CTVProfile.user_id.in_(user_ids)).all()
        return {p.user_id: p for p in profiles}

    @staticmethod
    def count_by_status(db: Session, ctv_id: int) -> dict[str, int]:
        counts: dict[str, int] = {}
        for (status,) in db.query(Application.status).filter(Application.ctv_id == ctv_id).all():
            counts[status] = counts.get(status, 0) + 1
        return counts

    @staticmethod
    def upcoming_approved(db: Session, ctv_id: int, now: datetime, limit: int = 5) -> list[Application]:
        return (
            db.query(Application)
            .join(Event, Application.event_id == Event.id)
            .options(joinedload(Application.event))
            .filter(
                Application.ctv_id == ctv_id,
                Application.status == "APPROVED",
                Event.start_time >= now,
            )
            .order_by(Event.start_time.asc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def updated_dates_since(db: Session, ctv_id: int, since: datetime) -> list[datetime]:
        rows = (
            db.query(Application.updated_at)
            .filter(Application.ctv_id == ctv_id, Application.updated_at >= since)
            .all()
        )
        return [row[0] for row in rows]

    # ------------------------------------------------------------------
    # Batch queries
    # ------------------------------------------------------------------

    @staticmethod
    def approved_for_events_ended_before(db: Session, cutoff: datetime) -> list[Application]:
        return (
            db.query(Application)
            .join(Event, Application.event_id == Event.id)
            .options(joinedload(Application.event))
            .filter(Event.end_time < cutoff, Application.status == "APPROVED")
            .all()
        )

    @staticmethod
    def events_ended_between(db: Session, start: datetime, end: datetime) -> list[Event]:
        """Events with end_time in [start, end)"""
        return db.query(Event).filter(Event.end_time >= start, Event.end_time < end).all()

    @staticmethod
    def events_starting_between(db: Session, start: datetime, end: datetime) -> list[Event]:
        """Non-cancelled events with start_time in [start, end)"""
        return (
            db.query(Event)
            .filter(Event.start_time >= start, Event.start_time < end, Event.status != "CANCELLED")
            .all()
        )

    @staticmethod
    def has_approved(db: Session, event_id: int) -> bool:
        return (
            db.query(Application.id)
            .filter(Application.event_id == event_id, Application.status == "APPROVED")
            .first()
            is not None
        )

    @staticmethod
    def approved_for_event(db: Session, event_id: int) -> list[Application]:
        return (
            db.query(Application)
            .options(joinedload(Application.ctv))
            .filter(Application.event_id == event_id, Application.status == "APPROVED")
            .all()
        )
