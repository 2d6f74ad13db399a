"""Event repository - Database operations for events"""

from datetime import datetime
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from ...models import Application, Event


def _contains_pattern(text: str) -> str:
    """Case-insensitive LIKE pattern with wildcards in the input escaped"""
    escaped = text.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class EventRepository:
    """Repository for event database operations"""

    @staticmethod
    def query_recruiting(
        db: Session,
        keyword: Optional[str] = None,
        location: Optional[str] = None,
        event_type: Optional[str] = None,
        urgent_only: bool = False,
        time_from: Optional[datetime] = None,
        time_to: Optional[datetime] = None,
    ) -> Query:
        """Public listing query: RECRUITING only, urgent first then newest"""
        query = db.query(Event).filter(Event.status == "RECRUITING")

        if keyword:
            pattern = _contains_pattern(keyword)
            query = query.filter(
                or_(
                    func.lower(Event.title).like(pattern, escape="\\"),
                    func.lower(Event.description).like(pattern, escape="\\"),
                )
            )
        if location:
            query = query.filter(func.lower(Event.location).like(_contains_pattern(location), escape="\\"))
        if event_type:
            query = query.filter(Event.event_type == event_type)
        if urgent_only:
            query = query.filter(Event.urgent.is_(True))
        if time_from:
            query = query.filter(Event.start_time >= time_from)
        if time_to:
            query = query.filter(Event.start_time <= time_to)

        return query.order_by(Event.urgent.desc(), Event.created_at.desc(), Event.id.desc())

    @staticmethod
    def get_event(db: Session, event_id: int) -> Optional[Event]:
        return db.query(Event).filter(Event.id == event_id).first()

    @staticmethod
    def query_by_btc(db: Session, btc_id: int, status: Optional[str] = None) -> Query:
        query = db.query(Event).filter(Event.btc_id == btc_id)
        if status:
            query = query.filter(Event.status == status)
        return query.order_by(Event.created_at.desc(), Event.id.desc())

    @staticmethod
    def count_created_since(db: Session, btc_id: int, since: datetime, urgent_only: bool = False) -> int:
        query = db.query(Event).filter(Event.btc_id == btc_id, Event.created_at >= since)
        if urgent_only:
            query = query.filter(Event.urgent.is_(True))
        return query.count()

    @staticmethod
    def count_completed(db: Session, btc_id: int) -> int:
        return db.query(Event).filter(Event.btc_id == btc_id, Event.status == "COMPLETED").count()

    @staticmethod
    def count_by_status(db: Session, btc_id: int, status: str) -> int:
        return db.query(Event).filter(Event.btc_id == btc_id, Event.status == status).count()

    @staticmethod
    def total_views(db: Session, btc_id: int) -> int:
        total = db.query(func.coalesce(func.sum(Event.views), 0)).filter(Event.btc_id == btc_id).scalar()
        return int(total or 0)

    @staticmethod
    def event_ids_for_btc(db: Session, btc_id: int) -> list[int]:
        return [row[0] for row in db.query(Event.id).filter(Event.btc_id == btc_id).all()]

    @staticmethod
    def count_applications(db: Session, event_id: int) -> int:
        return db.query(Application).filter(Application.event_id == event_id).count()

    @staticmethod
    def count_pending_applications(db: Session, event_ids: list[int]) -> int:
        if not event_ids:
            return 0
        return (
            db.query(Application)
            .filter(Application.event_id.in_(event_ids), Application.status == "PENDING")
            .count()
        )

    @staticmethod
    def application_dates_since(db: Session, event_ids: list[int], since: datetime) -> list[datetime]:
        if not event_ids:
            return []
        rows = (
            db.query(Application.created_at)
            .filter(Application.event_id.in_(event_ids), Application.created_at >= since)
            .all()
        )
        return [row[0] for row in rows]

    @staticmethod
    def has_applied(db: Session, event_id: int, ctv_id: int) -> bool:
        return (
            db.query(Application.id)
            .filter(Application.event_id == event_id, Application.ctv_id == ctv_id)
            .first()
            is not None
        )

    @staticmethod
    def create_event(db: Session, **event_data) -> Event:
        event = Event(**event_data)
        db.add(event)
        return event

    @staticmethod
    def delete_event(db: Session, event: Event) -> None:
        db.delete(event)
