"""Event service - Business logic for event postings"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import FREE_POST_LIMIT, PREMIUM_POST_LIMIT, PREMIUM_URGENT_LIMIT
from ...models import Event, User
from ...shared.charts import daily_counts, window_start
from ...shared.pagination import paginate_list, paginate_query
from ...shared.serializers import btc_profile_to_dict, event_to_dict, user_to_dict
from ...shared.validators import parse_salary
from .repository import EventRepository
from .schemas import EVENT_FIELD_MAP, EventCreate, EventUpdate

logger = logging.getLogger(__name__)

LOW_SALARY_CEILING = 500_000
HIGH_SALARY_FLOOR = 1_000_000


def salary_in_range(salary: Optional[str], salary_range: Optional[str]) -> bool:
    """low < 500k <= medium <= 1M < high"""
    if not salary_range:
        return True
    value = parse_salary(salary)
    if salary_range == "low":
        return value < LOW_SALARY_CEILING
    if salary_range == "medium":
        return LOW_SALARY_CEILING <= value <= HIGH_SALARY_FLOOR
    if salary_range == "high":
        return value > HIGH_SALARY_FLOOR
    return True


def validate_event_dates(start_time: datetime, end_time: datetime, deadline: datetime):
    if start_time and end_time and start_time >= end_time:
        raise HTTPException(status_code=400, detail="End time must be after start time")
    if deadline and start_time and deadline > start_time:
        raise HTTPException(status_code=400, detail="Application deadline must be before start time")


def start_of_month(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.utcnow()
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class EventService:
    """Service layer for event business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = EventRepository()

    # ------------------------------------------------------------------
    # Public listing
    # ------------------------------------------------------------------

    def list_events(
        self,
        page: int,
        limit: int,
        keyword: Optional[str] = None,
        location: Optional[str] = None,
        event_type: Optional[str] = None,
        urgent_only: bool = False,
        time_from: Optional[datetime] = None,
        time_to: Optional[datetime] = None,
        salary_range: Optional[str] = None,
    ) -> tuple[list[Event], int]:
        query = self.repo.query_recruiting(
            self.db, keyword, location, event_type, urgent_only, time_from, time_to
        )

        if not salary_range:
            return paginate_query(query, page, limit)

        # Salary is free text, so the range filter runs after the query
        events = [e for e in query.all() if salary_in_range(e.salary, salary_range)]
        return paginate_list(events, page, limit)

    def get_event_detail(self, event_id: int, viewer: Optional[User]) -> dict:
        event = self.repo.get_event(self.db, event_id)
        if not event:
            raise HTTPException(status_code=404, detail="Event not found")

        event.increment_views()
        self.db.commit()
        self.db.refresh(event)

        data = event_to_dict(event)
        organizer = user_to_dict(event.btc)
        if organizer is not None:
            profile = btc_profile_to_dict(event.btc.btc_profile)
            if profile is not None:
                profile["successfulEventsCount"] = self.repo.count_completed(self.db, event.btc_id)
            organizer["btcProfile"] = profile
        data["btc"] = organizer

        if viewer is not None:
            data["isApplied"] = self.repo.has_applied(self.db, event.id, viewer.id)

        return data

    # ------------------------------------------------------------------
    # Organizer operations
    # ------------------------------------------------------------------

    def _check_post_limits(self, user: User, urgent: bool):
        month_start = start_of_month()
        premium = user.is_premium_active()

        post_limit = PREMIUM_POST_LIMIT if premium else FREE_POST_LIMIT
        posts_this_month = self.repo.count_created_since(self.db, user.id, month_start)
        if posts_this_month >= post_limit:
            logger.warning(f"⚠️ User {user.id} reached monthly post limit ({post_limit})")
            hint = "" if premium else " Upgrade to Premium for more posts."
            raise HTTPException(
                status_code=403,
                detail=f"You have reached your monthly post limit ({post_limit}).{hint}",
            )

        if urgent:
            self._check_urgent_limit(user)

    def _check_urgent_limit(self, user: User):
        if not user.is_premium_active():
            raise HTTPException(
                status_code=403, detail="Urgent posts are available for Premium members only"
            )

        created_urgent = self.repo.count_created_since(self.db, user.id, start_of_month(), urgent_only=True)
        if max(created_urgent, user.urgent_used or 0) >= PREMIUM_URGENT_LIMIT:
            raise HTTPException(
                status_code=403,
                detail=f"You have reached your monthly urgent post limit ({PREMIUM_URGENT_LIMIT}).",
            )

    def create_event(self, data: EventCreate, user: User) -> Event:
        logger.info(f"📥 Creating event for BTC {user.id}")
        self._check_post_limits(user, data.urgent)
        validate_event_dates(data.startTime, data.endTime, data.deadline)

        values = data.model_dump()
        event = self.repo.create_event(
            self.db,
            btc_id=user.id,
            status="RECRUITING",
            **{EVENT_FIELD_MAP[k]: v for k, v in values.items() if k in EVENT_FIELD_MAP},
        )

        user.post_used = (user.post_used or 0) + 1
        if data.urgent:
            user.urgent_used = (user.urgent_used or 0) + 1

        self.db.commit()
        self.db.refresh(event)
        logger.info(f"✅ Event {event.id} created by BTC {user.id}")
        return event

    def _get_owned_event(self, event_id: int, user: User, action: str) -> Event:
        event = self.repo.get_event(self.db, event_id)
        if not event:
            raise HTTPException(status_code=404, detail="Event not found")
        if event.btc_id != user.id:
            raise HTTPException(status_code=403, detail=f"Not authorized to {action} this event")
        return event

    def update_event(self, event_id: int, data: EventUpdate, user: User) -> Event:
        event = self._get_owned_event(event_id, user, "update")
        values = data.model_dump(exclude_unset=True)

        becomes_urgent = values.get("urgent") is True and not event.urgent
        if becomes_urgent:
            self._check_urgent_limit(user)

        validate_event_dates(
            values.get("startTime") or event.start_time,
            values.get("endTime") or event.end_time,
            values.get("deadline") or event.deadline,
        )

        for key, value in values.items():
            column = EVENT_FIELD_MAP.get(key)
            if column is None:
                continue
            setattr(event, column, value)

        if becomes_urgent:
            user.urgent_used = (user.urgent_used or 0) + 1

        self.db.commit()
        self.db.refresh(event)
        logger.info(f"✅ Event {event.id} updated")
        return event

    def delete_event(self, event_id: int, user: User) -> None:
        event = self._get_owned_event(event_id, user, "delete")
        if self.repo.count_applications(self.db, event.id) > 0:
            raise HTTPException(status_code=400, detail="Cannot delete event with existing applications")
        self.repo.delete_event(self.db, event)
        self.db.commit()
        logger.info(f"🗑️ Event {event_id} deleted by BTC {user.id}")

    def list_my_events(self, user: User, status: Optional[str], page: int, limit: int):
        return paginate_query(self.repo.query_by_btc(self.db, user.id, status), page, limit)

    def dashboard_stats(self, user: User) -> dict:
        event_ids = self.repo.event_ids_for_btc(self.db, user.id)
        timestamps = self.repo.application_dates_since(self.db, event_ids, window_start(7))
        return {
            "activeEvents": self.repo.count_by_status(self.db, user.id, "RECRUITING"),
            "totalViews": self.repo.total_views(self.db, user.id),
            "pendingApplications": self.repo.count_pending_applications(self.db, event_ids),
            "chartData": daily_counts(timestamps, 7),
        }
