"""Event router - FastAPI endpoints for event listings and organizer management"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_optional_user, require_btc
from ...database import get_db
from ...models import User
from ...shared.pagination import page_envelope
from ...shared.serializers import event_to_dict
from ...shared.validators import to_naive_utc
from .schemas import EventCreate, EventStatus, EventType, EventUpdate, SalaryRange
from .service import EventService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/events", tags=["Events"])


def get_event_service(db: Session = Depends(get_db)) -> EventService:
    """Dependency injection for EventService"""
    return EventService(db)


# ============================================================================
# ORGANIZER (BTC) ENDPOINTS
# ============================================================================


@router.get("/btc/events")
async def get_my_events(
    status: Optional[EventStatus] = Query(None),
    page: int = Query(1),
    limit: int = Query(10),
    current_user: User = Depends(require_btc),
    service: EventService = Depends(get_event_service),
):
    """Events posted by the current organizer"""
    events, total = service.list_my_events(current_user, status, page, limit)
    return page_envelope([event_to_dict(e) for e in events], total, page, limit)


@router.post("/btc/events", status_code=201)
async def create_event(
    data: EventCreate,
    current_user: User = Depends(require_btc),
    service: EventService = Depends(get_event_service),
):
    """Post a new event; subject to the monthly post and urgent limits"""
    event = service.create_event(data, current_user)
    return {"success": True, "data": event_to_dict(event)}


@router.put("/btc/events/{event_id}")
async def update_event(
    event_id: int,
    data: EventUpdate,
    current_user: User = Depends(require_btc),
    service: EventService = Depends(get_event_service),
):
    event = service.update_event(event_id, data, current_user)
    return {"success": True, "data": event_to_dict(event)}


@router.delete("/btc/events/{event_id}")
async def delete_event(
    event_id: int,
    current_user: User = Depends(require_btc),
    service: EventService = Depends(get_event_service),
):
    service.delete_event(event_id, current_user)
    return {"success": True, "message": "Event deleted successfully"}


@router.get("/btc/dashboard/stats")
async def get_dashboard_stats(
    current_user: User = Depends(require_btc),
    service: EventService = Depends(get_event_service),
):
    return {"success": True, "data": service.dashboard_stats(current_user)}


# ============================================================================
# PUBLIC ENDPOINTS
# ============================================================================


@router.get("")
async def get_events(
    keyword: Optional[str] = Query(None),
    location: Optional[str] = Query(None),
    type: Optional[EventType] = Query(None),
    urgent: Optional[bool] = Query(None),
    timeFrom: Optional[datetime] = Query(None),
    timeTo: Optional[datetime] = Query(None),
    salaryRange: Optional[SalaryRange] = Query(None),
    page: int = Query(1),
    limit: int = Query(10),
    current_user: Optional[User] = Depends(get_optional_user),
    service: EventService = Depends(get_event_service),
):
    """Recruiting events with search filters, urgent posts first"""
    events, total = service.list_events(
        page,
        limit,
        keyword=keyword,
        location=location,
        event_type=type,
        urgent_only=bool(urgent),
        time_from=to_naive_utc(timeFrom),
        time_to=to_naive_utc(timeTo),
        salary_range=salaryRange,
    )
    return page_envelope([event_to_dict(e) for e in events], total, page, limit)


@router.get("/{event_id}")
async def get_event(
    event_id: int,
    current_user: Optional[User] = Depends(get_optional_user),
    service: EventService = Depends(get_event_service),
):
    return {"success": True, "data": service.get_event_detail(event_id, current_user)}
