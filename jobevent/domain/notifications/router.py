"""Notification router - FastAPI endpoints for the notification inbox"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...shared.pagination import page_envelope
from ...shared.serializers import notification_to_dict
from .service import NotificationService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["Notifications"])


def get_notification_service(db: Session = Depends(get_db)) -> NotificationService:
    """Dependency injection for NotificationService"""
    return NotificationService(db)


@router.get("")
async def get_notifications(
    type: Optional[str] = Query(None),
    isRead: Optional[bool] = Query(None),
    page: int = Query(1),
    limit: int = Query(20),
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    """Caller's notifications, newest first, with the unread badge count"""
    items, total, unread = service.list_notifications(current_user, type, isRead, page, limit)
    return page_envelope(
        [notification_to_dict(n) for n in items], total, page, limit, unreadCount=unread
    )


# Registered before /{notification_id}/read so "read-all" is not parsed as an id
@router.put("/read-all")
async def mark_all_as_read(
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    modified = service.mark_all_read(current_user)
    return {
        "success": True,
        "message": "All notifications marked as read",
        "modifiedCount": modified,
    }


@router.put("/{notification_id}/read")
async def mark_as_read(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    notification = service.mark_read(notification_id, current_user)
    return {"success": True, "data": notification_to_dict(notification)}


@router.delete("/{notification_id}")
async def delete_notification(
    notification_id: int,
    current_user: User = Depends(get_current_user),
    service: NotificationService = Depends(get_notification_service),
):
    service.delete(notification_id, current_user)
    return {"success": True, "message": "Notification deleted"}
