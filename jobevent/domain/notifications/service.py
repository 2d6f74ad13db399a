"""Notification service - Business logic for in-app notifications"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Notification, User
from ...services.notification_service import create_notification
from ...shared.pagination import paginate_query
from .repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationService:
    """Service layer for notification business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = NotificationRepository()

    def create(
        self,
        user_id: int,
        notification_type: str,
        title: str,
        content: str,
        related_id: Optional[int] = None,
        related_model: Optional[str] = None,
        metadata: Optional[dict] = None,
        commit: bool = True,
    ) -> Notification:
        """Single entry point other domains use to notify a user"""
        return create_notification(
            self.db,
            user_id=user_id,
            notification_type=notification_type,
            title=title,
            content=content,
            related_id=related_id,
            related_model=related_model,
            metadata=metadata,
            commit=commit,
        )

    def list_notifications(
        self,
        user: User,
        notification_type: Optional[str],
        is_read: Optional[bool],
        page: int,
        limit: int,
    ) -> tuple[list[Notification], int, int]:
        """Returns (items, total, unread_count)"""
        query = self.repo.query_for_user(self.db, user.id, notification_type, is_read)
        items, total = paginate_query(query, page, limit)
        unread = self.repo.count_unread(self.db, user.id)
        return items, total, unread

    def mark_read(self, notification_id: int, user: User) -> Notification:
        notification = self.repo.get_for_user(self.db, notification_id, user.id)
        if not notification:
            raise HTTPException(status_code=404, detail="Notification not found")

        notification.is_read = True
        self.db.commit()
        self.db.refresh(notification)
        return notification

    def mark_all_read(self, user: User) -> int:
        modified = self.repo.mark_all_read(self.db, user.id)
        logger.info(f"🔔 Marked {modified} notifications as read for user {user.id}")
        return modified

    def delete(self, notification_id: int, user: User) -> None:
        notification = self.repo.get_for_user(self.db, notification_id, user.id)
        if not notification:
            raise HTTPException(status_code=404, detail="Notification not found")
        self.repo.delete(self.db, notification)
