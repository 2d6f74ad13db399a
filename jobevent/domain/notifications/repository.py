"""Notification repository - Database operations for notifications"""

from typing import Optional

from sqlalchemy.orm import Query, Session

from ...models import Notification


class NotificationRepository:
    """Repository for notification database operations"""

    @staticmethod
    def query_for_user(
        db: Session, user_id: int, notification_type: Optional[str] = None, is_read: Optional[bool] = None
    ) -> Query:
        query = db.query(Notification).filter(Notification.user_id == user_id)
        if notification_type:
            query = query.filter(Notification.type == notification_type)
        if is_read is not None:
            query = query.filter(Notification.is_read == is_read)
        return query.order_by(Notification.created_at.desc(), Notification.id.desc())

    @staticmethod
    def count_unread(db: Session, user_id: int) -> int:
        return (
            db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
            .count()
        )

    @staticmethod
    def get_for_user(db: Session, notification_id: int, user_id: int) -> Optional[Notification]:
        """Owner-scoped lookup"""
        return (
            db.query(Notification)
            .filter(Notification.id == notification_id, Notification.user_id == user_id)
            .first()
        )

    @staticmethod
    def mark_all_read(db: Session, user_id: int) -> int:
        modified = (
            db.query(Notification)
            .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
            .update({Notification.is_read: True}, synchronize_session=False)
        )
        db.commit()
        return modified

    @staticmethod
    def delete(db: Session, notification: Notification) -> None:
        db.delete(notification)
        db.commit()
