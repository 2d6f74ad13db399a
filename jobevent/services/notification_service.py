"""
Unified Notification Service
Creates in-app notifications and, optionally, the matching email for the same event
Email delivery is best-effort: failures are logged and reported, never raised
"""

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from ..models import NOTIFICATION_TYPES, Notification, User

logger = logging.getLogger(__name__)


def create_notification(
    db: Session,
    user_id: int,
    notification_type: str,
    title: str,
    content: str,
    related_id: Optional[int] = None,
    related_model: Optional[str] = None,
    metadata: Optional[dict] = None,
    commit: bool = True,
) -> Notification:
    """Insert one in-app notification"""
    if notification_type not in NOTIFICATION_TYPES:
        raise ValueError(f"Unknown notification type: {notification_type}")

    notification = Notification(
        user_id=user_id,
        type=notification_type,
        title=title,
        content=content,
        related_id=related_id,
        related_model=related_model,
        meta=metadata or {},
    )
    db.add(notification)
    if commit:
        db.commit()
        db.refresh(notification)
    else:
        db.flush()

    logger.debug(f"🔔 {notification_type} notification queued for user {user_id}")
    return notification


async def deliver_email(notification_type: str, to: Optional[str], email_func, **email_kwargs: Any) -> tuple[bool, Optional[str]]:
    """
    Call an email_service sender without letting failures escape.

    Returns:
        (sent, error)
    """
    if not to:
        logger.debug(f"⚠️ No email address for {notification_type} email")
        return False, "No email address"

    try:
        logger.info(f"📧 Sending {notification_type} email to {to}")
        await email_func(to=to, **email_kwargs)
        logger.info(f"✅ {notification_type} email sent successfully to {to}")
        return True, None
    except Exception as e:
        logger.error(f"❌ Failed to send {notification_type} email to {to}: {e}")
        return False, str(e)


async def notify_user(
    db: Session,
    user: User,
    notification_type: str,
    title: str,
    content: str,
    related_id: Optional[int] = None,
    related_model: Optional[str] = None,
    email_func=None,
    email_kwargs: Optional[dict] = None,
) -> dict:
    """
    In-app notification plus optional email for one recipient.

    The in-app notification is committed even when the email fails.

    Returns:
        Dict with notification_id, email_sent and email_error
    """
    result = {"notification_id": None, "email_sent": False, "email_error": None}

    try:
        notification = create_notification(
            db,
            user_id=user.id,
            notification_type=notification_type,
            title=title,
            content=content,
            related_id=related_id,
            related_model=related_model,
        )
        result["notification_id"] = notification.id
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Failed to create {notification_type} notification for user {user.id}: {e}")
        return result

    if email_func is not None:
        sent, error = await deliver_email(
            notification_type, user.email, email_func, **(email_kwargs or {})
        )
        result["email_sent"] = sent
        result["email_error"] = error

    return result
