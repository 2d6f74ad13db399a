"""User repository - Database operations for profiles"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import BTCProfile, CTVProfile, Event, Review


class UserRepository:
    """Repository for profile database operations"""

    @staticmethod
    def get_ctv_profile(db: Session, user_id: int) -> Optional[CTVProfile]:
        return db.query(CTVProfile).filter(CTVProfile.user_id == user_id).first()

    @staticmethod
    def get_btc_profile(db: Session, user_id: int) -> Optional[BTCProfile]:
        return db.query(BTCProfile).filter(BTCProfile.user_id == user_id).first()

    @staticmethod
    def get_ctv_profile_by_id(db: Session, profile_id: int) -> Optional[CTVProfile]:
        return db.query(CTVProfile).filter(CTVProfile.id == profile_id).first()

    @staticmethod
    def get_btc_profile_by_id(db: Session, profile_id: int) -> Optional[BTCProfile]:
        return db.query(BTCProfile).filter(BTCProfile.id == profile_id).first()

    @staticmethod
    def latest_reviews_for(db: Session, user_id: int, review_type: str, limit: int = 20) -> list[Review]:
        return (
            db.query(Review)
            .filter(Review.to_user_id == user_id, Review.review_type == review_type)
            .order_by(Review.created_at.desc(), Review.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def events_by_btc(db: Session, btc_id: int) -> list[Event]:
        return (
            db.query(Event)
            .filter(Event.btc_id == btc_id)
            .order_by(Event.created_at.desc(), Event.id.desc())
            .all()
        )

    @staticmethod
    def events_by_ids(db: Session, event_ids: list[int]) -> list[Event]:
        if not event_ids:
            return []
        return db.query(Event).filter(Event.id.in_(event_ids)).all()
