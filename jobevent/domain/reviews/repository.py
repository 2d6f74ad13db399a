"""Review repository - Database operations for reviews"""

from typing import Optional

from sqlalchemy.orm import Query, Session

from ...models import Application, BTCProfile, CTVProfile, Review, User


class ReviewRepository:
    """Repository for review database operations"""

    @staticmethod
    def get_review(db: Session, review_id: int) -> Optional[Review]:
        return db.query(Review).filter(Review.id == review_id).first()

    @staticmethod
    def find_review(
        db: Session, event_id: int, from_user_id: int, to_user_id: int, review_type: str
    ) -> Optional[Review]:
        return (
            db.query(Review)
            .filter(
                Review.event_id == event_id,
                Review.from_user_id == from_user_id,
                Review.to_user_id == to_user_id,
                Review.review_type == review_type,
            )
            .first()
        )

    @staticmethod
    def finished_application(db: Session, event_id: int, ctv_id: int) -> Optional[Application]:
        """The CTV's application if it ended as COMPLETED or NO_SHOW"""
        return (
            db.query(Application)
            .filter(
                Application.event_id == event_id,
                Application.ctv_id == ctv_id,
                Application.status.in_(("COMPLETED", "NO_SHOW")),
            )
            .first()
        )

    @staticmethod
    def create_review(db: Session, **review_data) -> Review:
        review = Review(**review_data)
        db.add(review)
        db.flush()
        return review

    @staticmethod
    def query_received(db: Session, user_id: int) -> Query:
        return (
            db.query(Review)
            .filter(Review.to_user_id == user_id)
            .order_by(Review.created_at.desc(), Review.id.desc())
        )

    @staticmethod
    def get_user(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_btc_profile(db: Session, user_id: int) -> Optional[BTCProfile]:
        return db.query(BTCProfile).filter(BTCProfile.user_id == user_id).first()

    @staticmethod
    def get_ctv_profile(db: Session, user_id: int) -> Optional[CTVProfile]:
        return db.query(CTVProfile).filter(CTVProfile.user_id == user_id).first()

    @staticmethod
    def delete_review(db: Session, review: Review) -> None:
        db.delete(review)
