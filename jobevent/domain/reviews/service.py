"""Review service - Two-way reviews and the rating aggregates they feed"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...email_service import send_btc_review_email, send_ctv_review_email
from ...models import MAX_RATING, Review, User
from ...services.notification_service import notify_user
from ...shared.pagination import paginate_query
from ..events.repository import EventRepository
from .repository import ReviewRepository
from .schemas import ReviewBTCRequest, ReviewCTVRequest, ReviewUpdate

logger = logging.getLogger(__name__)

LOW_SCORE_THRESHOLD = 3
LOW_SCORE_TRUST_PENALTY = 2


def replace_in_average(average: float, count: int, old: float, new: float) -> float:
    """Swap one contribution in a running average: (avg*n - old + new) / n"""
    if count <= 0:
        return average
    value = ((average or 0) * count - old + new) / count
    return max(0, min(MAX_RATING, value))


def remove_from_average(average: float, count: int, old: float) -> tuple[float, int]:
    """Drop one contribution. Returns (average, count); average is 0 once none remain."""
    remaining = count - 1
    if remaining > 0:
        value = ((average or 0) * count - old) / remaining
        return max(0, min(MAX_RATING, value)), remaining
    return 0, max(0, remaining)


class ReviewService:
    """Service layer for review business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ReviewRepository()

    async def review_btc(self, data: ReviewBTCRequest, user: User) -> Review:
        event = EventRepository.get_event(self.db, data.eventId)
        if not event:
            raise HTTPException(status_code=404, detail="Event not found")

        if not self.repo.finished_application(self.db, event.id, user.id):
            raise HTTPException(status_code=403, detail="You can only review events you have completed")

        if self.repo.find_review(self.db, event.id, user.id, event.btc_id, "CTV_TO_BTC"):
            raise HTTPException(status_code=400, detail="You have already reviewed this BTC for this event")

        review = self.repo.create_review(
            self.db,
            event_id=event.id,
            from_user_id=user.id,
            to_user_id=event.btc_id,
            review_type="CTV_TO_BTC",
            rating=data.rating,
            comment=data.comment,
        )

        profile = self.repo.get_btc_profile(self.db, event.btc_id)
        if profile:
            profile.update_rating(data.rating)

        self.db.commit()
        self.db.refresh(review)
        logger.info(f"⭐ CTV {user.id} reviewed BTC {event.btc_id} ({data.rating}/5)")

        organizer = self.repo.get_user(self.db, event.btc_id)
        if organizer:
            await notify_user(
                self.db,
                organizer,
                "REVIEW",
                title="New Review Received",
                content=f'You received a review for event "{event.title}"',
                related_id=review.id,
                related_model="Review",
                email_func=send_btc_review_email,
                email_kwargs={"event_title": event.title, "rating": data.rating, "comment": data.comment},
            )
        return review

    async def review_ctv(self, data: ReviewCTVRequest, user: User) -> Review:
        event = EventRepository.get_event(self.db, data.eventId)
        if not event:
            raise HTTPException(status_code=404, detail="Event not found")

        if event.btc_id != user.id:
            raise HTTPException(status_code=403, detail="Not authorized to review for this event")

        if not self.repo.finished_application(self.db, event.id, data.ctvId):
            raise HTTPException(status_code=400, detail="CTV did not complete this event")

        if self.repo.find_review(self.db, event.id, user.id, data.ctvId, "BTC_TO_CTV"):
            raise HTTPException(status_code=400, detail="You have already reviewed this CTV for this event")

        review = self.repo.create_review(
            self.db,
            event_id=event.id,
            from_user_id=user.id,
            to_user_id=data.ctvId,
            review_type="BTC_TO_CTV",
            skill=data.skill,
            attitude=data.attitude,
            comment=data.comment,
        )

        profile = self.repo.get_ctv_profile(self.db, data.ctvId)
        if profile:
            average = (data.skill + data.attitude) / 2
            profile.update_reputation(average)
            if average < LOW_SCORE_THRESHOLD:
                profile.update_trust_score(-LOW_SCORE_TRUST_PENALTY)

        self.db.commit()
        self.db.refresh(review)
        logger.info(f"⭐ BTC {user.id} reviewed CTV {data.ctvId}")

        collaborator = self.repo.get_user(self.db, data.ctvId)
        if collaborator:
            await notify_user(
                self.db,
                collaborator,
                "REVIEW",
                title="New Review Received",
                content=f'You received a review from BTC for event "{event.title}"',
                related_id=review.id,
                related_model="Review",
                email_func=send_ctv_review_email,
                email_kwargs={
                    "event_title": event.title,
                    "skill": data.skill,
                    "attitude": data.attitude,
                    "comment": data.comment,
                },
            )
        return review

    def list_received(self, user_id: int, page: int, limit: int):
        return paginate_query(self.repo.query_received(self.db, user_id), page, limit)

    def check(self, user: User, event_id: Optional[int], to_user_id: Optional[int], review_type: Optional[str]):
        if not event_id or not to_user_id or not review_type:
            raise HTTPException(status_code=400, detail="Missing required parameters")
        return self.repo.find_review(self.db, event_id, user.id, to_user_id, review_type)

    def _get_authored(self, review_id: int, user: User, action: str) -> Review:
        review = self.repo.get_review(self.db, review_id)
        if not review:
            raise HTTPException(status_code=404, detail="Review not found")
        if review.from_user_id != user.id:
            raise HTTPException(status_code=403, detail=f"Not authorized to {action} this review")
        return review

    def update(self, review_id: int, data: ReviewUpdate, user: User) -> Review:
        review = self._get_authored(review_id, user, "update")

        if review.review_type == "CTV_TO_BTC" and data.rating is not None:
            profile = self.repo.get_btc_profile(self.db, review.to_user_id)
            if profile:
                profile.rating_average = replace_in_average(
                    profile.rating_average, profile.rating_total_reviews, review.rating or 0, data.rating
                )
            review.rating = data.rating

        if review.review_type == "BTC_TO_CTV" and data.skill is not None and data.attitude is not None:
            old_score = review.score()
            new_score = (data.skill + data.attitude) / 2
            profile = self.repo.get_ctv_profile(self.db, review.to_user_id)
            if profile:
                profile.reputation_score = replace_in_average(
                    profile.reputation_score, profile.reputation_total_reviews, old_score, new_score
                )
                if new_score < LOW_SCORE_THRESHOLD <= old_score:
                    profile.update_trust_score(-LOW_SCORE_TRUST_PENALTY)
                elif old_score < LOW_SCORE_THRESHOLD <= new_score:
                    profile.update_trust_score(LOW_SCORE_TRUST_PENALTY)
            review.skill = data.skill
            review.attitude = data.attitude

        if "comment" in data.model_fields_set:
            review.comment = data.comment

        self.db.commit()
        self.db.refresh(review)
        return review

    def delete(self, review_id: int, user: User) -> None:
        review = self._get_authored(review_id, user, "delete")

        if review.review_type == "CTV_TO_BTC":
            profile = self.repo.get_btc_profile(self.db, review.to_user_id)
            if profile:
                profile.rating_average, profile.rating_total_reviews = remove_from_average(
                    profile.rating_average, profile.rating_total_reviews, review.rating or 0
                )
        else:
            profile = self.repo.get_ctv_profile(self.db, review.to_user_id)
            if profile:
                score = review.score()
                profile.reputation_score, profile.reputation_total_reviews = remove_from_average(
                    profile.reputation_score, profile.reputation_total_reviews, score
                )
                if score < LOW_SCORE_THRESHOLD:
                    profile.update_trust_score(LOW_SCORE_TRUST_PENALTY)

        self.repo.delete_review(self.db, review)
        self.db.commit()
        logger.info(f"🗑️ Review {review_id} deleted by user {user.id}")
