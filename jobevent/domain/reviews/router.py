"""Review router - FastAPI endpoints for reviews"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_btc, require_ctv
from ...database import get_db
from ...models import User
from ...shared.pagination import page_envelope
from ...shared.serializers import review_to_dict
from .schemas import ReviewBTCRequest, ReviewCTVRequest, ReviewType, ReviewUpdate
from .service import ReviewService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reviews", tags=["Reviews"])


def get_review_service(db: Session = Depends(get_db)) -> ReviewService:
    """Dependency injection for ReviewService"""
    return ReviewService(db)


@router.post("/btc", status_code=201)
async def review_btc(
    data: ReviewBTCRequest,
    current_user: User = Depends(require_ctv),
    service: ReviewService = Depends(get_review_service),
):
    """CTV rates the organizer of an event they worked"""
    review = await service.review_btc(data, current_user)
    return {"success": True, "data": review_to_dict(review)}


@router.post("/ctv", status_code=201)
async def review_ctv(
    data: ReviewCTVRequest,
    current_user: User = Depends(require_btc),
    service: ReviewService = Depends(get_review_service),
):
    """Organizer rates a collaborator's skill and attitude"""
    review = await service.review_ctv(data, current_user)
    return {"success": True, "data": review_to_dict(review)}


@router.get("/user/{user_id}")
async def get_user_reviews(
    user_id: int,
    page: int = Query(1),
    limit: int = Query(10),
    service: ReviewService = Depends(get_review_service),
):
    reviews, total = service.list_received(user_id, page, limit)
    return page_envelope([review_to_dict(r) for r in reviews], total, page, limit)


@router.get("/check")
async def check_review_status(
    eventId: Optional[int] = Query(None),
    toUserId: Optional[int] = Query(None),
    reviewType: Optional[ReviewType] = Query(None),
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    review = service.check(current_user, eventId, toUserId, reviewType)
    return {
        "success": True,
        "hasReviewed": review is not None,
        "review": review_to_dict(review) if review else None,
    }


@router.put("/{review_id}")
async def update_review(
    review_id: int,
    data: ReviewUpdate,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    review = service.update(review_id, data, current_user)
    return {"success": True, "data": review_to_dict(review)}


@router.delete("/{review_id}")
async def delete_review(
    review_id: int,
    current_user: User = Depends(get_current_user),
    service: ReviewService = Depends(get_review_service),
):
    service.delete(review_id, current_user)
    return {"success": True, "message": "Review deleted successfully"}
