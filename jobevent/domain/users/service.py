"""User service - Profile reads, updates and public profile pages"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import BTCProfile, CTVProfile, Event, User
from ...shared.serializers import (
    btc_profile_to_dict,
    ctv_profile_to_dict,
    event_to_dict,
    profile_for,
    review_to_dict,
    user_to_dict,
)
from .repository import UserRepository
from .schemas import BTC_FIELD_MAP, CTV_FIELD_MAP, BTCProfileUpdate, CTVProfileUpdate, UpdateMeRequest

logger = logging.getLogger(__name__)


def _apply(profile, values: dict, field_map: dict):
    for key, column in field_map.items():
        if key in values:
            setattr(profile, column, values[key])


def categorize_events(events: list[Event], now: Optional[datetime] = None) -> dict:
    """Split events into past / ongoing / upcoming relative to now"""
    now = now or datetime.utcnow()
    past, ongoing, upcoming = [], [], []
    for event in events:
        completed = event.status == "COMPLETED"
        if event.end_time < now or completed:
            past.append(event)
        elif event.start_time <= now <= event.end_time:
            ongoing.append(event)
        elif event.start_time > now:
            upcoming.append(event)
    return {
        "past": [event_to_dict(e) for e in past],
        "ongoing": [event_to_dict(e) for e in ongoing],
        "upcoming": [event_to_dict(e) for e in upcoming],
        "all": [event_to_dict(e) for e in events],
    }


class UserService:
    """Service layer for user profiles"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()

    def get_me(self, user: User) -> dict:
        return {"user": user_to_dict(user), "profile": profile_for(user)}

    def update_me(self, user: User, data: UpdateMeRequest) -> Optional[dict]:
        values = data.model_dump(exclude_unset=True)

        if values.get("phone"):
            user.phone = values["phone"]

        if user.role == "CTV":
            profile = self.repo.get_ctv_profile(self.db, user.id)
            if profile:
                _apply(profile, values, CTV_FIELD_MAP)
        elif user.role == "BTC":
            profile = self.repo.get_btc_profile(self.db, user.id)
            if profile:
                _apply(profile, values, BTC_FIELD_MAP)

        self.db.commit()
        self.db.refresh(user)
        logger.info(f"✅ Profile updated for user {user.id}")
        return profile_for(user)

    # ------------------------------------------------------------------
    # CTV curriculum vitae
    # ------------------------------------------------------------------

    def get_ctv_cv(self, user: User) -> Optional[dict]:
        return ctv_profile_to_dict(self.repo.get_ctv_profile(self.db, user.id))

    def update_ctv_cv(self, user: User, data: CTVProfileUpdate) -> dict:
        profile = self.repo.get_ctv_profile(self.db, user.id)
        if not profile:
            profile = CTVProfile(user_id=user.id, gender="OTHER", skills=[], experiences=[], joined_events=[])
            self.db.add(profile)

        _apply(profile, data.model_dump(exclude_unset=True), CTV_FIELD_MAP)
        self.db.commit()
        self.db.refresh(profile)
        return ctv_profile_to_dict(profile)

    # ------------------------------------------------------------------
    # BTC organization profile
    # ------------------------------------------------------------------

    def get_btc_profile(self, user: User) -> Optional[dict]:
        return btc_profile_to_dict(self.repo.get_btc_profile(self.db, user.id))

    def update_btc_profile(self, user: User, data: BTCProfileUpdate) -> dict:
        profile = self.repo.get_btc_profile(self.db, user.id)
        if not profile:
            profile = BTCProfile(user_id=user.id, successful_events=[])
            self.db.add(profile)

        _apply(profile, data.model_dump(exclude_unset=True), BTC_FIELD_MAP)
        self.db.commit()
        self.db.refresh(profile)
        return btc_profile_to_dict(profile)

    # ------------------------------------------------------------------
    # Public pages
    # ------------------------------------------------------------------

    def get_public_btc_profile(self, profile_id: int) -> dict:
        profile = self.repo.get_btc_profile_by_id(self.db, profile_id)
        if not profile:
            raise HTTPException(status_code=404, detail="BTC profile not found")

        reviews = self.repo.latest_reviews_for(self.db, profile.user_id, "CTV_TO_BTC")
        events = self.repo.events_by_btc(self.db, profile.user_id)

        return {
            "profile": {**btc_profile_to_dict(profile), "user": user_to_dict(profile.user)},
            "reviews": [review_to_dict(r) for r in reviews],
            "events": categorize_events(events),
        }

    def get_public_ctv_profile(self, profile_id: int) -> dict:
        profile = self.repo.get_ctv_profile_by_id(self.db, profile_id)
        if not profile:
            raise HTTPException(status_code=404, detail="CTV profile not found")

        reviews = self.repo.latest_reviews_for(self.db, profile.user_id, "BTC_TO_CTV")
        event_ids = [entry.get("eventId") for entry in (profile.joined_events or [])]
        events = self.repo.events_by_ids(self.db, [i for i in event_ids if i is not None])

        return {
            "profile": {**ctv_profile_to_dict(profile), "user": user_to_dict(profile.user)},
            "reviews": [review_to_dict(r) for r in reviews],
            "events": categorize_events(events),
        }
