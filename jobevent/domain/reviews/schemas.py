"""Review domain schemas - Pydantic models for validation"""

from typing import Literal, Optional

from pydantic import BaseModel, Field


class ReviewBTCRequest(BaseModel):
    """CTV reviewing the organizer of an event"""

    eventId: int
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=500)


class ReviewCTVRequest(BaseModel):
    """Organizer reviewing a collaborator"""

    eventId: int
    ctvId: int
    skill: int = Field(ge=1, le=5)
    attitude: int = Field(ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=500)


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    skill: Optional[int] = Field(None, ge=1, le=5)
    attitude: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=500)


ReviewType = Literal["BTC_TO_CTV", "CTV_TO_BTC"]
