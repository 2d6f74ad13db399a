"""Event domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import reject_null, to_naive_utc

EventType = Literal["Concert", "Workshop", "Festival", "Conference", "Sports", "Exhibition", "Other"]
EventStatus = Literal["PREPARING", "RECRUITING", "COMPLETED", "CANCELLED"]
SalaryRange = Literal["low", "medium", "high"]


class JobDetailItem(BaseModel):
    role: str
    task: Optional[str] = None
    workTime: Optional[str] = None
    quantity: int = Field(ge=1)
    salary: Optional[str] = None


class EventCreate(BaseModel):
    """Schema for posting a new event"""

    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    location: str = Field(min_length=1)
    eventType: EventType
    salary: str = Field(min_length=1)
    benefits: Optional[str] = None
    startTime: datetime
    endTime: datetime
    deadline: datetime
    quantity: int = Field(ge=1)
    jobDetailsItems: list[JobDetailItem] = []
    poster: Optional[str] = None
    urgent: bool = False
    requirements: list[str] = []

    @field_validator("startTime", "endTime", "deadline")
    @classmethod
    def normalize_datetime(cls, v):
        return to_naive_utc(v)


class EventUpdate(BaseModel):
    """Schema for updating an event; only supplied fields change"""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    location: Optional[str] = None
    eventType: Optional[EventType] = None
    salary: Optional[str] = None
    benefits: Optional[str] = None
    startTime: Optional[datetime] = None
    endTime: Optional[datetime] = None
    deadline: Optional[datetime] = None
    quantity: Optional[int] = Field(None, ge=0)
    jobDetailsItems: Optional[list[JobDetailItem]] = None
    poster: Optional[str] = None
    urgent: Optional[bool] = None
    status: Optional[EventStatus] = None
    requirements: Optional[list[str]] = None

    @field_validator(
        "title",
        "description",
        "location",
        "eventType",
        "salary",
        "startTime",
        "endTime",
        "deadline",
        "quantity",
        "jobDetailsItems",
        "urgent",
        "status",
        "requirements",
    )
    @classmethod
    def required_not_null(cls, v):
        return reject_null(v)

    @field_validator("startTime", "endTime", "deadline")
    @classmethod
    def normalize_datetime(cls, v):
        return to_naive_utc(v)


# camelCase request field -> Event column
EVENT_FIELD_MAP = {
    "title": "title",
    "description": "description",
    "location": "location",
    "eventType": "event_type",
    "salary": "salary",
    "benefits": "benefits",
    "startTime": "start_time",
    "endTime": "end_time",
    "deadline": "deadline",
    "quantity": "quantity",
    "jobDetailsItems": "job_details_items",
    "poster": "poster",
    "urgent": "urgent",
    "status": "status",
    "requirements": "requirements",
}
