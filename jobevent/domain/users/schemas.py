"""User domain schemas - Pydantic models for profile updates"""

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import reject_null, validate_vn_phone


class CTVProfileUpdate(BaseModel):
    fullName: Optional[str] = None
    avatar: Optional[str] = None
    gender: Optional[Literal["MALE", "FEMALE", "OTHER"]] = None
    address: Optional[str] = None
    dob: Optional[datetime] = None
    skills: Optional[list[str]] = None
    experiences: Optional[list[dict[str, Any]]] = None

    @field_validator("gender", "skills", "experiences")
    @classmethod
    def required_not_null(cls, v):
        return reject_null(v)


class BTCProfileUpdate(BaseModel):
    agencyName: Optional[str] = None
    logo: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None
    fanpage: Optional[str] = None
    description: Optional[str] = Field(None, max_length=5000)


class UpdateMeRequest(BaseModel):
    """Phone plus any role-profile field; unknown keys are ignored"""

    phone: Optional[str] = None
    # CTV
    fullName: Optional[str] = None
    avatar: Optional[str] = None
    gender: Optional[Literal["MALE", "FEMALE", "OTHER"]] = None
    address: Optional[str] = None
    dob: Optional[datetime] = None
    skills: Optional[list[str]] = None
    experiences: Optional[list[dict[str, Any]]] = None
    # BTC
    agencyName: Optional[str] = None
    logo: Optional[str] = None
    website: Optional[str] = None
    fanpage: Optional[str] = None
    description: Optional[str] = None

    @field_validator("gender", "skills", "experiences")
    @classmethod
    def required_not_null(cls, v):
        return reject_null(v)

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        if v:
            return validate_vn_phone(v)
        return v


# camelCase request field -> model column
CTV_FIELD_MAP = {
    "fullName": "full_name",
    "avatar": "avatar",
    "gender": "gender",
    "address": "address",
    "dob": "date_of_birth",
    "skills": "skills",
    "experiences": "experiences",
}

BTC_FIELD_MAP = {
    "agencyName": "agency_name",
    "logo": "logo",
    "address": "address",
    "website": "website",
    "fanpage": "fanpage",
    "description": "description",
}
