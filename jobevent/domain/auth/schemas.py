"""Auth domain schemas - Pydantic models for validation"""

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_email, validate_vn_phone


class _EmailMixin(BaseModel):
    @field_validator("email", check_fields=False)
    @classmethod
    def normalize_email(cls, v):
        return validate_email(v)


class RegisterCTVRequest(_EmailMixin):
    email: str
    password: str = Field(min_length=6)
    fullName: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    gender: Literal["MALE", "FEMALE", "OTHER"] = "OTHER"
    address: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_vn_phone(v)


class RegisterBTCRequest(_EmailMixin):
    email: str
    password: str = Field(min_length=6)
    agencyName: str = Field(min_length=1)
    phone: str = Field(min_length=1)
    address: Optional[str] = None
    logoUrl: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        return validate_vn_phone(v)


class SendOTPRequest(_EmailMixin):
    email: str


class VerifyOTPRequest(_EmailMixin):
    email: str
    otp: str = Field(min_length=6, max_length=6)


class LoginRequest(BaseModel):
    # Optional so a missing field gets the login-specific 400 message
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[Literal["CTV", "BTC", "ADMIN"]] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower() if v else v


class RefreshTokenRequest(BaseModel):
    refreshToken: Optional[str] = None


class GoogleLoginRequest(BaseModel):
    idToken: Optional[str] = None
    role: Optional[Literal["CTV", "BTC"]] = None
