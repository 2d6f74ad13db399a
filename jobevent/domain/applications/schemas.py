"""Application domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, Field


class ApplyRequest(BaseModel):
    coverLetter: Optional[str] = Field(None, max_length=1000)


class ApproveRequest(BaseModel):
    assignedRole: Optional[str] = None


class RejectRequest(BaseModel):
    rejectionReason: Optional[str] = None


class ViolationRequest(BaseModel):
    reason: Optional[str] = None


class BulkApproveRequest(BaseModel):
    applicationIds: list[int] = []
    role: Optional[str] = None


class BulkRejectRequest(BaseModel):
    applicationIds: list[int] = []
    rejectionReason: Optional[str] = None
