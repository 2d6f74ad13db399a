"""Application router - FastAPI endpoints for the application lifecycle"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_btc, require_ctv, require_premium_btc
from ...database import get_db
from ...models import User
from ...shared.pagination import page_envelope
from ...shared.serializers import application_to_dict, ctv_profile_to_dict, user_to_dict
from .schemas import (
    ApplyRequest,
    ApproveRequest,
    BulkApproveRequest,
    BulkRejectRequest,
    RejectRequest,
    ViolationRequest,
)
from .service import ApplicationService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Applications"])


def get_application_service(db: Session = Depends(get_db)) -> ApplicationService:
    """Dependency injection for ApplicationService"""
    return ApplicationService(db)


# ============================================================================
# CTV ENDPOINTS
# ============================================================================


@router.post("/events/{event_id}/apply", status_code=201)
async def apply_to_event(
    event_id: int,
    data: ApplyRequest,
    current_user: User = Depends(require_ctv),
    service: ApplicationService = Depends(get_application_service),
):
    application = service.apply(event_id, data.coverLetter, current_user)
    return {"success": True, "data": application_to_dict(application)}


@router.get("/ctv/applications")
async def get_ctv_applications(
    status: Optional[str] = Query(None),
    page: int = Query(1),
    limit: int = Query(10),
    current_user: User = Depends(require_ctv),
    service: ApplicationService = Depends(get_application_service),
):
    """Applications submitted by the current CTV, with their events"""
    items, total = service.list_for_ctv(current_user, status, page, limit)
    return page_envelope(
        [application_to_dict(a, include_event=True) for a in items], total, page, limit
    )


@router.get("/applications/ctv/dashboard/stats")
async def get_ctv_dashboard_stats(
    current_user: User = Depends(require_ctv),
    service: ApplicationService = Depends(get_application_service),
):
    return {"success": True, "data": service.ctv_dashboard_stats(current_user)}


# ============================================================================
# BTC ENDPOINTS
# ============================================================================


@router.get("/btc/events/{event_id}/applications")
async def get_event_applications(
    event_id: int,
    status: Optional[str] = Query(None),
    page: int = Query(1),
    limit: int = Query(10),
    current_user: User = Depends(require_btc),
    service: ApplicationService = Depends(get_application_service),
):
    """Applicants for one of the organizer's events, with their CTV profiles"""
    items, total, profiles = service.list_for_event(event_id, current_user, status, page, limit)
    data = []
    for application in items:
        row = application_to_dict(application)
        row["ctv"] = user_to_dict(application.ctv)
        row["ctvProfile"] = ctv_profile_to_dict(profiles.get(application.ctv_id))
        data.append(row)
    return page_envelope(data, total, page, limit)


@router.post("/applications/bulk-approve")
async def bulk_approve_applications(
    data: BulkApproveRequest,
    current_user: User = Depends(require_premium_btc),
    service: ApplicationService = Depends(get_application_service),
):
    """Premium: approve many applications at once"""
    count = service.bulk_approve(data, current_user)
    return {"success": True, "message": f"{count} applications approved successfully"}


@router.post("/applications/bulk-reject")
async def bulk_reject_applications(
    data: BulkRejectRequest,
    current_user: User = Depends(require_premium_btc),
    service: ApplicationService = Depends(get_application_service),
):
    """Premium: reject many applications at once"""
    count = service.bulk_reject(data, current_user)
    return {"success": True, "message": f"{count} applications rejected successfully"}


@router.post("/applications/{application_id}/approve")
async def approve_application(
    application_id: int,
    data: ApproveRequest,
    current_user: User = Depends(require_btc),
    service: ApplicationService = Depends(get_application_service),
):
    application = service.approve(application_id, data.assignedRole, current_user)
    return {"success": True, "data": application_to_dict(application)}


@router.post("/applications/{application_id}/reject")
async def reject_application(
    application_id: int,
    data: RejectRequest,
    current_user: User = Depends(require_btc),
    service: ApplicationService = Depends(get_application_service),
):
    application = service.reject(application_id, data.rejectionReason, current_user)
    return {"success": True, "data": application_to_dict(application)}


@router.post("/applications/{application_id}/complete")
async def complete_application(
    application_id: int,
    current_user: User = Depends(require_btc),
    service: ApplicationService = Depends(get_application_service),
):
    application = service.complete(application_id, current_user)
    return {"success": True, "data": application_to_dict(application)}


@router.post("/applications/{application_id}/violation")
async def report_violation(
    application_id: int,
    data: ViolationRequest,
    current_user: User = Depends(require_btc),
    service: ApplicationService = Depends(get_application_service),
):
    """Mark an approved CTV as a no-show; applies the trust penalty"""
    application = service.report_violation(application_id, data.reason, current_user)
    return {
        "success": True,
        "data": application_to_dict(application),
        "message": "Violation reported and penalty applied",
    }
