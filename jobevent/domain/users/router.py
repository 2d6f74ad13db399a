"""User router - FastAPI endpoints for accounts and profiles"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_btc, require_ctv
from ...database import get_db
from ...models import User
from .schemas import BTCProfileUpdate, CTVProfileUpdate, UpdateMeRequest
from .service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    """Dependency injection for UserService"""
    return UserService(db)


# ============================================================================
# CURRENT USER
# ============================================================================


@router.get("/me")
async def get_me(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return {"success": True, "data": service.get_me(current_user)}


@router.put("/me")
async def update_me(
    data: UpdateMeRequest,
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    """Update phone and the caller's role profile"""
    return {"success": True, "data": service.update_me(current_user, data)}


# ============================================================================
# ROLE PROFILES
# ============================================================================


@router.get("/ctv/cv")
async def get_ctv_cv(
    current_user: User = Depends(require_ctv),
    service: UserService = Depends(get_user_service),
):
    return {"success": True, "data": service.get_ctv_cv(current_user)}


@router.put("/ctv/cv")
async def update_ctv_cv(
    data: CTVProfileUpdate,
    current_user: User = Depends(require_ctv),
    service: UserService = Depends(get_user_service),
):
    return {"success": True, "data": service.update_ctv_cv(current_user, data)}


@router.get("/btc/profile")
async def get_btc_profile(
    current_user: User = Depends(require_btc),
    service: UserService = Depends(get_user_service),
):
    return {"success": True, "data": service.get_btc_profile(current_user)}


@router.put("/btc/profile")
async def update_btc_profile(
    data: BTCProfileUpdate,
    current_user: User = Depends(require_btc),
    service: UserService = Depends(get_user_service),
):
    return {"success": True, "data": service.update_btc_profile(current_user, data)}


# ============================================================================
# PUBLIC PROFILES
# ============================================================================


@router.get("/btc/{profile_id}/public")
async def get_public_btc_profile(profile_id: int, service: UserService = Depends(get_user_service)):
    """Organizer page: profile, latest reviews and events grouped by timing"""
    return {"success": True, "data": service.get_public_btc_profile(profile_id)}


@router.get("/ctv/{profile_id}/public")
async def get_public_ctv_profile(profile_id: int, service: UserService = Depends(get_user_service)):
    """Collaborator page: profile, latest reviews and joined events grouped by timing"""
    return {"success": True, "data": service.get_public_ctv_profile(profile_id)}
