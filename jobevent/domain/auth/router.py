"""Auth router - FastAPI endpoints for registration and sessions"""

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...config import AUTH_COOKIE_MAX_AGE, AUTH_COOKIE_NAME, COOKIE_SECURE
from ...database import get_db
from ...models import User
from ...rate_limiter import login_rate_limit, otp_rate_limit, register_rate_limit
from .schemas import (
    GoogleLoginRequest,
    LoginRequest,
    RefreshTokenRequest,
    RegisterBTCRequest,
    RegisterCTVRequest,
    SendOTPRequest,
    VerifyOTPRequest,
)
from .service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def get_auth_service(db: Session = Depends(get_db)) -> AuthService:
    """Dependency injection for AuthService"""
    return AuthService(db)


def set_auth_cookie(response: Response, token: str):
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=token,
        max_age=AUTH_COOKIE_MAX_AGE,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="lax",
    )


# ============================================================================
# REGISTRATION
# ============================================================================


@router.post("/register/ctv", status_code=201)
async def register_ctv(
    data: RegisterCTVRequest,
    service: AuthService = Depends(get_auth_service),
    _: None = Depends(register_rate_limit),
):
    """Register a collaborator account; an OTP is emailed for verification"""
    return await service.register_ctv(data)


@router.post("/register/btc", status_code=201)
async def register_btc(
    data: RegisterBTCRequest,
    service: AuthService = Depends(get_auth_service),
    _: None = Depends(register_rate_limit),
):
    """Register an organizer account; an OTP is emailed for verification"""
    return await service.register_btc(data)


@router.post("/send-otp")
async def send_otp(
    data: SendOTPRequest,
    service: AuthService = Depends(get_auth_service),
    _: None = Depends(otp_rate_limit),
):
    return await service.send_otp(data.email)


@router.post("/verify-otp")
async def verify_otp(
    data: VerifyOTPRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
    _: None = Depends(otp_rate_limit),
):
    result = service.verify_otp(data)
    set_auth_cookie(response, result["token"])
    return result


# ============================================================================
# SESSIONS
# ============================================================================


@router.post("/login")
async def login(
    data: LoginRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
    _: None = Depends(login_rate_limit),
):
    result = service.login(data)
    set_auth_cookie(response, result["token"])
    return result


@router.post("/refresh-token")
async def refresh_token(
    data: RefreshTokenRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
):
    result = service.refresh(data.refreshToken)
    set_auth_cookie(response, result["token"])
    return result


@router.post("/google")
async def google_login(
    data: GoogleLoginRequest,
    response: Response,
    service: AuthService = Depends(get_auth_service),
):
    """Sign in with a Google OAuth access token; unknown emails are registered"""
    result, status_code = await service.google_login(data)
    response.status_code = status_code
    set_auth_cookie(response, result["token"])
    return result


@router.post("/logout")
async def logout(response: Response, current_user: User = Depends(get_current_user)):
    response.delete_cookie(AUTH_COOKIE_NAME, httponly=True, secure=COOKIE_SECURE, samesite="lax")
    logger.info(f"👋 User {current_user.id} logged out")
    return {"success": True, "message": "Logged out successfully"}
