"""Auth service - Registration, OTP verification, login and token issuing"""

import logging
from datetime import datetime, timedelta

import httpx
from fastapi import HTTPException
from jose import JWTError
from sqlalchemy.orm import Session

from ...config import GOOGLE_USERINFO_URL, OTP_EXPIRE_MINUTES
from ...email_service import send_otp_email
from ...models import User
from ...security_utils import (
    create_access_token,
    create_refresh_token,
    decode_refresh_token,
    generate_otp,
    generate_secure_token,
    hash_password_bcrypt,
)
from .repository import AuthRepository
from .schemas import (
    GoogleLoginRequest,
    LoginRequest,
    RegisterBTCRequest,
    RegisterCTVRequest,
    VerifyOTPRequest,
)

logger = logging.getLogger(__name__)

REGISTRATION_MESSAGE = "Registration successful. Please check your email for OTP verification."


class AuthService:
    """Service layer for authentication"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = AuthRepository()

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def issue_tokens(self, user: User) -> dict:
        """Access + refresh token pair and the public user summary"""
        token = create_access_token(user.id)
        refresh_token = create_refresh_token(user.id)
        user.refresh_token = refresh_token
        self.db.commit()
        return {
            "success": True,
            "token": token,
            "refreshToken": refresh_token,
            "user": {
                "id": user.id,
                "email": user.email,
                "role": user.role,
                "status": user.status,
            },
        }

    def refresh(self, refresh_token: str) -> dict:
        if not refresh_token:
            raise HTTPException(status_code=401, detail="Refresh token is required")

        try:
            payload = decode_refresh_token(refresh_token)
            user = self.repo.get_user_by_id(self.db, int(payload.get("id")))
        except (JWTError, TypeError, ValueError) as e:
            raise HTTPException(status_code=401, detail="Invalid refresh token") from e

        if not user:
            raise HTTPException(status_code=401, detail="Invalid refresh token")

        return self.issue_tokens(user)

    # ------------------------------------------------------------------
    # Registration and OTP
    # ------------------------------------------------------------------

    def _assign_otp(self, user: User) -> str:
        otp = generate_otp()
        user.otp_code = otp
        user.otp_expires_at = datetime.utcnow() + timedelta(minutes=OTP_EXPIRE_MINUTES)
        return otp

    def _ensure_email_available(self, email: str):
        if self.repo.get_user_by_email(self.db, email):
            raise HTTPException(status_code=400, detail="Email already registered")

    async def _send_registration_otp(self, user: User, otp: str):
        # The account already exists at this point; the user can ask for a new code
        try:
            await send_otp_email(user.email, otp)
        except Exception as e:
            logger.error(f"❌ Failed to send registration OTP to {user.email}: {e}")

    async def register_ctv(self, data: RegisterCTVRequest) -> dict:
        self._ensure_email_available(data.email)

        user = self.repo.create_user(
            self.db,
            email=data.email,
            password_hash=hash_password_bcrypt(data.password),
            role="CTV",
            phone=data.phone,
            status="PENDING",
        )
        self.repo.create_ctv_profile(
            self.db,
            user.id,
            full_name=data.fullName,
            gender=data.gender or "OTHER",
            address=data.address,
        )
        otp = self._assign_otp(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"✅ CTV registered: {user.email} (id={user.id})")

        await self._send_registration_otp(user, otp)
        return {"success": True, "message": REGISTRATION_MESSAGE, "userId": user.id}

    async def register_btc(self, data: RegisterBTCRequest) -> dict:
        self._ensure_email_available(data.email)

        user = self.repo.create_user(
            self.db,
            email=data.email,
            password_hash=hash_password_bcrypt(data.password),
            role="BTC",
            phone=data.phone,
            status="PENDING",
        )
        self.repo.create_btc_profile(
            self.db,
            user.id,
            agency_name=data.agencyName,
            address=data.address,
            logo=data.logoUrl,
        )
        otp = self._assign_otp(user)
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"✅ BTC registered: {user.email} (id={user.id})")

        await self._send_registration_otp(user, otp)
        return {"success": True, "message": REGISTRATION_MESSAGE, "userId": user.id}

    async def send_otp(self, email: str) -> dict:
        user = self.repo.get_user_by_email(self.db, email)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

        otp = self._assign_otp(user)
        self.db.commit()

        try:
            await send_otp_email(user.email, otp, subject="Your OTP Code")
        except Exception as e:
            logger.error(f"❌ Failed to send OTP to {user.email}: {e}")
            raise HTTPException(status_code=500, detail="Failed to send OTP email") from e

        return {"success": True, "message": "OTP sent successfully"}

    def verify_otp(self, data: VerifyOTPRequest) -> dict:
        user = self.repo.get_user_by_email(self.db, data.email)
        if not user:
            raise HTTPException(status_code=404, detail="User not found")

        if not user.otp_code:
            raise HTTPException(status_code=400, detail="No OTP found. Please request a new one.")

        if not user.otp_expires_at or user.otp_expires_at < datetime.utcnow():
            raise HTTPException(status_code=400, detail="OTP has expired")

        if user.otp_code != data.otp:
            raise HTTPException(status_code=400, detail="Invalid OTP")

        user.is_email_verified = True
        user.status = "ACTIVE"
        user.otp_code = None
        user.otp_expires_at = None
        self.db.commit()
        logger.info(f"✅ Email verified for user {user.id}")

        return self.issue_tokens(user)

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def login(self, data: LoginRequest) -> dict:
        if not data.email or not data.password:
            raise HTTPException(status_code=400, detail="Please provide email and password")

        user = self.repo.get_user_by_email(self.db, data.email)
        if not user:
            raise HTTPException(status_code=401, detail="Invalid credentials")

        if data.role and user.role != data.role:
            raise HTTPException(status_code=401, detail="Invalid credentials for this role")

        if not user.check_password(data.password):
            logger.warning(f"⚠️ Failed login for {data.email}")
            raise HTTPException(status_code=401, detail="Invalid credentials")

        if user.status == "BLOCKED":
            raise HTTPException(status_code=403, detail="Your account has been blocked")

        if user.status == "PENDING":
            raise HTTPException(status_code=403, detail="Please verify your email first")

        logger.info(f"✅ User {user.id} logged in")
        return self.issue_tokens(user)

    async def fetch_google_profile(self, access_token: str) -> dict:
        """Google userinfo for an OAuth access token"""
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(GOOGLE_USERINFO_URL, params={"access_token": access_token})
        if response.status_code != 200:
            raise ValueError(f"Google userinfo returned {response.status_code}")
        return response.json()

    async def google_login(self, data: GoogleLoginRequest) -> tuple[dict, int]:
        """
        Sign in or sign up with a Google access token.

        Returns:
            (token response, HTTP status) - 201 when a new account was created
        """
        if not data.idToken:
            raise HTTPException(status_code=400, detail="Google ID Token is required")

        try:
            info = await self.fetch_google_profile(data.idToken)
        except Exception as e:
            logger.error(f"❌ Google login failed: {e}")
            raise HTTPException(status_code=401, detail="Invalid Google Token") from e

        email = (info.get("email") or "").strip().lower()
        if not email:
            raise HTTPException(status_code=401, detail="Invalid Google Token")

        google_id = info.get("sub")
        user = self.repo.get_user_by_email(self.db, email)

        if user:
            if not user.google_id:
                user.google_id = google_id
                user.is_email_verified = True
                self.db.commit()

            if user.status == "BLOCKED":
                raise HTTPException(status_code=403, detail="Your account has been blocked")

            return self.issue_tokens(user), 200

        if not data.role:
            raise HTTPException(status_code=400, detail="Role is required for new registration")

        user = self.repo.create_user(
            self.db,
            email=email,
            role=data.role,
            google_id=google_id,
            status="ACTIVE",
            is_email_verified=True,
            password_hash=hash_password_bcrypt(generate_secure_token(32)),
        )
        if data.role == "CTV":
            self.repo.create_ctv_profile(
                self.db, user.id, full_name=info.get("name"), avatar=info.get("picture"), gender="OTHER"
            )
        else:
            self.repo.create_btc_profile(
                self.db, user.id, agency_name=info.get("name"), logo=info.get("picture"), verified=False
            )
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"✅ Google sign-up: {email} as {data.role}")

        return self.issue_tokens(user), 201
