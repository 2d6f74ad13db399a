"""
Security Utilities
Password hashing, JWT issuing/verification and OTP generation
"""

import logging
import os
import re
import secrets
from datetime import datetime, timedelta
from typing import Any, Optional

from jose import jwt as jose_jwt

# Password hashing
from passlib.context import CryptContext

from .config import (
    JWT_ALGORITHM,
    JWT_EXPIRE_MINUTES,
    JWT_REFRESH_EXPIRE_DAYS,
    JWT_REFRESH_SECRET,
    JWT_SECRET,
)

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def hash_password_bcrypt(password: str) -> str:
    """Hash password using bcrypt"""
    return pwd_context.hash(password)


def verify_password_bcrypt(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Verify password against bcrypt hash"""
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception as e:
        logger.error(f"Password verification error: {e}")
        return False


# ============================================================================
# TOKEN GENERATION & VALIDATION
# ============================================================================


def generate_secure_token(length: int = 32) -> str:
    """Generate a cryptographically secure random token"""
    return secrets.token_urlsafe(length)


def generate_otp() -> str:
    """Generate a 6-digit numeric one-time code (100000-999999)"""
    return str(secrets.randbelow(900000) + 100000)


def _encode(data: dict[str, Any], secret: str, expires_delta: timedelta) -> str:
    to_encode = data.copy()
    now = datetime.utcnow()
    to_encode.update({"iat": now, "exp": now + expires_delta})
    return jose_jwt.encode(to_encode, secret, algorithm=JWT_ALGORITHM)


def create_access_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed access token carrying the user id"""
    return _encode(
        {"id": user_id}, JWT_SECRET, expires_delta or timedelta(minutes=JWT_EXPIRE_MINUTES)
    )


def create_refresh_token(user_id: int, expires_delta: Optional[timedelta] = None) -> str:
    """Create a refresh token signed with the separate refresh secret"""
    return _encode(
        {"id": user_id},
        JWT_REFRESH_SECRET,
        expires_delta or timedelta(days=JWT_REFRESH_EXPIRE_DAYS),
    )


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify an access token

    Raises:
        jose.JWTError: If the token is invalid or expired
    """
    return jose_jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])


def decode_refresh_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a refresh token

    Raises:
        jose.JWTError: If the token is invalid or expired
    """
    return jose_jwt.decode(token, JWT_REFRESH_SECRET, algorithms=[JWT_ALGORITHM])


# ============================================================================
# INPUT SANITIZATION
# ============================================================================


def sanitize_filename(filename: str) -> str:
    """
    Sanitize filename to prevent directory traversal and other attacks

    Args:
        filename: Original filename

    Returns:
        Safe filename
    """
    # Remove path components
    filename = os.path.basename(filename)

    # Remove or replace dangerous characters
    filename = re.sub(r"[^\w\s\-\.]", "", filename)

    # Remove leading/trailing dots and spaces
    filename = filename.strip(". ")

    if len(filename) > 255:
        name, ext = os.path.splitext(filename)
        filename = name[: 255 - len(ext)] + ext

    if not filename:
        filename = f"file_{generate_secure_token(8)}"

    return filename
