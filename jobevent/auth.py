import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from sqlalchemy.orm import Session

from .config import AUTH_COOKIE_NAME
from .database import get_db
from .models import User
from .security_utils import decode_access_token

logger = logging.getLogger(__name__)

# auto_error=False so the cookie can be used when no Authorization header is sent
security = HTTPBearer(auto_error=False)


def extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    """Bearer header first, then the auth cookie"""
    if credentials and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(AUTH_COOKIE_NAME)


def _load_user(token: str, db: Session) -> Optional[User]:
    payload = decode_access_token(token)
    user_id = payload.get("id")
    if user_id is None:
        return None
    return db.query(User).filter(User.id == int(user_id)).first()


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the authenticated user from a bearer token or the auth cookie"""
    token = extract_token(request, credentials)
    if not token:
        raise HTTPException(status_code=401, detail="Not authorized to access this route")

    try:
        user = _load_user(token, db)
    except (JWTError, ValueError) as e:
        logger.warning(f"⚠️ Token rejected for {request.url.path}: {e}")
        raise HTTPException(status_code=401, detail="Token is invalid or expired") from e

    if not user:
        raise HTTPException(status_code=401, detail="User not found")

    if user.status == "BLOCKED":
        logger.warning(f"🚫 Blocked user {user.id} attempted access to {request.url.path}")
        raise HTTPException(status_code=403, detail="Account has been blocked")

    return user


async def get_optional_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Like get_current_user but never fails; anonymous callers get None"""
    token = extract_token(request, credentials)
    if not token:
        return None
    try:
        return _load_user(token, db)
    except (JWTError, ValueError):
        return None


async def require_ctv(user: User = Depends(get_current_user)) -> User:
    if user.role != "CTV":
        raise HTTPException(status_code=403, detail="This route is only accessible to CTV users")
    return user


async def require_btc(user: User = Depends(get_current_user)) -> User:
    if user.role != "BTC":
        raise HTTPException(status_code=403, detail="This route is only accessible to BTC users")
    return user


async def require_premium_btc(user: User = Depends(require_btc)) -> User:
    """BTC with an active Premium subscription"""
    if not user.is_premium_active():
        logger.warning(f"⚠️ User {user.id} attempted a premium feature without a plan")
        raise HTTPException(
            status_code=403,
            detail="This feature requires an active Premium subscription",
        )
    return user
