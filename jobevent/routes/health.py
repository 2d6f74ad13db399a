import logging
import time
from datetime import datetime

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from ..config import RESEND_API_KEY
from ..database import get_db
from ..rate_limiter import get_redis_client, redis_configured

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["Health"])

SERVICE_NAME = "job-event-platform"


def check_database(db: Session) -> dict:
    try:
        start_time = time.time()
        db.execute(text("SELECT 1"))
        return {"status": "ok", "response_time_ms": round((time.time() - start_time) * 1000, 2)}
    except Exception as e:
        logger.error(f"❌ Database health check failed: {e}")
        return {"status": "error", "error": str(e)}


def check_redis() -> dict:
    """Redis is optional: unconfigured counts as ok (in-memory rate limiting)"""
    if not redis_configured():
        return {"status": "ok", "mode": "memory"}
    try:
        start_time = time.time()
        get_redis_client().ping()
        return {"status": "ok", "response_time_ms": round((time.time() - start_time) * 1000, 2)}
    except Exception as e:
        logger.warning(f"⚠️ Redis health check failed: {e}")
        return {"status": "error", "error": str(e)}


@router.get("")
@router.get("/")
def health():
    return {"status": "ok", "service": SERVICE_NAME, "timestamp": datetime.utcnow().isoformat()}


@router.get("/details")
def health_details(db: Session = Depends(get_db)):
    """Dependency status for monitoring; 503 when any required service is down"""
    services = {
        "api": {"status": "ok"},
        "database": check_database(db),
        "redis": check_redis(),
        "email": {"status": "ok" if RESEND_API_KEY else "not_configured"},
    }
    degraded = any(service["status"] == "error" for service in services.values())
    body = {
        "status": "degraded" if degraded else "ok",
        "services": services,
        "timestamp": datetime.utcnow().isoformat(),
    }
    return JSONResponse(status_code=503 if degraded else 200, content=body)
