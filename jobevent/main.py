import logging
import re
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from jose import ExpiredSignatureError, JWTError
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import models  # noqa: F401
from .config import ALLOWED_ORIGINS
from .database import Base, engine
from .domain.applications.router import router as applications_router
from .domain.auth.router import router as auth_router
from .domain.events.router import router as events_router
from .domain.notifications.router import router as notifications_router
from .domain.payments.router import router as payments_router
from .domain.reviews.router import router as reviews_router
from .domain.subscriptions.router import router as subscriptions_router
from .domain.users.router import router as users_router
from .routes.health import router as health_router
from .routes.upload import router as files_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Reduce verbosity of third-party libraries
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

API_PREFIX = "/api"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    try:
        Base.metadata.create_all(bind=engine, checkfirst=True)
        logger.info("Database tables created successfully")
    except Exception as e:
        # Ignore "already exists" errors from race conditions between workers
        error_msg = str(e)
        if "already exists" in error_msg or "duplicate key" in error_msg:
            logger.info("Database tables already exist (created by another worker)")
        else:
            logger.error(f"Failed to create database tables: {e}")

    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Job Event Platform API", version="1.0.0", lifespan=lifespan)


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def duplicate_field(exc: IntegrityError) -> Optional[str]:
    """Column name from a unique-constraint error (SQLite or PostgreSQL wording), None for other constraints"""
    message = str(exc.orig)
    if "UNIQUE constraint failed" not in message and "duplicate key" not in message:
        return None
    match = re.search(r"UNIQUE constraint failed: \w+\.(\w+)", message) or re.search(
        r"Key \((\w+)\)=", message
    )
    return match.group(1) if match else "Field"


# ============================================================================
# ERROR HANDLERS
# ============================================================================


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        field = error.get("loc", [])[-1] if error.get("loc") else None
        message = error.get("msg", "Invalid value")
        messages.append(f"{field}: {message}" if field is not None else message)

    logger.warning(f"Validation error for {request.url.path}: {messages}")
    return error_response(400, ", ".join(messages))


@app.exception_handler(IntegrityError)
async def integrity_exception_handler(request: Request, exc: IntegrityError):
    field = duplicate_field(exc)
    if field is None:
        logger.warning(f"⚠️ Constraint violation on {request.url.path}: {exc.orig}")
        return error_response(400, "Invalid data: a required value is missing or invalid")
    logger.warning(f"Duplicate value on {request.url.path}: {field}")
    return error_response(400, f"{field} already exists")


@app.exception_handler(JWTError)
async def jwt_exception_handler(request: Request, exc: JWTError):
    if isinstance(exc, ExpiredSignatureError):
        return error_response(401, "Token expired")
    return error_response(401, "Invalid token")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"{request.method} {request.url.path} - Error: {str(exc)}")
    return error_response(500, "Server Error")


# CORS Configuration
# For production with credentials (cookies), we need specific origins
logger.info(f"CORS allowed origins: {ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Routes
app.include_router(health_router, prefix=API_PREFIX)
app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(users_router, prefix=API_PREFIX)
app.include_router(events_router, prefix=API_PREFIX)
app.include_router(applications_router, prefix=API_PREFIX)
app.include_router(reviews_router, prefix=API_PREFIX)
app.include_router(notifications_router, prefix=API_PREFIX)
app.include_router(subscriptions_router, prefix=API_PREFIX)
app.include_router(payments_router, prefix=API_PREFIX)
app.include_router(files_router, prefix=API_PREFIX)


@app.get("/")
def root():
    return {"message": "Job Event Platform API is running"}
