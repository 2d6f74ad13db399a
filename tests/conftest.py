"""
conftest.py - Shared Test Fixtures for the Job Event Platform

Provides an in-memory SQLite database, a FastAPI TestClient wired to it,
bearer-token helpers and factory fixtures for the core models
(User + profiles, Event, Application, Payment).

- Every test runs against a fresh in-memory DB
- Authentication uses real JWTs, so the auth dependencies are exercised
- Rate limiters are overridden so auth tests never hit 429
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"  # Must be set before importing jobevent modules
os.environ.setdefault("JWT_SECRET", "test-access-secret")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret")
for _key in ("REDIS_URL", "REDIS_HOST", "RESEND_API_KEY"):
    os.environ.pop(_key, None)

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from jobevent.database import Base
from jobevent.models import Application, BTCProfile, CTVProfile, Event, Payment, User
from jobevent.security_utils import create_access_token

# ── In-memory SQLite engine ──────────────────────────────────────────

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


# ── Fixtures ─────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def db_session():
    """Create all tables, yield a session, then tear down."""
    Base.metadata.create_all(bind=engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db_session: Session) -> TestClient:
    """TestClient sharing the test session; rate limits disabled."""
    from jobevent.database import get_db
    from jobevent.main import app
    from jobevent.rate_limiter import login_rate_limit, otp_rate_limit, register_rate_limit

    def _override_db():
        yield db_session

    async def _no_limit():
        return None

    app.dependency_overrides[get_db] = _override_db
    app.dependency_overrides[login_rate_limit] = _no_limit
    app.dependency_overrides[register_rate_limit] = _no_limit
    app.dependency_overrides[otp_rate_limit] = _no_limit

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers():
    """Build an Authorization header carrying a fresh access token for a user."""

    def _headers(user: User) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers


# ── Factories ────────────────────────────────────────────────────────


@pytest.fixture()
def make_ctv(db_session: Session):
    """Factory: an ACTIVE collaborator with a CTV profile."""
    counter = {"n": 0}

    def _make(**overrides) -> User:
        counter["n"] += 1
        user = User(
            email=overrides.pop("email", f"ctv{counter['n']}@example.com"),
            role="CTV",
            status=overrides.pop("status", "ACTIVE"),
            is_email_verified=True,
            **overrides,
        )
        db_session.add(user)
        db_session.flush()
        db_session.add(
            CTVProfile(
                user_id=user.id,
                full_name=f"Collaborator {counter['n']}",
                gender="OTHER",
                skills=[],
                experiences=[],
                joined_events=[],
            )
        )
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture()
def make_btc(db_session: Session):
    """Factory: an ACTIVE organizer with a BTC profile; premium=True adds a plan."""
    counter = {"n": 0}

    def _make(premium: bool = False, **overrides) -> User:
        counter["n"] += 1
        if premium:
            overrides.setdefault("subscription_plan", "PREMIUM")
            overrides.setdefault("subscription_expired_at", datetime.utcnow() + timedelta(days=30))
        user = User(
            email=overrides.pop("email", f"btc{counter['n']}@example.com"),
            role="BTC",
            status=overrides.pop("status", "ACTIVE"),
            is_email_verified=True,
            **overrides,
        )
        db_session.add(user)
        db_session.flush()
        db_session.add(
            BTCProfile(
                user_id=user.id,
                agency_name=f"Agency {counter['n']}",
                successful_events=[],
            )
        )
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture()
def ctv_user(make_ctv) -> User:
    return make_ctv()


@pytest.fixture()
def btc_user(make_btc) -> User:
    return make_btc()


@pytest.fixture()
def premium_btc(make_btc) -> User:
    return make_btc(premium=True)


@pytest.fixture()
def make_event(db_session: Session):
    """Factory: a RECRUITING event two weeks out, deadline in one week."""

    def _make(btc: User, **overrides) -> Event:
        start = overrides.pop("start_time", datetime.utcnow() + timedelta(days=14))
        values = {
            "title": "Summer Music Festival",
            "description": "Staff needed for a three-day festival",
            "location": "Ho Chi Minh City",
            "event_type": "Festival",
            "salary": "500.000 VNĐ/ngày",
            "start_time": start,
            "end_time": start + timedelta(hours=8),
            "deadline": start - timedelta(days=7),
            "quantity": 5,
            "job_details_items": [],
            "requirements": [],
            "status": "RECRUITING",
        }
        values.update(overrides)
        event = Event(btc_id=btc.id, **values)
        db_session.add(event)
        db_session.commit()
        db_session.refresh(event)
        return event

    return _make


@pytest.fixture()
def make_application(db_session: Session):
    """Factory: an application of ctv to event (PENDING unless given)."""

    def _make(event: Event, ctv: User, **overrides) -> Application:
        application = Application(
            event_id=event.id,
            ctv_id=ctv.id,
            status=overrides.pop("status", "PENDING"),
            **overrides,
        )
        db_session.add(application)
        db_session.commit()
        db_session.refresh(application)
        return application

    return _make


@pytest.fixture()
def make_payment(db_session: Session):
    """Factory: a PENDING Premium payment."""
    counter = {"n": 0}

    def _make(user: User, **overrides) -> Payment:
        counter["n"] += 1
        values = {
            "amount": 499000,
            "method": "VNPAY",
            "status": "PENDING",
            "transaction_id": f"1700000000{counter['n']:06d}",
            "description": "Upgrade to Premium - 30 days",
            "meta": {},
            "subscription_data": {"plan": "PREMIUM", "duration": 30},
        }
        values.update(overrides)
        payment = Payment(user_id=user.id, **values)
        db_session.add(payment)
        db_session.commit()
        db_session.refresh(payment)
        return payment

    return _make
