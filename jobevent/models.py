from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base
from .security_utils import verify_password_bcrypt

# Enumerations (stored as plain strings)
USER_ROLES = ("CTV", "BTC", "ADMIN")
USER_STATUSES = ("ACTIVE", "BLOCKED", "PENDING")
SUBSCRIPTION_PLANS = ("FREE", "PREMIUM")
GENDERS = ("MALE", "FEMALE", "OTHER")
EVENT_TYPES = ("Concert", "Workshop", "Festival", "Conference", "Sports", "Exhibition", "Other")
EVENT_STATUSES = ("PREPARING", "RECRUITING", "COMPLETED", "CANCELLED")
APPLICATION_STATUSES = ("PENDING", "APPROVED", "REJECTED", "COMPLETED", "CANCELLED", "NO_SHOW")
REVIEW_TYPES = ("BTC_TO_CTV", "CTV_TO_BTC")
NOTIFICATION_TYPES = (
    "APPLICATION",
    "APPROVAL",
    "REJECTION",
    "REMINDER",
    "REVIEW",
    "PAYMENT",
    "SYSTEM",
    "COMPLETION",
    "VIOLATION",
)
RELATED_MODELS = ("Event", "Application", "Payment", "Review")
PAYMENT_METHODS = ("MOMO", "VNPAY", "PAYOS")
PAYMENT_STATUSES = ("PENDING", "SUCCESS", "FAILED", "REFUNDED")

MAX_RATING = 5
MAX_TRUST_SCORE = 10


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=True)
    role = Column(String(10), nullable=False, index=True)  # CTV, BTC, ADMIN
    phone = Column(String(30), nullable=True)
    is_phone_verified = Column(Boolean, default=False, nullable=False)
    is_email_verified = Column(Boolean, default=False, nullable=False)
    status = Column(String(10), default="PENDING", nullable=False, index=True)
    google_id = Column(String(255), nullable=True)
    # Email verification OTP
    otp_code = Column(String(6), nullable=True)
    otp_expires_at = Column(DateTime, nullable=True)
    refresh_token = Column(Text, nullable=True)
    # Subscription
    subscription_plan = Column(String(10), default="FREE", nullable=False)
    subscription_expired_at = Column(DateTime, nullable=True)
    subscription_auto_renew = Column(Boolean, default=True, nullable=False)
    urgent_used = Column(Integer, default=0, nullable=False)
    post_used = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    ctv_profile = relationship("CTVProfile", back_populates="user", uselist=False)
    btc_profile = relationship("BTCProfile", back_populates="user", uselist=False)

    def is_premium_active(self) -> bool:
        """Premium counts only while the plan is PREMIUM and not yet expired"""
        if self.subscription_plan != "PREMIUM":
            return False
        if not self.subscription_expired_at:
            return False
        return datetime.utcnow() < self.subscription_expired_at

    def reset_monthly_limits(self):
        self.urgent_used = 0
        self.post_used = 0

    def check_password(self, password: str) -> bool:
        return verify_password_bcrypt(password, self.password_hash)


class CTVProfile(Base):
    __tablename__ = "ctv_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    avatar = Column(String(500), nullable=True)
    gender = Column(String(10), default="OTHER", nullable=False)
    address = Column(String(500), nullable=True)
    date_of_birth = Column(DateTime, nullable=True)
    skills = Column(JSON, default=list, nullable=False)
    experiences = Column(JSON, default=list, nullable=False)  # [{title, description, ...}]
    joined_events = Column(JSON, default=list, nullable=False)  # [{eventId, role, joinedAt}]
    reputation_score = Column(Float, default=10, nullable=False)
    reputation_total_reviews = Column(Integer, default=0, nullable=False)
    trust_score = Column(Float, default=10, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="ctv_profile")

    def update_reputation(self, rating_value: float):
        """Fold a new review score into the running reputation average"""
        total = self.reputation_total_reviews or 0
        new_score = ((self.reputation_score or 0) * total + rating_value) / (total + 1)
        self.reputation_score = _clamp(new_score, 0, MAX_RATING)
        self.reputation_total_reviews = total + 1

    def update_trust_score(self, delta: float):
        self.trust_score = _clamp((self.trust_score or 0) + delta, 0, MAX_TRUST_SCORE)

    def add_joined_event(self, event_id: int, role, joined_at: datetime = None) -> bool:
        """Append a joined-event entry unless one already exists for the event"""
        entries = list(self.joined_events or [])
        if any(entry.get("eventId") == event_id for entry in entries):
            return False
        entries.append(
            {
                "eventId": event_id,
                "role": role,
                "joinedAt": (joined_at or datetime.utcnow()).isoformat(),
            }
        )
        # Reassign so SQLAlchemy sees the JSON change
        self.joined_events = entries
        return True


class BTCProfile(Base):
    __tablename__ = "btc_profiles"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    agency_name = Column(String(255), nullable=True)
    logo = Column(String(500), nullable=True)
    address = Column(String(500), nullable=True)
    website = Column(String(500), nullable=True)
    fanpage = Column(String(500), nullable=True)
    description = Column(Text, nullable=True)
    verified = Column(Boolean, default=False, nullable=False)
    successful_events = Column(JSON, default=list, nullable=False)  # [event_id]
    rating_average = Column(Float, default=0, nullable=False)
    rating_total_reviews = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="btc_profile")

    def update_rating(self, new_rating: float):
        total = self.rating_total_reviews or 0
        new_average = ((self.rating_average or 0) * total + new_rating) / (total + 1)
        self.rating_average = _clamp(new_average, 0, MAX_RATING)
        self.rating_total_reviews = total + 1


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    btc_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    location = Column(String(500), nullable=False)
    event_type = Column(String(20), nullable=False)
    salary = Column(String(255), nullable=False)  # Free text, e.g. "500.000 VNĐ/ngày"
    benefits = Column(Text, nullable=True)
    start_time = Column(DateTime, nullable=False, index=True)
    end_time = Column(DateTime, nullable=False, index=True)
    deadline = Column(DateTime, nullable=False)
    quantity = Column(Integer, default=0, nullable=False)
    job_details_items = Column(JSON, default=list, nullable=False)
    applied_count = Column(Integer, default=0, nullable=False)
    approved_count = Column(Integer, default=0, nullable=False)
    poster = Column(String(500), nullable=True)
    urgent = Column(Boolean, default=False, nullable=False)
    status = Column(String(20), default="RECRUITING", nullable=False, index=True)
    views = Column(Integer, default=0, nullable=False)
    requirements = Column(JSON, default=list, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    btc = relationship("User")
    applications = relationship("Application", back_populates="event")

    def total_quantity(self) -> int:
        """Sum of job-detail quantities when present, otherwise the flat quantity"""
        items = self.job_details_items or []
        if items:
            return sum(int(item.get("quantity") or 0) for item in items)
        return self.quantity or 0

    def can_apply(self) -> bool:
        return (
            self.status == "RECRUITING"
            and datetime.utcnow() < self.deadline
            and (self.approved_count or 0) < self.total_quantity()
        )

    def increment_views(self):
        self.views = (self.views or 0) + 1


class Application(Base):
    __tablename__ = "applications"
    __table_args__ = (UniqueConstraint("event_id", "ctv_id", name="uq_application_event_ctv"),)

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    ctv_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    cover_letter = Column(String(1000), nullable=True)
    status = Column(String(20), default="PENDING", nullable=False, index=True)
    assigned_role = Column(String(255), nullable=True)
    rejection_reason = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    event = relationship("Event", back_populates="applications")
    ctv = relationship("User")


class Review(Base):
    __tablename__ = "reviews"
    __table_args__ = (
        UniqueConstraint(
            "event_id", "from_user_id", "to_user_id", "review_type", name="uq_review_event_from_to"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    from_user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    to_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    review_type = Column(String(20), nullable=False)
    rating = Column(Integer, nullable=True)  # CTV_TO_BTC
    skill = Column(Integer, nullable=True)  # BTC_TO_CTV
    attitude = Column(Integer, nullable=True)  # BTC_TO_CTV
    comment = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    event = relationship("Event")
    from_user = relationship("User", foreign_keys=[from_user_id])
    to_user = relationship("User", foreign_keys=[to_user_id])

    def score(self) -> float:
        """Single comparable score: the rating, or the skill/attitude average"""
        if self.review_type == "CTV_TO_BTC":
            return float(self.rating or 0)
        return ((self.skill or 0) + (self.attitude or 0)) / 2


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(String(20), nullable=False)
    title = Column(String(255), nullable=False)
    content = Column(Text, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False, index=True)
    related_id = Column(Integer, nullable=True)
    related_model = Column(String(20), nullable=True)
    meta = Column("metadata", JSON, default=dict, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    amount = Column(Integer, nullable=False)  # VND, no minor units
    method = Column(String(10), nullable=False)
    status = Column(String(10), default="PENDING", nullable=False, index=True)
    transaction_id = Column(String(64), unique=True, index=True, nullable=False)
    description = Column(String(255), nullable=True)
    meta = Column("metadata", JSON, default=dict, nullable=True)
    subscription_data = Column(JSON, nullable=True)  # {"plan": "PREMIUM", "duration": 30}
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User")

    def merge_metadata(self, **values):
        merged = dict(self.meta or {})
        merged.update(values)
        self.meta = merged
