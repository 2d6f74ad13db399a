"""Subscription service - Plans, upgrades and activation"""

import logging
import random
import time
from datetime import datetime, timedelta
from typing import Optional

import httpx
from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import (
    FREE_POST_LIMIT,
    PREMIUM_DURATION_DAYS,
    PREMIUM_POST_LIMIT,
    PREMIUM_PRICE,
    PREMIUM_URGENT_LIMIT,
)
from ...models import Payment, User
from ..payments.gateways import GatewayError, get_gateway
from ..payments.repository import PaymentRepository

logger = logging.getLogger(__name__)

# Plan catalogue; the limits are the same values event creation enforces
PLANS = {
    "FREE": {
        "name": "Free",
        "price": 0,
        "duration": 0,
        "features": {
            "postLimit": FREE_POST_LIMIT,
            "urgentLimit": 0,
            "bulkApproval": False,
        },
    },
    "PREMIUM": {
        "name": "Premium",
        "price": PREMIUM_PRICE,
        "duration": PREMIUM_DURATION_DAYS,
        "features": {
            "postLimit": PREMIUM_POST_LIMIT,
            "urgentLimit": PREMIUM_URGENT_LIMIT,
            "bulkApproval": True,
        },
    },
}


def generate_transaction_id() -> str:
    """Numeric id (ms timestamp + 3 random digits) usable as a PayOS orderCode"""
    return f"{int(time.time() * 1000)}{random.randint(0, 999):03d}"


def activate_subscription(user: User, subscription_data: Optional[dict], now: Optional[datetime] = None):
    """Apply a paid plan: set plan and expiry, reset the monthly counters"""
    data = subscription_data or {}
    plan = data.get("plan", "PREMIUM")
    duration = data.get("duration", PLANS.get(plan, PLANS["PREMIUM"])["duration"])
    now = now or datetime.utcnow()

    user.subscription_plan = plan
    user.subscription_expired_at = now + timedelta(days=duration)
    user.subscription_auto_renew = True
    user.reset_monthly_limits()
    logger.info(f"💎 User {user.id} activated {plan} until {user.subscription_expired_at}")


class SubscriptionService:
    """Service for subscription management"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PaymentRepository()

    def get_current(self, user: User) -> dict:
        plan = user.subscription_plan or "FREE"
        return {
            "plan": plan,
            "expiredAt": user.subscription_expired_at,
            "isActive": user.is_premium_active(),
            "postUsed": user.post_used,
            "urgentUsed": user.urgent_used,
            "planDetails": PLANS.get(plan, PLANS["FREE"]),
        }

    async def upgrade(self, user: User, payment_method: str, ip_addr: str) -> dict:
        """Create a PENDING Premium payment and a checkout URL for it"""
        if user.is_premium_active():
            raise HTTPException(status_code=400, detail="You already have an active Premium subscription")

        gateway = get_gateway(payment_method)
        if not gateway.is_available():
            raise HTTPException(status_code=503, detail="Payment service temporarily unavailable")

        plan = PLANS["PREMIUM"]
        payment = self.repo.create_payment(
            self.db,
            user_id=user.id,
            amount=plan["price"],
            method=payment_method,
            status="PENDING",
            transaction_id=generate_transaction_id(),
            description=f"Upgrade to Premium - {plan['duration']} days",
            meta={},
            subscription_data={"plan": "PREMIUM", "duration": plan["duration"]},
        )

        try:
            payment_url = await gateway.create_payment_url(payment, ip_addr)
        except (GatewayError, httpx.HTTPError, ValueError) as e:
            logger.error(f"❌ {payment_method} checkout failed for payment {payment.transaction_id}: {e}")
            payment.status = "FAILED"
            payment.merge_metadata(error=str(e))
            self.db.commit()
            raise HTTPException(status_code=502, detail="Payment gateway error")

        self.db.commit()
        self.db.refresh(payment)
        logger.info(f"💳 {payment_method} checkout created for user {user.id}: {payment.transaction_id}")

        return {
            "paymentId": payment.id,
            "transactionId": payment.transaction_id,
            "amount": payment.amount,
            "paymentUrl": payment_url,
        }

    def cancel(self, user: User) -> dict:
        if (user.subscription_plan or "FREE") == "FREE":
            raise HTTPException(status_code=400, detail="You do not have an active subscription to cancel")

        user.subscription_auto_renew = False
        self.db.commit()
        logger.info(f"🛑 User {user.id} cancelled Premium renewal")
        return {"expiresAt": user.subscription_expired_at}
