"""Subscription router - FastAPI endpoints for plans and upgrades"""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from ...auth import get_current_user, require_btc
from ...database import get_db
from ...models import User
from ...rate_limiter import client_ip
from .schemas import UpgradeRequest
from .service import PLANS, SubscriptionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/subscriptions", tags=["Subscriptions"])


def get_subscription_service(db: Session = Depends(get_db)) -> SubscriptionService:
    """Dependency injection for SubscriptionService"""
    return SubscriptionService(db)


@router.get("/plans")
async def get_plans():
    return {"success": True, "data": PLANS}


@router.get("/current")
async def get_current_subscription(
    current_user: User = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    return {"success": True, "data": service.get_current(current_user)}


@router.post("/upgrade")
async def upgrade_subscription(
    data: UpgradeRequest,
    request: Request,
    current_user: User = Depends(require_btc),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Start a Premium checkout with the chosen gateway"""
    result = await service.upgrade(current_user, data.paymentMethod, client_ip(request))
    return {"success": True, "data": result}


@router.post("/cancel")
async def cancel_subscription(
    current_user: User = Depends(get_current_user),
    service: SubscriptionService = Depends(get_subscription_service),
):
    result = service.cancel(current_user)
    return {
        "success": True,
        "message": "Subscription will not renew and stays active until it expires",
        "data": result,
    }
