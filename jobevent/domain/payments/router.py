"""Payment router - FastAPI endpoints for payment history and gateway callbacks"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session

from ...auth import get_current_user
from ...database import get_db
from ...models import User
from ...shared.pagination import page_envelope
from ...shared.serializers import payment_to_dict
from .service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["Payments"])


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    """Dependency injection for PaymentService"""
    return PaymentService(db)


async def read_json(request: Request) -> dict:
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


# ============================================================================
# USER ENDPOINTS
# ============================================================================


@router.get("")
async def get_payments(
    status: Optional[str] = Query(None),
    page: int = Query(1),
    limit: int = Query(10),
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    payments, total = service.list_payments(current_user.id, status, page, limit)
    return page_envelope([payment_to_dict(p) for p in payments], total, page, limit)


@router.get("/transaction/{transaction_id}")
async def get_payment_by_transaction(
    transaction_id: str,
    current_user: User = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    payment = service.get_payment(current_user.id, transaction_id)
    return {"success": True, "data": payment_to_dict(payment)}


# ============================================================================
# GATEWAY CALLBACKS (no auth, verified by signature)
# ============================================================================


@router.get("/vnpay/return")
async def vnpay_return(request: Request, service: PaymentService = Depends(get_payment_service)):
    url = await service.vnpay_return(dict(request.query_params))
    return RedirectResponse(url=url, status_code=302)


@router.get("/vnpay/notify")
async def vnpay_notify(request: Request, service: PaymentService = Depends(get_payment_service)):
    return await service.vnpay_ipn(dict(request.query_params))


@router.get("/momo/return")
async def momo_return(request: Request, service: PaymentService = Depends(get_payment_service)):
    url = await service.momo_return(dict(request.query_params))
    return RedirectResponse(url=url, status_code=302)


@router.post("/momo/notify")
async def momo_notify(request: Request, service: PaymentService = Depends(get_payment_service)):
    status_code, body = await service.momo_notify(await read_json(request))
    return JSONResponse(status_code=status_code, content=body)


@router.get("/payos/return")
async def payos_return(
    orderCode: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    cancel: Optional[str] = Query(None),
    service: PaymentService = Depends(get_payment_service),
):
    url = await service.payos_return(orderCode, status, cancel)
    return RedirectResponse(url=url, status_code=302)


@router.post("/payos/notify")
async def payos_notify(request: Request, service: PaymentService = Depends(get_payment_service)):
    status_code, body = await service.payos_notify(await read_json(request))
    return JSONResponse(status_code=status_code, content=body)
