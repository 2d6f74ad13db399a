"""Payment service - Gateway callbacks and subscription activation"""

import logging
from collections.abc import Mapping
from typing import Any, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...config import FRONTEND_URL, MOMO_ACCESS_KEY, MOMO_SECRET_KEY, PAYOS_CHECKSUM_KEY, VNPAY_HASH_SECRET
from ...email_service import send_premium_activated_email
from ...models import Payment
from ...services.notification_service import notify_user
from ...shared.pagination import paginate_query
from ...webhook_security import (
    WebhookSignatureError,
    verify_momo_signature,
    verify_payos_webhook,
    verify_vnpay_signature,
)
from ..subscriptions.service import activate_subscription
from .gateways import frontend_redirect
from .repository import PaymentRepository

logger = logging.getLogger(__name__)

VNPAY_SUCCESS_CODE = "00"
MOMO_SUCCESS_CODE = "0"
PAYOS_SUCCESS_CODE = "00"


def error_redirect(reason: str) -> str:
    return frontend_redirect(FRONTEND_URL, "/payment-error", reason=reason)


def status_redirect(payment: Payment, code: Optional[str] = None) -> str:
    """Frontend page matching a payment's current status"""
    if payment.status == "SUCCESS":
        return frontend_redirect(FRONTEND_URL, "/payment-success", orderId=payment.transaction_id)
    if payment.status == "FAILED":
        return frontend_redirect(FRONTEND_URL, "/payment-failed", code=code)
    return frontend_redirect(FRONTEND_URL, "/payment-pending", orderId=payment.transaction_id)


class PaymentService:
    """Service layer for payments and gateway callbacks"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = PaymentRepository()

    def list_payments(self, user_id: int, status: Optional[str], page: int, limit: int):
        return paginate_query(self.repo.query_for_user(self.db, user_id, status), page, limit)

    def get_payment(self, user_id: int, transaction_id: str) -> Payment:
        payment = self.repo.get_user_payment(self.db, user_id, transaction_id)
        if not payment:
            raise HTTPException(status_code=404, detail="Payment not found")
        return payment

    async def settle(self, payment: Payment, success: bool, **gateway_data: Any) -> bool:
        """
        Move a PENDING payment to SUCCESS or FAILED.

        Activates the subscription on success. Settled payments are left as
        they are, so repeated callbacks change nothing.

        Returns:
            True if this call transitioned the payment
        """
        if payment.status != "PENDING":
            logger.info(f"ℹ️ Payment {payment.transaction_id} already {payment.status}, skipping")
            return False

        payment.status = "SUCCESS" if success else "FAILED"
        payment.merge_metadata(**gateway_data)

        user = self.repo.get_user(self.db, payment.user_id)
        if success and user:
            activate_subscription(user, payment.subscription_data)

        self.db.commit()
        logger.info(f"💳 Payment {payment.transaction_id} ({payment.method}) -> {payment.status}")

        if success and user:
            expires_at = user.subscription_expired_at.strftime("%d/%m/%Y")
            await notify_user(
                self.db,
                user,
                "PAYMENT",
                title="Premium Activated",
                content=f"Your Premium subscription is active until {expires_at}",
                related_id=payment.id,
                related_model="Payment",
                email_func=send_premium_activated_email,
                email_kwargs={"expires_at": expires_at},
            )
        return True

    # ========================================================================
    # VNPAY
    # ========================================================================

    async def vnpay_return(self, params: Mapping[str, str]) -> str:
        """Handle the browser return from VNPay. Returns the redirect URL."""
        try:
            if not verify_vnpay_signature(params, VNPAY_HASH_SECRET):
                return error_redirect("invalid_signature")

            payment = self.repo.get_by_transaction(self.db, params.get("vnp_TxnRef", ""))
            if not payment:
                return error_redirect("not_found")

            code = params.get("vnp_ResponseCode")
            await self.settle(
                payment,
                code == VNPAY_SUCCESS_CODE,
                vnpResponseCode=code,
                vnpTransactionNo=params.get("vnp_TransactionNo"),
                vnpBankCode=params.get("vnp_BankCode"),
                vnpCardType=params.get("vnp_CardType"),
            )
            return status_redirect(payment, code)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ VNPay return error: {e}")
            return error_redirect("server_error")

    async def vnpay_ipn(self, params: Mapping[str, str]) -> dict:
        """VNPay server-to-server notification. Returns {RspCode, Message}."""
        try:
            if not verify_vnpay_signature(params, VNPAY_HASH_SECRET):
                return {"RspCode": "97", "Message": "Checksum failed"}

            payment = self.repo.get_by_transaction(self.db, params.get("vnp_TxnRef", ""))
            if not payment:
                return {"RspCode": "01", "Message": "Order not found"}

            if int(params.get("vnp_Amount", 0)) // 100 != payment.amount:
                return {"RspCode": "04", "Message": "Amount invalid"}

            if payment.status != "PENDING":
                return {"RspCode": "02", "Message": "Order already confirmed"}

            code = params.get("vnp_ResponseCode")
            await self.settle(
                payment,
                code == VNPAY_SUCCESS_CODE,
                vnpResponseCode=code,
                vnpTransactionNo=params.get("vnp_TransactionNo"),
                vnpBankCode=params.get("vnp_BankCode"),
                vnpCardType=params.get("vnp_CardType"),
            )
            return {"RspCode": "00", "Message": "Confirm Success"}
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ VNPay IPN error: {e}")
            return {"RspCode": "99", "Message": "Unknown error"}

    # ========================================================================
    # MOMO
    # ========================================================================

    async def _apply_momo_result(self, payment: Payment, payload: Mapping[str, Any]) -> str:
        result_code = str(payload.get("resultCode"))
        await self.settle(
            payment,
            result_code == MOMO_SUCCESS_CODE,
            momoResultCode=result_code,
            momoTransId=payload.get("transId"),
            momoPayType=payload.get("payType"),
            momoResponseTime=payload.get("responseTime"),
        )
        return result_code

    async def momo_return(self, params: Mapping[str, str]) -> str:
        """Handle the browser return from MoMo. Returns the redirect URL."""
        try:
            if not verify_momo_signature(params, MOMO_ACCESS_KEY, MOMO_SECRET_KEY):
                return error_redirect("invalid_signature")

            payment = self.repo.get_by_transaction(self.db, params.get("orderId", ""))
            if not payment:
                return error_redirect("not_found")

            result_code = await self._apply_momo_result(payment, params)
            return status_redirect(payment, result_code)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ MoMo return error: {e}")
            return error_redirect("server_error")

    async def momo_notify(self, payload: Mapping[str, Any]) -> tuple[int, dict]:
        """MoMo IPN. Returns (status_code, body)."""
        if not verify_momo_signature(payload, MOMO_ACCESS_KEY, MOMO_SECRET_KEY):
            return 400, {"success": False, "message": "Invalid signature"}

        payment = self.repo.get_by_transaction(self.db, str(payload.get("orderId", "")))
        if not payment:
            return 404, {"success": False, "message": "Payment not found"}

        await self._apply_momo_result(payment, payload)
        return 200, {"success": True}

    # ========================================================================
    # PAYOS
    # ========================================================================

    async def payos_return(self, order_code: Optional[str], status: Optional[str], cancel: Optional[str]) -> str:
        """Handle the browser return from PayOS. Returns the redirect URL."""
        try:
            payment = self.repo.get_by_transaction(self.db, str(order_code or ""))
            if not payment:
                return error_redirect("not_found")

            if (cancel or "").lower() == "true" or status == "CANCELLED":
                await self.settle(payment, False, payosStatus=status or "CANCELLED")
                return status_redirect(payment, status or "CANCELLED")

            if status == "PAID":
                await self.settle(payment, True, payosStatus=status)
                return status_redirect(payment)

            return frontend_redirect(FRONTEND_URL, "/payment-pending", orderId=payment.transaction_id)
        except Exception as e:
            self.db.rollback()
            logger.error(f"❌ PayOS return error: {e}")
            return error_redirect("server_error")

    async def payos_notify(self, body: Mapping[str, Any]) -> tuple[int, dict]:
        """PayOS webhook. Returns (status_code, body)."""
        try:
            data = verify_payos_webhook(body, PAYOS_CHECKSUM_KEY)
        except WebhookSignatureError as e:
            return 400, {"success": False, "message": str(e)}

        payment = self.repo.get_by_transaction(self.db, str(data.get("orderCode", "")))
        if not payment:
            return 404, {"success": False, "message": "Payment not found"}

        if payment.status != "PENDING":
            return 200, {"success": True, "message": "Payment already processed"}

        code = data.get("code")
        await self.settle(
            payment,
            code == PAYOS_SUCCESS_CODE,
            payosCode=code,
            payosReference=data.get("reference"),
            payosTransactionDateTime=data.get("transactionDateTime"),
        )
        return 200, {"success": True}
