"""Payment gateway clients - Checkout creation for VNPay, MoMo and PayOS"""

import json
import logging
from datetime import datetime, timedelta
from typing import Optional
from urllib.parse import urlencode

import httpx

from ...config import (
    MOMO_ACCESS_KEY,
    MOMO_ENDPOINT,
    MOMO_NOTIFY_URL,
    MOMO_PARTNER_CODE,
    MOMO_RETURN_URL,
    MOMO_SECRET_KEY,
    PAYOS_API_KEY,
    PAYOS_API_URL,
    PAYOS_CANCEL_URL,
    PAYOS_CHECKSUM_KEY,
    PAYOS_CLIENT_ID,
    PAYOS_RETURN_URL,
    VNPAY_HASH_SECRET,
    VNPAY_RETURN_URL,
    VNPAY_TMN_CODE,
    VNPAY_URL,
)
from ...models import Payment
from ...webhook_security import sign_momo_create, sign_payos_payment_request, sign_vnpay, vnpay_sign_data

logger = logging.getLogger(__name__)

DEFAULT_ORDER_INFO = "Payment for subscription"
# VNPay timestamps are Vietnam local time (GMT+7)
VNPAY_UTC_OFFSET = timedelta(hours=7)
VNPAY_EXPIRE_MINUTES = 10
GATEWAY_TIMEOUT = 15.0


class GatewayError(Exception):
    """Raised when a gateway refuses or fails to create a checkout"""

    pass


def vnpay_timestamp(moment: datetime) -> str:
    """yyyyMMddHHmmss in Vietnam local time from a naive UTC datetime"""
    return (moment + VNPAY_UTC_OFFSET).strftime("%Y%m%d%H%M%S")


class VNPayGateway:
    """VNPay hosted checkout: a signed redirect URL, no server call"""

    def is_available(self) -> bool:
        return bool(VNPAY_TMN_CODE and VNPAY_HASH_SECRET)

    def build_params(self, payment: Payment, ip_addr: str, now: Optional[datetime] = None) -> dict:
        now = now or datetime.utcnow()
        return {
            "vnp_Version": "2.1.0",
            "vnp_Command": "pay",
            "vnp_TmnCode": VNPAY_TMN_CODE,
            "vnp_Locale": "vn",
            "vnp_CurrCode": "VND",
            "vnp_TxnRef": payment.transaction_id,
            "vnp_OrderInfo": payment.description or f"Thanh toan cho ma GD:{payment.transaction_id}",
            "vnp_OrderType": "other",
            "vnp_Amount": payment.amount * 100,
            "vnp_ReturnUrl": VNPAY_RETURN_URL,
            "vnp_IpAddr": ip_addr,
            "vnp_CreateDate": vnpay_timestamp(now),
            "vnp_ExpireDate": vnpay_timestamp(now + timedelta(minutes=VNPAY_EXPIRE_MINUTES)),
        }

    async def create_payment_url(self, payment: Payment, ip_addr: str = "127.0.0.1") -> str:
        params = self.build_params(payment, ip_addr)
        secure_hash = sign_vnpay(params, VNPAY_HASH_SECRET)
        # The signed string is already the encoded query
        return f"{VNPAY_URL}?{vnpay_sign_data(params)}&vnp_SecureHash={secure_hash}"


class MoMoGateway:
    """MoMo wallet checkout via the v2 create API"""

    def is_available(self) -> bool:
        return bool(MOMO_PARTNER_CODE and MOMO_ACCESS_KEY and MOMO_SECRET_KEY)

    def build_request(self, payment: Payment) -> dict:
        values = {
            "accessKey": MOMO_ACCESS_KEY,
            "amount": str(payment.amount),
            "extraData": json.dumps(
                {"paymentId": str(payment.id), "userId": str(payment.user_id)}, separators=(",", ":")
            ),
            "ipnUrl": MOMO_NOTIFY_URL,
            "orderId": payment.transaction_id,
            "orderInfo": payment.description or DEFAULT_ORDER_INFO,
            "partnerCode": MOMO_PARTNER_CODE,
            "redirectUrl": MOMO_RETURN_URL,
            "requestId": payment.transaction_id,
            "requestType": "payWithMethod",
        }
        signature = sign_momo_create(values, MOMO_SECRET_KEY)

        body = {key: value for key, value in values.items() if key != "accessKey"}
        body.update(
            {
                "partnerName": "Job Event Platform",
                "storeId": "JobEventStore",
                "lang": "vi",
                "autoCapture": True,
                "orderGroupId": "",
                "signature": signature,
            }
        )
        return body

    async def create_payment_url(self, payment: Payment, ip_addr: str = "127.0.0.1") -> str:
        body = self.build_request(payment)
        async with httpx.AsyncClient(timeout=GATEWAY_TIMEOUT) as client:
            response = await client.post(MOMO_ENDPOINT, json=body)

        data = response.json()
        pay_url = data.get("payUrl")
        if not pay_url:
            logger.error(f"❌ MoMo create failed for {payment.transaction_id}: {data}")
            raise GatewayError(data.get("message") or "MoMo did not return a payment URL")
        return pay_url


class PayOSGateway:
    """PayOS payment-request API with a checksum-signed body"""

    def is_available(self) -> bool:
        return bool(PAYOS_CLIENT_ID and PAYOS_API_KEY and PAYOS_CHECKSUM_KEY)

    def build_request(self, payment: Payment) -> dict:
        body = {
            "orderCode": int(payment.transaction_id),
            "amount": payment.amount,
            "description": (payment.description or DEFAULT_ORDER_INFO)[:25],
            "returnUrl": PAYOS_RETURN_URL,
            "cancelUrl": PAYOS_CANCEL_URL,
        }
        body["signature"] = sign_payos_payment_request(body, PAYOS_CHECKSUM_KEY)
        return body

    async def create_payment_url(self, payment: Payment, ip_addr: str = "127.0.0.1") -> str:
        body = self.build_request(payment)
        headers = {"x-client-id": PAYOS_CLIENT_ID, "x-api-key": PAYOS_API_KEY}
        async with httpx.AsyncClient(timeout=GATEWAY_TIMEOUT) as client:
            response = await client.post(PAYOS_API_URL, json=body, headers=headers)

        data = response.json()
        checkout_url = (data.get("data") or {}).get("checkoutUrl")
        if data.get("code") != "00" or not checkout_url:
            logger.error(f"❌ PayOS create failed for {payment.transaction_id}: {data.get('desc')}")
            raise GatewayError(data.get("desc") or "PayOS did not return a checkout URL")
        payment.merge_metadata(payosOrderCode=body["orderCode"])
        return checkout_url


GATEWAYS = {
    "VNPAY": VNPayGateway(),
    "MOMO": MoMoGateway(),
    "PAYOS": PayOSGateway(),
}


def get_gateway(method: str):
    return GATEWAYS[method]


def frontend_redirect(base_url: str, path: str, **params) -> str:
    query = urlencode({k: v for k, v in params.items() if v is not None})
    return f"{base_url}{path}?{query}" if query else f"{base_url}{path}"
