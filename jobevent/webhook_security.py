"""
Payment Gateway Signature Module

Centralized signing/verification for the VNPay, MoMo and PayOS callbacks:
- Constant-time signature comparison
- Provider-specific canonical strings for HMAC input
- Logging of every rejected signature for auditing
"""

import hashlib
import hmac
import json
import logging
from collections.abc import Mapping
from typing import Any, Optional
from urllib.parse import quote

logger = logging.getLogger(__name__)

# Parameters VNPay appends that are never part of the signed data
VNPAY_HASH_FIELDS = ("vnp_SecureHash", "vnp_SecureHashType")

MOMO_CREATE_FIELDS = (
    "accessKey",
    "amount",
    "extraData",
    "ipnUrl",
    "orderId",
    "orderInfo",
    "partnerCode",
    "redirectUrl",
    "requestId",
    "requestType",
)

MOMO_CALLBACK_FIELDS = (
    "accessKey",
    "amount",
    "extraData",
    "message",
    "orderId",
    "orderInfo",
    "orderType",
    "partnerCode",
    "payType",
    "requestId",
    "responseTime",
    "resultCode",
    "transId",
)

PAYOS_PAYMENT_REQUEST_FIELDS = ("amount", "cancelUrl", "description", "orderCode", "returnUrl")


class WebhookSignatureError(Exception):
    """Raised when webhook signature verification fails"""

    pass


def constant_time_compare(a: Optional[str], b: Optional[str]) -> bool:
    """
    Compare two strings in constant time to prevent timing attacks.
    Empty values never match.
    """
    if not a or not b:
        return False
    return hmac.compare_digest(a.lower(), b.lower())


def compute_hmac_sha256(secret: str, payload: str) -> str:
    """Compute HMAC-SHA256 hex digest of payload"""
    return hmac.new(secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha256).hexdigest()


def compute_hmac_sha512(secret: str, payload: str) -> str:
    """Compute HMAC-SHA512 hex digest of payload"""
    return hmac.new(secret.encode("utf-8"), payload.encode("utf-8"), hashlib.sha512).hexdigest()


# ============================================================================
# VNPAY
# ============================================================================


def _vnpay_encode(value: Any) -> str:
    # encodeURIComponent semantics, with spaces as '+'
    return quote(str(value), safe="-_.!~*'()").replace("%20", "+")


def vnpay_sign_data(params: Mapping[str, Any]) -> str:
    """
    Canonical VNPay string: keys sorted, values URL-encoded (space -> '+'),
    joined as k=v&k=v without further encoding. Hash fields are excluded.
    """
    pairs = sorted(
        (_vnpay_encode(key), _vnpay_encode(value))
        for key, value in params.items()
        if key not in VNPAY_HASH_FIELDS and value is not None
    )
    return "&".join(f"{key}={value}" for key, value in pairs)


def sign_vnpay(params: Mapping[str, Any], secret: str) -> str:
    return compute_hmac_sha512(secret, vnpay_sign_data(params))


def verify_vnpay_signature(params: Mapping[str, Any], secret: str) -> bool:
    """Verify vnp_SecureHash against the remaining query parameters"""
    received = params.get("vnp_SecureHash")
    if not received:
        logger.warning("🚫 VNPay callback without vnp_SecureHash")
        return False

    expected = sign_vnpay(params, secret)
    if not constant_time_compare(received, expected):
        logger.warning(f"🚫 VNPay signature mismatch for TxnRef={params.get('vnp_TxnRef')}")
        return False
    return True


# ============================================================================
# MOMO
# ============================================================================


def momo_raw_signature(fields: tuple, values: Mapping[str, Any]) -> str:
    """MoMo signs a fixed, alphabetical field list as k=v&k=v"""
    parts = []
    for field in fields:
        value = values.get(field)
        parts.append(f"{field}={'' if value is None else value}")
    return "&".join(parts)


def sign_momo_create(values: Mapping[str, Any], secret_key: str) -> str:
    return compute_hmac_sha256(secret_key, momo_raw_signature(MOMO_CREATE_FIELDS, values))


def verify_momo_signature(payload: Mapping[str, Any], access_key: str, secret_key: str) -> bool:
    """Verify a MoMo redirect/IPN payload; accessKey is injected from config"""
    received = payload.get("signature")
    if not received:
        logger.warning("🚫 MoMo callback without signature")
        return False

    values = dict(payload)
    values["accessKey"] = access_key
    expected = compute_hmac_sha256(secret_key, momo_raw_signature(MOMO_CALLBACK_FIELDS, values))
    if not constant_time_compare(str(received), expected):
        logger.warning(f"🚫 MoMo signature mismatch for orderId={payload.get('orderId')}")
        return False
    return True


# ============================================================================
# PAYOS
# ============================================================================


def _payos_value(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, dict)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    return str(value)


def payos_data_string(data: Mapping[str, Any]) -> str:
    """Sorted key=value pairs joined by '&' (PayOS webhook checksum input)"""
    return "&".join(f"{key}={_payos_value(data[key])}" for key in sorted(data))


def sign_payos_payment_request(values: Mapping[str, Any], checksum_key: str) -> str:
    data = "&".join(f"{field}={values.get(field, '')}" for field in PAYOS_PAYMENT_REQUEST_FIELDS)
    return compute_hmac_sha256(checksum_key, data)


def verify_payos_webhook(body: Mapping[str, Any], checksum_key: str) -> dict:
    """
    Verify a PayOS webhook body ({code, desc, data, signature}).

    Returns:
        The verified `data` object

    Raises:
        WebhookSignatureError: If the data or signature is missing or wrong
    """
    data = body.get("data")
    signature = body.get("signature")
    if not isinstance(data, Mapping) or not signature:
        raise WebhookSignatureError("Missing webhook data or signature")

    expected = compute_hmac_sha256(checksum_key, payos_data_string(data))
    if not constant_time_compare(str(signature), expected):
        logger.warning(f"🚫 PayOS signature mismatch for orderCode={data.get('orderCode')}")
        raise WebhookSignatureError("Invalid signature")

    return dict(data)
