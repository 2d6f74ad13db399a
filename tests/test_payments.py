"""
test_payments.py - Payment History and Gateway Callback Tests

Covers: payment listing and lookup, VNPay return + IPN (signature, amount,
already-confirmed, activation), MoMo return + IPN, PayOS return + webhook,
idempotent settlement, the Premium activation side effects and checkout
construction for each gateway.
"""

import asyncio
from datetime import datetime
from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qsl, urlparse

import httpx
import pytest

from jobevent.domain.payments.gateways import MoMoGateway, PayOSGateway, VNPayGateway, vnpay_timestamp
from jobevent.models import Notification
from jobevent.webhook_security import (
    MOMO_CALLBACK_FIELDS,
    compute_hmac_sha256,
    momo_raw_signature,
    payos_data_string,
    sign_vnpay,
    verify_vnpay_signature,
)

SERVICE = "jobevent.domain.payments.service"
GATEWAYS = "jobevent.domain.payments.gateways"
SECRET = "test-secret"


@pytest.fixture(autouse=True)
def gateway_secrets():
    with patch(f"{SERVICE}.VNPAY_HASH_SECRET", SECRET), patch(f"{SERVICE}.MOMO_ACCESS_KEY", "access"), patch(
        f"{SERVICE}.MOMO_SECRET_KEY", SECRET
    ), patch(f"{SERVICE}.PAYOS_CHECKSUM_KEY", SECRET):
        yield


@pytest.fixture()
def activation_email():
    with patch(f"{SERVICE}.send_premium_activated_email", new_callable=AsyncMock) as send:
        yield send


def _vnpay_params(payment, code="00", **overrides):
    params = {
        "vnp_Amount": str(payment.amount * 100),
        "vnp_BankCode": "NCB",
        "vnp_CardType": "ATM",
        "vnp_OrderInfo": "Upgrade to Premium - 30 days",
        "vnp_ResponseCode": code,
        "vnp_TmnCode": "TESTCODE",
        "vnp_TransactionNo": "14012345",
        "vnp_TxnRef": payment.transaction_id,
    }
    params.update(overrides)
    params["vnp_SecureHash"] = sign_vnpay(params, SECRET)
    return params


def _momo_payload(payment, result_code=0):
    payload = {
        "partnerCode": "MOMO",
        "orderId": payment.transaction_id,
        "requestId": payment.transaction_id,
        "amount": payment.amount,
        "orderInfo": "Upgrade to Premium - 30 days",
        "orderType": "momo_wallet",
        "transId": 4088878653,
        "resultCode": result_code,
        "message": "Successful.",
        "payType": "qr",
        "responseTime": 1721720663942,
        "extraData": "",
    }
    payload["signature"] = compute_hmac_sha256(
        SECRET, momo_raw_signature(MOMO_CALLBACK_FIELDS, {**payload, "accessKey": "access"})
    )
    return payload


def _payos_body(payment, code="00"):
    data = {
        "orderCode": int(payment.transaction_id),
        "amount": payment.amount,
        "description": "Upgrade to Premium",
        "reference": "FT123",
        "transactionDateTime": "2025-01-01 10:00:00",
        "code": code,
        "desc": "success",
    }
    signature = compute_hmac_sha256(SECRET, payos_data_string(data))
    return {"code": "00", "desc": "success", "data": data, "signature": signature}


# ── History ──────────────────────────────────────────────────────────


def test_list_payments_only_own(client, make_btc, make_payment, auth_headers):
    me, other = make_btc(), make_btc()
    make_payment(me)
    make_payment(me, status="SUCCESS")
    make_payment(other)

    body = client.get("/api/payments", params={"status": "SUCCESS"}, headers=auth_headers(me)).json()

    assert body["total"] == 1
    assert body["data"][0]["status"] == "SUCCESS"


def test_get_by_transaction(client, make_btc, make_payment, auth_headers):
    me, other = make_btc(), make_btc()
    payment = make_payment(me)

    mine = client.get(f"/api/payments/transaction/{payment.transaction_id}", headers=auth_headers(me))
    theirs = client.get(f"/api/payments/transaction/{payment.transaction_id}", headers=auth_headers(other))

    assert mine.json()["data"]["transactionId"] == payment.transaction_id
    assert theirs.status_code == 404
    assert theirs.json()["message"] == "Payment not found"


# ── VNPay ────────────────────────────────────────────────────────────


class TestVNPay:
    def test_return_success_activates_premium(
        self, client, db_session, btc_user, make_payment, activation_email
    ):
        payment = make_payment(btc_user)

        resp = client.get("/api/payments/vnpay/return", params=_vnpay_params(payment), follow_redirects=False)

        assert resp.status_code == 302
        assert f"/payment-success?orderId={payment.transaction_id}" in resp.headers["location"]
        db_session.refresh(payment)
        db_session.refresh(btc_user)
        assert payment.status == "SUCCESS"
        assert payment.meta["vnpTransactionNo"] == "14012345"
        assert btc_user.subscription_plan == "PREMIUM"
        assert btc_user.is_premium_active()
        assert db_session.query(Notification).filter(Notification.type == "PAYMENT").count() == 1
        activation_email.assert_awaited_once()

    def test_return_failure_code(self, client, db_session, btc_user, make_payment, activation_email):
        payment = make_payment(btc_user)

        resp = client.get(
            "/api/payments/vnpay/return", params=_vnpay_params(payment, code="24"), follow_redirects=False
        )

        assert "/payment-failed?code=24" in resp.headers["location"]
        db_session.refresh(payment)
        assert payment.status == "FAILED"
        activation_email.assert_not_awaited()

    def test_return_bad_signature(self, client, btc_user, make_payment):
        params = _vnpay_params(make_payment(btc_user))
        params["vnp_Amount"] = "100"
        resp = client.get("/api/payments/vnpay/return", params=params, follow_redirects=False)
        assert "/payment-error?reason=invalid_signature" in resp.headers["location"]

    def test_ipn_confirms_once(self, client, db_session, btc_user, make_payment, activation_email):
        payment = make_payment(btc_user)
        params = _vnpay_params(payment)

        first = client.get("/api/payments/vnpay/notify", params=params).json()
        second = client.get("/api/payments/vnpay/notify", params=params).json()

        assert first == {"RspCode": "00", "Message": "Confirm Success"}
        assert second == {"RspCode": "02", "Message": "Order already confirmed"}
        activation_email.assert_awaited_once()

    def test_ipn_amount_mismatch(self, client, btc_user, make_payment):
        payment = make_payment(btc_user)
        body = client.get(
            "/api/payments/vnpay/notify", params=_vnpay_params(payment, vnp_Amount="100")
        ).json()
        assert body["RspCode"] == "04"

    def test_ipn_unknown_order(self, client, btc_user, make_payment):
        payment = make_payment(btc_user)
        body = client.get(
            "/api/payments/vnpay/notify", params=_vnpay_params(payment, vnp_TxnRef="999")
        ).json()
        assert body == {"RspCode": "01", "Message": "Order not found"}

    def test_ipn_checksum_failed(self, client):
        body = client.get("/api/payments/vnpay/notify", params={"vnp_TxnRef": "1"}).json()
        assert body["RspCode"] == "97"


# ── MoMo ─────────────────────────────────────────────────────────────


class TestMoMo:
    def test_notify_success(self, client, db_session, btc_user, make_payment, activation_email):
        payment = make_payment(btc_user, method="MOMO")

        resp = client.post("/api/payments/momo/notify", json=_momo_payload(payment))

        assert resp.status_code == 200
        assert resp.json() == {"success": True}
        db_session.refresh(payment)
        assert payment.status == "SUCCESS"
        assert payment.meta["momoTransId"] == 4088878653

    def test_notify_bad_signature(self, client, btc_user, make_payment):
        payload = _momo_payload(make_payment(btc_user, method="MOMO"))
        payload["amount"] = 1
        resp = client.post("/api/payments/momo/notify", json=payload)
        assert resp.status_code == 400
        assert resp.json()["message"] == "Invalid signature"

    def test_return_failed_result(self, client, db_session, btc_user, make_payment):
        payment = make_payment(btc_user, method="MOMO")
        params = {k: str(v) for k, v in _momo_payload(payment, result_code=1006).items()}

        resp = client.get("/api/payments/momo/return", params=params, follow_redirects=False)

        assert "/payment-failed?code=1006" in resp.headers["location"]
        db_session.refresh(payment)
        assert payment.status == "FAILED"


# ── PayOS ────────────────────────────────────────────────────────────


class TestPayOS:
    def test_webhook_success(self, client, db_session, btc_user, make_payment, activation_email):
        payment = make_payment(btc_user, method="PAYOS")

        resp = client.post("/api/payments/payos/notify", json=_payos_body(payment))

        assert resp.status_code == 200
        db_session.refresh(payment)
        assert payment.status == "SUCCESS"
        assert payment.meta["payosReference"] == "FT123"

    def test_webhook_already_processed(self, client, btc_user, make_payment):
        payment = make_payment(btc_user, method="PAYOS", status="SUCCESS")
        resp = client.post("/api/payments/payos/notify", json=_payos_body(payment))
        assert resp.json()["message"] == "Payment already processed"

    def test_webhook_bad_signature(self, client, btc_user, make_payment):
        body = _payos_body(make_payment(btc_user, method="PAYOS"))
        body["signature"] = "0" * 64
        resp = client.post("/api/payments/payos/notify", json=body)
        assert resp.status_code == 400

    def test_return_cancelled(self, client, db_session, btc_user, make_payment):
        payment = make_payment(btc_user, method="PAYOS")

        resp = client.get(
            "/api/payments/payos/return",
            params={"orderCode": payment.transaction_id, "status": "CANCELLED", "cancel": "true"},
            follow_redirects=False,
        )

        assert "/payment-failed?code=CANCELLED" in resp.headers["location"]
        db_session.refresh(payment)
        assert payment.status == "FAILED"

    def test_return_pending_status(self, client, btc_user, make_payment):
        payment = make_payment(btc_user, method="PAYOS")
        resp = client.get(
            "/api/payments/payos/return",
            params={"orderCode": payment.transaction_id, "status": "PENDING"},
            follow_redirects=False,
        )
        assert "/payment-pending" in resp.headers["location"]

    def test_return_paid_after_webhook_is_noop(self, client, btc_user, make_payment, activation_email):
        payment = make_payment(btc_user, method="PAYOS", status="SUCCESS")
        resp = client.get(
            "/api/payments/payos/return",
            params={"orderCode": payment.transaction_id, "status": "PAID"},
            follow_redirects=False,
        )
        assert "/payment-success" in resp.headers["location"]
        activation_email.assert_not_awaited()


# ── Checkout construction ────────────────────────────────────────────


class TestCheckout:
    def test_vnpay_url_is_signed(self, btc_user, make_payment):
        payment = make_payment(btc_user)
        with patch(f"{GATEWAYS}.VNPAY_TMN_CODE", "TESTCODE"), patch(f"{GATEWAYS}.VNPAY_HASH_SECRET", SECRET):
            url = asyncio.run(VNPayGateway().create_payment_url(payment, "1.2.3.4"))

        params = dict(parse_qsl(urlparse(url).query))
        assert params["vnp_Amount"] == "49900000"
        assert params["vnp_TxnRef"] == payment.transaction_id
        assert params["vnp_IpAddr"] == "1.2.3.4"
        assert verify_vnpay_signature(params, SECRET)

    def test_vnpay_timestamp_is_vietnam_time(self):
        assert vnpay_timestamp(datetime(2025, 1, 1, 20, 30, 0)) == "20250102033000"

    def test_momo_request_omits_access_key(self, btc_user, make_payment):
        payment = make_payment(btc_user, method="MOMO")
        with patch(f"{GATEWAYS}.MOMO_ACCESS_KEY", "access"), patch(f"{GATEWAYS}.MOMO_SECRET_KEY", SECRET):
            body = MoMoGateway().build_request(payment)

        assert "accessKey" not in body
        assert body["orderId"] == payment.transaction_id
        assert body["amount"] == "499000"
        assert len(body["signature"]) == 64

    def test_payos_checkout_url(self, btc_user, make_payment):
        payment = make_payment(btc_user, method="PAYOS")
        response = httpx.Response(200, json={"code": "00", "data": {"checkoutUrl": "https://pay.payos.vn/web/abc"}})
        with patch(f"{GATEWAYS}.PAYOS_CHECKSUM_KEY", SECRET), patch(
            "httpx.AsyncClient.post", new_callable=AsyncMock, return_value=response
        ) as post:
            url = asyncio.run(PayOSGateway().create_payment_url(payment))

        assert url == "https://pay.payos.vn/web/abc"
        sent = post.await_args.kwargs["json"]
        assert sent["orderCode"] == int(payment.transaction_id)
        assert len(sent["description"]) <= 25
        assert payment.meta["payosOrderCode"] == int(payment.transaction_id)
