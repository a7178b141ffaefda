import json

import httpx
import pytest

from application.dtos.payments import GatewayPaymentRequest, GatewayRefundRequest
from infrastructure.external.payments import get_payment_gateway
from infrastructure.external.payments.vnpay import VNPayClient


def test_initiate_payment_builds_signed_url(make_client):
    client = make_client()
    resp = client.initiate_payment(GatewayPaymentRequest(order_id="ORDER123", amount=100000))
    assert resp.success is True
    assert resp.code == "00"
    assert "vnp_Amount=10000000" in resp.payment_url
    assert resp.transaction_id.startswith("ORDER123")
    assert "&vnp_SecureHash=" in resp.payment_url
    assert resp.create_date and len(resp.create_date) == 14


def test_initiate_payment_rejects_missing_request(make_client):
    resp = make_client().initiate_payment(None)
    assert resp.success is False
    assert resp.code == "99"
    assert resp.message == "Payment initiation failed: Request cannot be null"


def test_initiate_payment_never_raises(make_client, monkeypatch):
    from infrastructure.external.payments.vnpay import client as client_module

    def boom(*args, **kwargs):
        raise RuntimeError("builder exploded")

    monkeypatch.setattr(client_module, "build_payment_params", boom)
    resp = make_client().initiate_payment(GatewayPaymentRequest(order_id="O1", amount=1000))
    assert resp.code == "99"
    assert resp.message == "Payment initiation failed: builder exploded"


def test_check_payment_status_parses_querydr_response(make_client):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.update(json.loads(request.content))
        return httpx.Response(
            200,
            json={
                "vnp_ResponseCode": "00",
                "vnp_Message": "QueryDR Success",
                "vnp_TxnRef": "ORDER12312345678",
                "vnp_TransactionStatus": "00",
                "vnp_TransactionNo": "14012345",
                "vnp_Amount": "10000000",
                "vnp_BankCode": "NCB",
                "vnp_PayDate": "20240501101000",
            },
        )

    resp = make_client(handler).check_payment_status("ORDER12312345678", "20240501100000", client_ip="1.2.3.4")
    assert seen["vnp_Command"] == "querydr"
    assert seen["vnp_IpAddr"] == "1.2.3.4"
    assert resp.success is True
    assert resp.transaction_status == "00"
    assert resp.gateway_transaction_no == "14012345"
    assert resp.amount == 100000


def test_check_payment_status_maps_transport_error_to_failure(make_client):
    def handler(request):
        raise httpx.ConnectError("connection refused")

    resp = make_client(handler).check_payment_status("T1", "20240501100000")
    assert resp.success is False
    assert resp.code == "99"
    assert resp.message.startswith("Status check failed:")


def test_check_payment_status_maps_http_error_to_failure(make_client):
    resp = make_client(lambda request: httpx.Response(502)).check_payment_status("T1", "20240501100000")
    assert resp.code == "99"
    assert "HTTP 502" in resp.message


def test_process_refund_success_returns_gateway_transaction_no(make_client):
    def handler(request):
        body = json.loads(request.content)
        assert body["vnp_Command"] == "refund"
        assert body["vnp_Amount"] == "5000000"
        return httpx.Response(
            200,
            json={"vnp_ResponseCode": "00", "vnp_TransactionNo": "RF001", "vnp_TxnRef": body["vnp_TxnRef"]},
        )

    resp = make_client(handler).process_refund(
        GatewayRefundRequest(order_id="ORDER12312345678", amount=50000, transaction_date="20240501100000")
    )
    assert resp.success is True
    assert resp.refund_id == "RF001"
    assert resp.amount == 50000


def test_process_refund_gateway_rejection(make_client):
    handler = lambda request: httpx.Response(200, json={"vnp_ResponseCode": "94", "vnp_Message": "Duplicate request"})  # noqa: E731
    resp = make_client(handler).process_refund(
        GatewayRefundRequest(order_id="T1", amount=1000, transaction_date="20240501100000")
    )
    assert resp.success is False
    assert resp.code == "94"
    assert resp.message == "Duplicate request"


def test_process_refund_network_failure(make_client):
    def handler(request):
        raise httpx.ReadTimeout("timed out")

    resp = make_client(handler).process_refund(
        GatewayRefundRequest(order_id="T1", amount=1000, transaction_date="20240501100000")
    )
    assert resp.code == "99"
    assert resp.message.startswith("Refund processing failed:")


class TestCallbackValidation:
    def _params(self):
        return {
            "vnp_Amount": "10000000",
            "vnp_BankCode": "NCB",
            "vnp_ResponseCode": "00",
            "vnp_TmnCode": "TESTTMN1",
            "vnp_TransactionNo": "14012345",
            "vnp_TxnRef": "ORDER12312345678",
        }

    def test_valid_signature(self, make_client, sign):
        assert make_client().validate_payment_callback(sign(self._params())) is True

    def test_hash_type_is_excluded_from_canonical_form(self, make_client, sign):
        params = sign(self._params())
        params["vnp_SecureHashType"] = "HmacSHA512"
        assert make_client().validate_payment_callback(params) is True

    def test_tampered_amount_is_rejected(self, make_client, sign):
        params = sign(self._params())
        params["vnp_Amount"] = "1000"
        assert make_client().validate_payment_callback(params) is False

    def test_wrong_secret_is_rejected(self, make_client, sign):
        assert make_client().validate_payment_callback(sign(self._params(), secret="other")) is False

    @pytest.mark.parametrize("value", [None, ""])
    def test_missing_hash_is_rejected(self, make_client, value):
        params = self._params()
        if value is not None:
            params["vnp_SecureHash"] = value
        assert make_client().validate_payment_callback(params) is False


def test_gateway_factory_returns_vnpay_client():
    gw = get_payment_gateway("vnpay")
    assert isinstance(gw, VNPayClient)
    gw.close()
    with pytest.raises(ValueError):
        get_payment_gateway("alipay")
