from urllib.parse import parse_qsl, urlsplit

import httpx
import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_container
from main import app
from shared.codes import BusinessCode


@pytest.fixture
def container(make_container):
    c = make_container(lambda request: httpx.Response(200, json={"vnp_ResponseCode": "00", "vnp_TransactionNo": "RF1"}))
    app.dependency_overrides[get_container] = lambda: c
    yield c
    app.dependency_overrides.clear()


@pytest.fixture
def client(container):
    return TestClient(app)


ORDER = {
    "customer_id": "C1",
    "items": [{"product_id": "P1", "quantity": 2, "unit_price": 50000}],
    "delivery_info": {"recipient_name": "Nguyen Van A", "phone": "0900000000", "address": "1 Le Loi, Q1"},
    "payment_method": "VNPAY",
}


def _create_order(client, **overrides):
    resp = client.post("/api/v1/orders", json={**ORDER, **overrides})
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]["order_id"]


def _pay(client, order_id):
    resp = client.post(
        "/api/v1/payments",
        json={"order_id": order_id, "bank_code": "NCB"},
        headers={"X-Forwarded-For": "203.0.113.5, 10.0.0.1"},
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


def _ipn_params(container, payment, sign, code="00"):
    txn = container.transactions.get(payment["transaction_id"])
    return sign(
        {
            "vnp_Amount": str(txn.amount * 100),
            "vnp_BankCode": "NCB",
            "vnp_ResponseCode": code,
            "vnp_TmnCode": "TESTTMN1",
            "vnp_TransactionNo": "14012345",
            "vnp_TxnRef": txn.transaction_id,
        }
    )


def test_routes_registered():
    paths = {r.path for r in app.routes}
    assert "/api/v1/payments/vnpay/ipn" in paths
    assert "/api/v1/payments/vnpay/return" in paths
    assert "/api/v1/orders/{order_id}/cancel" in paths


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["data"] == {"status": "healthy"}
    assert resp.headers.get("X-Request-ID")


def test_create_and_fetch_order(client):
    order_id = _create_order(client)
    resp = client.get(f"/api/v1/orders/{order_id}")
    body = resp.json()
    assert body["code"] == BusinessCode.SUCCESS
    assert body["data"]["total_amount"] == 100000
    assert body["data"]["status"] == "PENDING"


def test_unknown_order_is_404(client):
    resp = client.get("/api/v1/orders/ORDMISSING")
    assert resp.status_code == 404
    assert resp.json()["code"] == BusinessCode.ORDER_NOT_FOUND


def test_unknown_payment_method_is_rejected(client):
    resp = client.post("/api/v1/orders", json={**ORDER, "payment_method": "PAYPAL"})
    assert resp.status_code == 422
    assert resp.json()["code"] == BusinessCode.COMMAND_VALIDATION_ERROR


def test_payment_url_carries_client_ip(client):
    payment = _pay(client, _create_order(client))
    params = dict(parse_qsl(urlsplit(payment["payment_url"]).query))
    assert params["vnp_IpAddr"] == "203.0.113.5"
    assert params["vnp_Amount"] == "10000000"
    assert params["vnp_BankCode"] == "NCB"


def test_ipn_confirms_order_then_return_shows_result(client, container, sign):
    order_id = _create_order(client)
    params = _ipn_params(container, _pay(client, order_id), sign)

    ack = client.get("/api/v1/payments/vnpay/ipn", params=params)
    assert ack.json() == {"RspCode": "00", "Message": "Confirm Success"}
    assert client.get(f"/api/v1/orders/{order_id}").json()["data"]["status"] == "CONFIRMED"

    ret = client.get("/api/v1/payments/vnpay/return", params=params)
    body = ret.json()
    assert body["code"] == BusinessCode.SUCCESS
    assert body["data"]["outcome"] == "ALREADY_PROCESSED"

    again = client.get("/api/v1/payments/vnpay/ipn", params=params)
    assert again.json()["RspCode"] == "02"


def test_ipn_with_bad_signature(client, container, sign):
    params = _ipn_params(container, _pay(client, _create_order(client)), sign)
    params["vnp_SecureHash"] = "0" * 128
    assert client.get("/api/v1/payments/vnpay/ipn", params=params).json()["RspCode"] == "97"


def test_refund_endpoint(client, container, sign):
    order_id = _create_order(client)
    payment = _pay(client, order_id)
    client.get("/api/v1/payments/vnpay/ipn", params=_ipn_params(container, payment, sign))

    resp = client.post(f"/api/v1/payments/{payment['transaction_id']}/refund", json={"reason": "damaged"})
    assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["refund_id"] == "RF1"
    assert client.get(f"/api/v1/orders/{order_id}").json()["data"]["status"] == "CANCELLED"

    again = client.post(f"/api/v1/payments/{payment['transaction_id']}/refund", json={})
    assert again.status_code == 400
    assert again.json()["error"]["details"]["error_code"] == "02"


def test_cancel_endpoint(client):
    order_id = _create_order(client, payment_method="COD")
    resp = client.post(f"/api/v1/orders/{order_id}/cancel", json={"requested_by": "customer"})
    assert resp.status_code == 200
    assert resp.json()["message"] == "Order cancelled successfully"

    again = client.post(f"/api/v1/orders/{order_id}/cancel", json={})
    assert again.status_code == 400


def test_list_orders_by_customer(client):
    first = _create_order(client)
    _create_order(client, customer_id="C2")
    body = client.get("/api/v1/orders", params={"customer_id": "C1"}).json()
    assert [o["order_id"] for o in body["data"]] == [first]


def test_payment_lookup(client, container, sign):
    order_id = _create_order(client)
    payment = _pay(client, order_id)
    client.get("/api/v1/payments/vnpay/ipn", params=_ipn_params(container, payment, sign))

    resp = client.get(f"/api/v1/payments/{payment['transaction_id']}")
    data = resp.json()["data"]
    assert data["status"] == "SUCCESS"
    assert data["gateway_transaction_no"] == "14012345"

    listed = client.get("/api/v1/payments", params={"order_id": order_id}).json()["data"]
    assert [t["transaction_id"] for t in listed] == [payment["transaction_id"]]


def test_unknown_payment_is_404(client):
    resp = client.get("/api/v1/payments/ORDX123")
    assert resp.status_code == 404
    assert resp.json()["code"] == BusinessCode.PAYMENT_TRANSACTION_NOT_FOUND


def test_bare_payment_request_uses_the_order_method(client):
    order_id = _create_order(client, payment_method="COD")
    resp = client.post("/api/v1/payments", json={"order_id": order_id})
    assert resp.status_code == 200, resp.text
    assert resp.json()["data"]["transaction_id"] == f"COD-{order_id}"
    assert resp.json()["data"]["payment_url"] is None
    assert client.get(f"/api/v1/orders/{order_id}").json()["data"]["status"] == "CONFIRMED"


def test_payment_method_mismatch_is_rejected(client):
    order_id = _create_order(client, payment_method="COD")
    resp = client.post("/api/v1/payments", json={"order_id": order_id, "payment_method": "VNPAY"})
    assert resp.status_code == 400
    assert resp.json()["error"]["details"]["error_code"] == "04"


def test_return_page_message_is_localized(client, container, sign):
    params = _ipn_params(container, _pay(client, _create_order(client)), sign, code="24")

    vn = client.get("/api/v1/payments/vnpay/return", params=params).json()
    assert vn["code"] == BusinessCode.BUSINESS_ERROR
    assert vn["message"] == "Khách hàng hủy giao dịch"

    en = client.get("/api/v1/payments/vnpay/return", params={**params, "locale": "en"}).json()
    assert en["data"]["outcome"] == "ALREADY_PROCESSED"
    assert en["message"] == "Transaction failed: Customer cancelled transaction"
