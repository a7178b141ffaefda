from typing import Optional

from application.dtos.payments import PaymentResponse, PaymentStatusResponse, RefundResponse
from domain.payment.entity import PaymentMethod, PaymentStatus, PaymentTransaction
from domain.payment.value_objects import DomainPaymentRequest, DomainRefundRequest
from infrastructure.payment.vnpay_adapter import VNPayPaymentAdapter
from infrastructure.repositories import InMemoryPaymentTransactionRepository


class StubGateway:
    provider = "stub"

    def __init__(self):
        self.payment_response: Optional[PaymentResponse] = PaymentResponse.ok(
            "https://pay.example/vpcpay?x=1", "ORDER112345678", create_date="20240501100000"
        )
        self.status_response = PaymentStatusResponse(success=True, code="00", message="ok", transaction_status="00")
        self.refund_response = RefundResponse(success=True, code="00", message="ok", refund_id="RF1")
        self.refund_requests = []
        self.status_calls = []

    def initiate_payment(self, request):
        return self.payment_response

    def check_payment_status(self, transaction_id, transaction_date, *, client_ip=None):
        self.status_calls.append((transaction_id, transaction_date))
        return self.status_response

    def process_refund(self, request):
        self.refund_requests.append(request)
        return self.refund_response

    def validate_payment_callback(self, params):
        return True

    def close(self):
        return None


def test_process_payment_success():
    adapter = VNPayPaymentAdapter(StubGateway())
    result = adapter.process_payment(DomainPaymentRequest(order_id="ORDER1", amount=1000))
    assert result.success is True
    assert result.transaction_id == "ORDER112345678"
    assert result.payment_url.startswith("https://pay.example")
    assert result.gateway_create_date == "20240501100000"
    assert adapter.requires_redirect is True


def test_process_payment_gateway_failure_and_no_response():
    gw = StubGateway()
    adapter = VNPayPaymentAdapter(gw)
    gw.payment_response = PaymentResponse.failure("99", "Payment initiation failed: boom")
    result = adapter.process_payment(DomainPaymentRequest(order_id="ORDER1", amount=1000))
    assert result.success is False
    assert result.error_code == "99"
    assert result.payment_url is None

    gw.payment_response = None
    result = adapter.process_payment(DomainPaymentRequest(order_id="ORDER1", amount=1000))
    assert result.error_code == "NO_RESPONSE"


def test_process_payment_exception_is_contained():
    gw = StubGateway()

    def boom(request):
        raise RuntimeError("network down")

    gw.initiate_payment = boom
    result = VNPayPaymentAdapter(gw).process_payment(DomainPaymentRequest(order_id="ORDER1", amount=1000))
    assert result.success is False
    assert result.error_code == "PAYMENT_ERROR"
    assert "network down" in result.message


def test_status_uses_transaction_status_when_query_succeeded():
    gw = StubGateway()
    adapter = VNPayPaymentAdapter(gw)
    gw.status_response = PaymentStatusResponse(success=True, code="00", message="ok", transaction_status="02")
    assert adapter.get_payment_status("T1") == PaymentStatus.PROCESSING

    gw.status_response = PaymentStatusResponse(success=False, code="91", message="not found")
    assert adapter.get_payment_status("T1") == PaymentStatus.PENDING

    gw.status_response = PaymentStatusResponse(success=True, code="00", message="ok", transaction_status="00")
    assert adapter.validate_transaction("T1") is True


def test_status_query_uses_stored_create_date():
    gw = StubGateway()
    repo = InMemoryPaymentTransactionRepository()
    repo.save(PaymentTransaction("T1", "O1", 1000, gateway_create_date="20240501100000"))
    VNPayPaymentAdapter(gw, transactions=repo).get_payment_status("T1")
    assert gw.status_calls == [("T1", "20240501100000")]


def test_refund_maps_request_and_result():
    gw = StubGateway()
    result = VNPayPaymentAdapter(gw).process_refund(
        DomainRefundRequest(order_id="O1", transaction_id="T1", amount=5000, transaction_date="20240501100000")
    )
    assert result.success is True
    assert result.refund_id == "RF1"
    assert result.amount == 5000
    assert result.status == "PENDING"
    assert result.message == "Refund processed successfully"
    assert (result.expected_completion - result.processed_at).days == 7
    sent = gw.refund_requests[0]
    assert sent.order_id == "T1"
    assert sent.created_by == "admin"


def test_refund_gateway_rejection():
    gw = StubGateway()
    gw.refund_response = RefundResponse.failure("94", "Duplicate request")
    result = VNPayPaymentAdapter(gw).process_refund(
        DomainRefundRequest(order_id="O1", transaction_id="T1", amount=5000, transaction_date="20240501100000")
    )
    assert result.success is False
    assert result.message == "Duplicate request"


def test_method_name():
    assert VNPayPaymentAdapter(StubGateway()).payment_method_name() == PaymentMethod.VNPAY.value
