import pytest

from domain.common.exceptions import UnsupportedPaymentMethodException
from domain.payment.entity import PaymentMethod, PaymentStatus
from domain.payment.factory import (
    GlobalPaymentServiceFactory,
    PaymentServiceFactoryCoordinator,
    VietnamPaymentServiceFactory,
)
from domain.payment.service import CashOnDeliveryPaymentService
from domain.payment.value_objects import DomainPaymentRequest, DomainRefundRequest


class FakeVNPayService:
    payment_method = PaymentMethod.VNPAY
    requires_redirect = True


@pytest.fixture
def coordinator():
    return PaymentServiceFactoryCoordinator(
        [VietnamPaymentServiceFactory(FakeVNPayService()), GlobalPaymentServiceFactory()]
    )


def test_vietnam_factory_serves_vnpay_and_cod(coordinator):
    assert isinstance(coordinator.get_payment_service("VNPAY"), FakeVNPayService)
    assert isinstance(coordinator.get_payment_service(PaymentMethod.COD, "VIETNAM"), CashOnDeliveryPaymentService)


def test_unknown_region_is_reported(coordinator):
    with pytest.raises(UnsupportedPaymentMethodException) as exc_info:
        coordinator.get_payment_service(PaymentMethod.VNPAY, "GLOBAL")
    assert exc_info.value.message == "No factory found for payment method: VNPAY in region: GLOBAL"


def test_global_factory_is_not_implemented(coordinator):
    with pytest.raises(UnsupportedPaymentMethodException, match="not yet implemented"):
        coordinator.get_payment_service(PaymentMethod.CREDIT_CARD)


def test_no_factories_registered():
    with pytest.raises(UnsupportedPaymentMethodException, match="No factory found for payment method: COD"):
        PaymentServiceFactoryCoordinator().get_payment_service("COD")


def test_supported_methods_by_region(coordinator):
    assert coordinator.supported_methods("VIETNAM") == frozenset({PaymentMethod.VNPAY, PaymentMethod.COD})
    assert coordinator.is_supported("BANK_TRANSFER")
    assert not coordinator.is_supported("BANK_TRANSFER", "VIETNAM")


def test_vietnam_factory_rejects_foreign_method():
    factory = VietnamPaymentServiceFactory(FakeVNPayService())
    with pytest.raises(UnsupportedPaymentMethodException):
        factory.create_payment_service(PaymentMethod.CREDIT_CARD)


def test_cash_on_delivery_service():
    cod = CashOnDeliveryPaymentService()
    result = cod.process_payment(DomainPaymentRequest(order_id="O1", amount=1000))
    assert result.success is True
    assert result.transaction_id == "COD-O1"
    assert result.payment_url is None
    assert cod.requires_redirect is False
    assert cod.get_payment_status("COD-O1") == PaymentStatus.PENDING
    assert cod.validate_transaction("COD-O1")
    refund = cod.process_refund(DomainRefundRequest(order_id="O1", transaction_id="COD-O1", amount=1000))
    assert refund.success is True and refund.method == "COD"
