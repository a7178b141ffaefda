import pytest

from domain.common.exceptions import (
    DomainValidationException,
    InvalidOrderStateException,
    OrderNotFoundException,
)
from domain.order.entity import DeliveryInfo, Order, OrderItem, OrderStatus
from domain.order.service import OrderDomainService
from domain.payment.entity import PaymentMethod
from infrastructure.repositories import InMemoryOrderRepository


DELIVERY = DeliveryInfo(recipient_name="Nguyen Van A", phone="0900000000", address="1 Le Loi, Q1")


def _order(method=PaymentMethod.VNPAY) -> Order:
    return Order.create(
        customer_id="C1",
        items=[OrderItem("P1", 2, 50000), OrderItem("P2", 1, 25000)],
        delivery_info=DELIVERY,
        payment_method=method,
    )


def test_total_is_sum_of_subtotals():
    order = _order()
    assert order.total_amount == 125000
    assert order.status == OrderStatus.PENDING
    assert order.order_id.startswith("ORD")


def test_items_are_required():
    with pytest.raises(DomainValidationException):
        Order.create(customer_id="C1", items=[], delivery_info=DELIVERY, payment_method=PaymentMethod.COD)


def test_only_pending_orders_can_be_paid():
    order = _order()
    assert order.can_process_payment()
    order.confirm()
    assert not order.can_process_payment()
    with pytest.raises(InvalidOrderStateException):
        order.confirm()


def test_refund_on_cancel_only_for_paid_online_orders():
    vnpay = _order()
    assert not vnpay.requires_refund_on_cancel()
    vnpay.confirm()
    assert vnpay.requires_refund_on_cancel()
    vnpay.ship()
    assert vnpay.requires_refund_on_cancel()

    cod = _order(PaymentMethod.COD)
    cod.confirm()
    assert not cod.requires_refund_on_cancel()


def test_cancelled_order_is_terminal():
    order = _order()
    order.cancel()
    assert order.status == OrderStatus.CANCELLED
    assert order.cancelled_at is not None
    assert not order.can_be_cancelled()
    with pytest.raises(InvalidOrderStateException):
        order.cancel()


class TestOrderDomainService:
    def setup_method(self):
        self.repo = InMemoryOrderRepository()
        self.service = OrderDomainService(self.repo)

    def test_get_order_raises_when_missing(self):
        with pytest.raises(OrderNotFoundException):
            self.service.get_order("missing")
        assert self.service.find_order("missing") is None

    def test_mark_paid_confirms_pending_order(self):
        order = self.repo.save(_order())
        assert self.service.mark_order_as_paid(order.order_id).status == OrderStatus.CONFIRMED
        with pytest.raises(InvalidOrderStateException):
            self.service.mark_order_as_paid(order.order_id)

    def test_payment_failure_keeps_order_pending(self):
        order = self.repo.save(_order())
        assert self.service.mark_order_payment_failed(order.order_id).status == OrderStatus.PENDING

    def test_refund_cancels_confirmed_order_only(self):
        order = self.repo.save(_order())
        with pytest.raises(InvalidOrderStateException):
            self.service.mark_order_as_refunded(order.order_id)
        self.service.mark_order_as_paid(order.order_id)
        assert self.service.mark_order_as_refunded(order.order_id).status == OrderStatus.CANCELLED

    def test_repository_returns_copies(self):
        order = self.repo.save(_order())
        loaded = self.repo.get(order.order_id)
        loaded.confirm()
        assert self.repo.get(order.order_id).status == OrderStatus.PENDING
