"""
订单领域服务 - 支付与退款流程对订单状态的唯一入口

支付/退款流程只能通过本服务变更订单，不直接修改订单字段。
"""
from __future__ import annotations

from typing import List, Optional

from domain.common.exceptions import (
    DomainValidationException,
    InvalidOrderStateException,
    OrderNotFoundException,
)
from domain.payment.entity import PaymentMethod

from .entity import DeliveryInfo, Order, OrderItem, OrderStatus
from .repository import OrderRepository


class OrderDomainService:
    def __init__(self, order_repository: OrderRepository) -> None:
        self.order_repository = order_repository

    def get_order(self, order_id: str) -> Order:
        if not order_id or not order_id.strip():
            raise DomainValidationException("Order ID is required", field="order_id")
        order = self.order_repository.get(order_id)
        if order is None:
            raise OrderNotFoundException(order_id)
        return order

    def find_order(self, order_id: str) -> Optional[Order]:
        if not order_id:
            return None
        return self.order_repository.get(order_id)

    def list_orders(self, customer_id: Optional[str] = None) -> List[Order]:
        return self.order_repository.list(customer_id)

    def place_order(
        self,
        customer_id: str,
        items: List[OrderItem],
        delivery_info: DeliveryInfo,
        payment_method: PaymentMethod,
    ) -> Order:
        order = Order.create(
            customer_id=customer_id,
            items=items,
            delivery_info=delivery_info,
            payment_method=payment_method,
        )
        return self.order_repository.save(order)

    def can_process_payment(self, order_id: str) -> bool:
        order = self.find_order(order_id)
        return order is not None and order.can_process_payment()

    def mark_order_as_paid(self, order_id: str) -> Order:
        order = self.get_order(order_id)
        if not order.can_process_payment():
            raise InvalidOrderStateException(order_id, order.status.value, "mark as paid")
        order.confirm()
        return self.order_repository.save(order)

    def mark_order_payment_failed(self, order_id: str) -> Order:
        """支付失败：订单保持 PENDING 以便重试"""
        return self.get_order(order_id)

    def mark_order_as_refunded(self, order_id: str) -> Order:
        order = self.get_order(order_id)
        if order.status not in (OrderStatus.CONFIRMED, OrderStatus.SHIPPED):
            raise InvalidOrderStateException(order_id, order.status.value, "refund")
        order.cancel()
        return self.order_repository.save(order)

    def cancel_order(self, order_id: str) -> Order:
        order = self.get_order(order_id)
        order.cancel()
        return self.order_repository.save(order)
