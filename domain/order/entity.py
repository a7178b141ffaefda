"""
订单领域实体 - 订单聚合根
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
import uuid

from domain.common.exceptions import DomainValidationException, InvalidOrderStateException
from domain.payment.entity import PaymentMethod


class OrderStatus(str, Enum):
    """订单状态枚举"""
    PENDING = "PENDING"         # 待支付/待确认
    CONFIRMED = "CONFIRMED"     # 已确认（已支付）
    SHIPPED = "SHIPPED"         # 已发货
    CANCELLED = "CANCELLED"     # 已取消


@dataclass(frozen=True)
class OrderItem:
    product_id: str
    quantity: int
    unit_price: int

    def __post_init__(self):
        if self.quantity <= 0:
            raise DomainValidationException("Item quantity must be positive", field="quantity")
        if self.unit_price < 0:
            raise DomainValidationException("Item price cannot be negative", field="unit_price")

    @property
    def subtotal(self) -> int:
        return self.quantity * self.unit_price


@dataclass(frozen=True)
class DeliveryInfo:
    recipient_name: str
    phone: str
    address: str
    province: Optional[str] = None
    email: Optional[str] = None


def _new_order_id() -> str:
    return f"ORD{uuid.uuid4().hex[:12].upper()}"


@dataclass
class Order:
    """
    订单聚合根

    业务规则：
    1. 新订单状态为 PENDING，金额为各项小计之和
    2. 只有 PENDING 订单可以支付
    3. PENDING/CONFIRMED/SHIPPED 订单可以取消
    4. 非货到付款且已确认/已发货的订单取消前必须退款
    """

    order_id: str
    customer_id: str
    items: List[OrderItem]
    delivery_info: DeliveryInfo
    payment_method: PaymentMethod
    status: OrderStatus = OrderStatus.PENDING
    total_amount: int = 0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.items:
            raise DomainValidationException("Order items are required", field="items")
        if not self.total_amount:
            self.total_amount = sum(item.subtotal for item in self.items)

    @classmethod
    def create(
        cls,
        customer_id: str,
        items: List[OrderItem],
        delivery_info: DeliveryInfo,
        payment_method: PaymentMethod,
        order_id: Optional[str] = None,
    ) -> "Order":
        return cls(
            order_id=order_id or _new_order_id(),
            customer_id=customer_id,
            items=list(items),
            delivery_info=delivery_info,
            payment_method=payment_method,
        )

    def can_process_payment(self) -> bool:
        return self.status == OrderStatus.PENDING

    def can_be_cancelled(self) -> bool:
        return self.status in (OrderStatus.PENDING, OrderStatus.CONFIRMED, OrderStatus.SHIPPED)

    def requires_refund_on_cancel(self) -> bool:
        return self.payment_method != PaymentMethod.COD and self.status in (
            OrderStatus.CONFIRMED,
            OrderStatus.SHIPPED,
        )

    def confirm(self) -> None:
        if self.status != OrderStatus.PENDING:
            raise InvalidOrderStateException(self.order_id, self.status.value, "confirm")
        self._transition(OrderStatus.CONFIRMED)

    def ship(self) -> None:
        if self.status != OrderStatus.CONFIRMED:
            raise InvalidOrderStateException(self.order_id, self.status.value, "ship")
        self._transition(OrderStatus.SHIPPED)

    def cancel(self) -> None:
        if not self.can_be_cancelled():
            raise InvalidOrderStateException(self.order_id, self.status.value, "cancel")
        self._transition(OrderStatus.CANCELLED)
        self.cancelled_at = self.updated_at

    def _transition(self, status: OrderStatus) -> None:
        self.status = status
        self.updated_at = datetime.now(timezone.utc)
