"""
Order commands and their results.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional, Tuple

from domain.order.entity import DeliveryInfo

from .base import Command, CommandType


@dataclass(frozen=True)
class OrderLine:
    product_id: str
    quantity: int
    unit_price: int


@dataclass(frozen=True)
class PlaceOrderCommand(Command):
    command_type: ClassVar[CommandType] = CommandType.PLACE_ORDER

    customer_id: str
    items: Tuple[OrderLine, ...]
    delivery_info: Optional[DeliveryInfo]
    payment_method: str

    def validate(self) -> None:
        self._require(bool(self.customer_id and self.customer_id.strip()), "Customer ID is required", "customer_id")
        self._require(bool(self.items), "Order items are required", "items")
        self._require(self.delivery_info is not None, "Delivery information is required", "delivery_info")
        self._require(bool(self.payment_method and self.payment_method.strip()), "Payment method is required", "payment_method")
        for line in self.items:
            self._require(line.quantity > 0, "Item quantity must be positive", "quantity")
            self._require(line.unit_price >= 0, "Item price cannot be negative", "unit_price")


@dataclass(frozen=True)
class CancelOrderCommand(Command):
    command_type: ClassVar[CommandType] = CommandType.CANCEL_ORDER

    order_id: str
    requested_by: str
    reason: Optional[str] = None

    def validate(self) -> None:
        self._require(bool(self.order_id and self.order_id.strip()), "Order ID is required", "order_id")
        self._require(bool(self.requested_by and self.requested_by.strip()), "Requested by is required", "requested_by")


@dataclass(frozen=True)
class OrderCreationResult:
    success: bool
    message: str
    order_id: Optional[str] = None
    total_amount: int = 0


@dataclass(frozen=True)
class CancellationResult:
    success: bool
    message: str
    order_id: Optional[str] = None
    refund_amount: int = 0
    refund_id: Optional[str] = None
