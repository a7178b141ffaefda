"""
Order domain events.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from domain.common.events import DomainEvent


@dataclass(frozen=True)
class OrderCreatedEvent(DomainEvent):
    event_type: ClassVar[str] = "OrderCreated"

    order_id: str
    customer_id: str
    total_amount: int

    def aggregate_id(self) -> str:
        return self.order_id


@dataclass(frozen=True)
class OrderCancelledEvent(DomainEvent):
    event_type: ClassVar[str] = "OrderCancelled"

    order_id: str
    customer_id: str
    refund_amount: int = 0

    def aggregate_id(self) -> str:
        return self.order_id
