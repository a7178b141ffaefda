"""
Payment domain events.

Dataclass events record important payment lifecycle facts for downstream handling
(order reconciliation, notifications). Domain remains free of infrastructure imports.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

from domain.common.events import DomainEvent


@dataclass(frozen=True)
class PaymentProcessedEvent(DomainEvent):
    event_type: ClassVar[str] = "PaymentProcessed"

    order_id: str
    payment_method: str
    amount: int
    transaction_id: Optional[str]
    successful: bool = True
    # True while the outcome still depends on a gateway callback (redirect flows)
    requires_callback: bool = False

    def aggregate_id(self) -> str:
        return self.order_id


@dataclass(frozen=True)
class PaymentFailedEvent(DomainEvent):
    event_type: ClassVar[str] = "PaymentFailed"

    order_id: str
    payment_method: str
    amount: int
    error_message: Optional[str] = None
    error_code: Optional[str] = None

    def aggregate_id(self) -> str:
        return self.order_id
