"""
Notification port used by payment and order flows.

Delivery is fire-and-forget: implementations must not raise.
"""
from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class NotificationPort(Protocol):
    def send_order_confirmation(self, order_id: str, customer_id: str, total_amount: int) -> None: ...

    def send_order_cancellation(self, order_id: str, customer_id: str, refund_amount: int) -> None: ...

    def send_payment_success(self, order_id: str, transaction_id: str, amount: int) -> None: ...

    def send_payment_failure(self, order_id: str, reason: Optional[str]) -> None: ...

    def send_refund_notification(self, order_id: str, refund_id: Optional[str], amount: int) -> None: ...
