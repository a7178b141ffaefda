"""
Notification adapter that records customer notifications as structured logs.
"""
from __future__ import annotations

from typing import Any, Optional

from core.logging_config import get_logger


logger = get_logger(__name__)


class LoggingNotificationService:
    channel = "log"

    def _emit(self, event: str, **kwargs: Any) -> None:
        try:
            logger.info(event, channel=self.channel, **kwargs)
        except Exception:  # pragma: no cover
            logger.exception("notification_emit_failed", notification=event)

    def send_order_confirmation(self, order_id: str, customer_id: str, total_amount: int) -> None:
        self._emit("notify_order_confirmation", order_id=order_id, customer_id=customer_id, total_amount=total_amount)

    def send_order_cancellation(self, order_id: str, customer_id: str, refund_amount: int) -> None:
        self._emit("notify_order_cancellation", order_id=order_id, customer_id=customer_id, refund_amount=refund_amount)

    def send_payment_success(self, order_id: str, transaction_id: str, amount: int) -> None:
        self._emit("notify_payment_success", order_id=order_id, transaction_id=transaction_id, amount=amount)

    def send_payment_failure(self, order_id: str, reason: Optional[str]) -> None:
        self._emit("notify_payment_failure", order_id=order_id, reason=reason)

    def send_refund_notification(self, order_id: str, refund_id: Optional[str], amount: int) -> None:
        self._emit("notify_refund", order_id=order_id, refund_id=refund_id, amount=amount)
