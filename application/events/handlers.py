"""
Downstream reactions to order and payment events: order state
reconciliation, compensating refunds and customer notifications.
"""
from __future__ import annotations

from typing import Optional

from application.ports.notification import NotificationPort
from core.logging_config import get_logger
from domain.order.entity import OrderStatus
from domain.order.events import OrderCancelledEvent, OrderCreatedEvent
from domain.order.service import OrderDomainService
from domain.payment.events import PaymentFailedEvent, PaymentProcessedEvent
from domain.payment.factory import PaymentServiceFactoryCoordinator
from domain.payment.repository import PaymentTransactionRepository
from domain.payment.value_objects import DomainRefundRequest

from .publisher import DomainEventHandler


logger = get_logger(__name__)

LATE_PAYMENT_REFUND_REASON = "Payment received for cancelled order"


class OrderCreatedEventHandler(DomainEventHandler):
    event_type = OrderCreatedEvent.event_type
    priority = 10

    def __init__(self, notifications: NotificationPort) -> None:
        self.notifications = notifications

    def handle(self, event: OrderCreatedEvent) -> None:
        self.notifications.send_order_confirmation(event.order_id, event.customer_id, event.total_amount)


class PaymentProcessedEventHandler(DomainEventHandler):
    """Confirms paid orders; refunds payments that land on cancelled orders."""

    event_type = PaymentProcessedEvent.event_type
    priority = 20

    def __init__(
        self,
        order_service: OrderDomainService,
        coordinator: PaymentServiceFactoryCoordinator,
        notifications: NotificationPort,
        transactions: Optional[PaymentTransactionRepository] = None,
    ) -> None:
        self.order_service = order_service
        self.coordinator = coordinator
        self.notifications = notifications
        self.transactions = transactions

    def handle(self, event: PaymentProcessedEvent) -> None:
        if not event.successful or event.requires_callback:
            logger.debug("payment_awaiting_callback", order_id=event.order_id, transaction_id=event.transaction_id)
            return

        order = self.order_service.find_order(event.order_id)
        if order is None:
            logger.warning("payment_for_unknown_order", order_id=event.order_id, transaction_id=event.transaction_id)
            return

        if order.can_process_payment():
            self.order_service.mark_order_as_paid(order.order_id)
            self.notifications.send_payment_success(order.order_id, event.transaction_id or "", event.amount)
            return

        if order.status == OrderStatus.CANCELLED and event.transaction_id:
            self._refund_late_payment(event)
            return

        logger.info("payment_already_applied", order_id=order.order_id, status=order.status.value)

    def _refund_late_payment(self, event: PaymentProcessedEvent) -> None:
        txn = self.transactions.get(event.transaction_id) if self.transactions else None
        service = self.coordinator.get_payment_service(event.payment_method)
        result = service.process_refund(
            DomainRefundRequest(
                order_id=event.order_id,
                transaction_id=event.transaction_id,
                amount=event.amount,
                reason=LATE_PAYMENT_REFUND_REASON,
                requested_by="system",
                transaction_date=txn.gateway_create_date if txn else None,
            )
        )
        if result.success:
            logger.info("late_payment_refunded", order_id=event.order_id, refund_id=result.refund_id)
            if txn is not None and txn.can_be_refunded():
                txn.mark_as_refunded()
                self.transactions.save(txn)
            self.notifications.send_refund_notification(event.order_id, result.refund_id, result.amount)
        else:
            logger.error("late_payment_refund_failed", order_id=event.order_id, reason=result.message)


class PaymentFailedEventHandler(DomainEventHandler):
    event_type = PaymentFailedEvent.event_type
    priority = 20

    def __init__(self, order_service: OrderDomainService, notifications: NotificationPort) -> None:
        self.order_service = order_service
        self.notifications = notifications

    def handle(self, event: PaymentFailedEvent) -> None:
        if self.order_service.find_order(event.order_id) is not None:
            self.order_service.mark_order_payment_failed(event.order_id)
        self.notifications.send_payment_failure(event.order_id, event.error_message)


class OrderCancelledEventHandler(DomainEventHandler):
    event_type = OrderCancelledEvent.event_type
    priority = 50

    def __init__(self, notifications: NotificationPort) -> None:
        self.notifications = notifications

    def handle(self, event: OrderCancelledEvent) -> None:
        self.notifications.send_order_cancellation(event.order_id, event.customer_id, event.refund_amount)
