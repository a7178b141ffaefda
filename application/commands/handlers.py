"""
Handlers for order and payment commands.

Expected failures (business rule violations, gateway rejections) come back as
failure results; anything else propagates to the bus, which wraps it.
"""
from __future__ import annotations

from typing import Optional

from core.logging_config import get_logger
from domain.common.events import DomainEventPublisher
from domain.common.exceptions import BusinessException
from domain.order.entity import Order, OrderItem
from domain.order.events import OrderCancelledEvent, OrderCreatedEvent
from domain.order.service import OrderDomainService
from domain.payment.entity import PaymentMethod, PaymentTransaction
from domain.payment.events import PaymentFailedEvent, PaymentProcessedEvent
from domain.payment.factory import PaymentServiceFactoryCoordinator
from domain.payment.repository import PaymentTransactionRepository
from domain.payment.value_objects import DomainPaymentRequest, DomainRefundRequest
from shared.codes.payment_codes import ORDER_NOT_PAYABLE, PAYMENT_METHOD_MISMATCH

from .base import CommandHandler, CommandType
from .orders import CancelOrderCommand, CancellationResult, OrderCreationResult, PlaceOrderCommand
from .payments import PaymentProcessingResult, ProcessPaymentCommand


logger = get_logger(__name__)

HANDLER_PRIORITY = 10
PROCESSING_ERROR = "PROCESSING_ERROR"


class PlaceOrderCommandHandler(CommandHandler[PlaceOrderCommand, OrderCreationResult]):
    handles = CommandType.PLACE_ORDER
    priority = HANDLER_PRIORITY

    def __init__(self, order_service: OrderDomainService, publisher: DomainEventPublisher) -> None:
        self.order_service = order_service
        self.publisher = publisher

    def handle(self, command: PlaceOrderCommand) -> OrderCreationResult:
        try:
            order = self.order_service.place_order(
                customer_id=command.customer_id,
                items=[OrderItem(line.product_id, line.quantity, line.unit_price) for line in command.items],
                delivery_info=command.delivery_info,
                payment_method=PaymentMethod.parse(command.payment_method),
            )
        except BusinessException as exc:
            logger.warning("place_order_rejected", customer_id=command.customer_id, reason=exc.message)
            return OrderCreationResult(success=False, message=f"Failed to create order: {exc.message}")

        self.publisher.publish(
            OrderCreatedEvent(order_id=order.order_id, customer_id=order.customer_id, total_amount=order.total_amount)
        )
        logger.info("order_created", order_id=order.order_id, total_amount=order.total_amount)
        return OrderCreationResult(
            success=True,
            message="Order created successfully",
            order_id=order.order_id,
            total_amount=order.total_amount,
        )


class ProcessPaymentCommandHandler(CommandHandler[ProcessPaymentCommand, PaymentProcessingResult]):
    handles = CommandType.PROCESS_PAYMENT
    priority = HANDLER_PRIORITY

    def __init__(
        self,
        order_service: OrderDomainService,
        coordinator: PaymentServiceFactoryCoordinator,
        transactions: PaymentTransactionRepository,
        publisher: DomainEventPublisher,
        *,
        region: Optional[str] = None,
    ) -> None:
        self.order_service = order_service
        self.coordinator = coordinator
        self.transactions = transactions
        self.publisher = publisher
        self.region = region

    def handle(self, command: ProcessPaymentCommand) -> PaymentProcessingResult:
        method = PaymentMethod.parse(command.payment_method)
        order = self.order_service.find_order(command.order_id)
        if order is None or not order.can_process_payment():
            return PaymentProcessingResult(
                success=False,
                message="Order cannot be paid",
                order_id=command.order_id,
                error_code=ORDER_NOT_PAYABLE,
            )
        if method != order.payment_method:
            logger.warning(
                "process_payment_method_mismatch",
                order_id=order.order_id,
                requested=method.value,
                order_method=order.payment_method.value,
            )
            return PaymentProcessingResult(
                success=False,
                message=f"Payment method {method.value} does not match order payment method "
                f"{order.payment_method.value}",
                order_id=command.order_id,
                error_code=PAYMENT_METHOD_MISMATCH,
            )

        # Misconfiguration surfaces as UnsupportedPaymentMethodException, not a failed payment
        service = self.coordinator.get_payment_service(method, self.region)
        try:
            result = service.process_payment(
                DomainPaymentRequest(
                    order_id=command.order_id,
                    amount=command.amount,
                    customer_id=command.customer_id,
                    bank_code=command.bank_code,
                    language=command.language,
                    return_url=command.return_url,
                    client_ip=command.client_ip,
                )
            )
        except Exception as exc:
            logger.error("process_payment_error", order_id=command.order_id, error=str(exc))
            self.publisher.publish(
                PaymentFailedEvent(
                    order_id=command.order_id,
                    payment_method=method.value,
                    amount=command.amount,
                    error_message=str(exc),
                    error_code=PROCESSING_ERROR,
                )
            )
            return PaymentProcessingResult(
                success=False,
                message=f"Payment processing failed: {exc}",
                order_id=command.order_id,
                error_code=PROCESSING_ERROR,
            )

        if not result.success:
            self.publisher.publish(
                PaymentFailedEvent(
                    order_id=command.order_id,
                    payment_method=method.value,
                    amount=command.amount,
                    error_message=result.message,
                    error_code=result.error_code,
                )
            )
            return PaymentProcessingResult(
                success=False,
                message=result.message or "Payment failed",
                order_id=command.order_id,
                error_code=result.error_code,
            )

        if service.requires_redirect and result.transaction_id:
            self.transactions.save(
                PaymentTransaction(
                    transaction_id=result.transaction_id,
                    order_id=command.order_id,
                    amount=command.amount,
                    payment_method=method,
                    gateway_create_date=result.gateway_create_date,
                )
            )

        self.publisher.publish(
            PaymentProcessedEvent(
                order_id=command.order_id,
                payment_method=method.value,
                amount=command.amount,
                transaction_id=result.transaction_id,
                successful=True,
                requires_callback=service.requires_redirect,
            )
        )
        return PaymentProcessingResult(
            success=True,
            message=result.message or "Payment created successfully",
            order_id=command.order_id,
            transaction_id=result.transaction_id,
            payment_url=result.payment_url,
        )


class CancelOrderCommandHandler(CommandHandler[CancelOrderCommand, CancellationResult]):
    handles = CommandType.CANCEL_ORDER
    priority = HANDLER_PRIORITY

    def __init__(
        self,
        order_service: OrderDomainService,
        coordinator: PaymentServiceFactoryCoordinator,
        transactions: PaymentTransactionRepository,
        publisher: DomainEventPublisher,
        *,
        refund_window_days: int = 30,
    ) -> None:
        self.order_service = order_service
        self.coordinator = coordinator
        self.transactions = transactions
        self.publisher = publisher
        self.refund_window_days = refund_window_days

    def _paid_transaction(self, order: Order) -> Optional[PaymentTransaction]:
        paid = [t for t in self.transactions.find_by_order_id(order.order_id) if t.is_successful()]
        return paid[-1] if paid else None

    def handle(self, command: CancelOrderCommand) -> CancellationResult:
        try:
            order = self.order_service.get_order(command.order_id)
            if not order.can_be_cancelled():
                return CancellationResult(
                    success=False,
                    message=f"Failed to cancel order: order in status {order.status.value} cannot be cancelled",
                    order_id=order.order_id,
                )

            refund_amount = 0
            refund_id = None
            if order.requires_refund_on_cancel():
                txn = self._paid_transaction(order)
                if txn is not None and not txn.can_be_refunded(window_days=self.refund_window_days):
                    return self._refund_failed(order, "Refund window has expired")

                service = self.coordinator.get_payment_service(order.payment_method)
                refund = service.process_refund(
                    DomainRefundRequest(
                        order_id=order.order_id,
                        transaction_id=txn.transaction_id if txn else order.order_id,
                        amount=order.total_amount,
                        reason=command.reason or f"Order {order.order_id} cancelled",
                        requested_by=command.requested_by,
                        transaction_date=txn.gateway_create_date if txn else None,
                    )
                )
                if not refund.success:
                    return self._refund_failed(order, refund.message)

                refund_amount = refund.amount
                refund_id = refund.refund_id
                if txn is not None:
                    txn.mark_as_refunded(window_days=self.refund_window_days)
                    self.transactions.save(txn)

            order = self.order_service.cancel_order(order.order_id)
        except BusinessException as exc:
            logger.warning("cancel_order_failed", order_id=command.order_id, reason=exc.message)
            return CancellationResult(
                success=False,
                message=f"Failed to cancel order: {exc.message}",
                order_id=command.order_id,
            )

        self.publisher.publish(
            OrderCancelledEvent(order_id=order.order_id, customer_id=order.customer_id, refund_amount=refund_amount)
        )
        logger.info("order_cancelled", order_id=order.order_id, refund_amount=refund_amount, requested_by=command.requested_by)
        return CancellationResult(
            success=True,
            message="Order cancelled successfully",
            order_id=order.order_id,
            refund_amount=refund_amount,
            refund_id=refund_id,
        )

    def _refund_failed(self, order: Order, reason: Optional[str]) -> CancellationResult:
        logger.warning("cancel_order_refund_failed", order_id=order.order_id, status=order.status.value, reason=reason)
        return CancellationResult(
            success=False,
            message=f"Cannot cancel order - refund failed: {reason}",
            order_id=order.order_id,
        )
