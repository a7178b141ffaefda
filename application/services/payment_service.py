"""
Application service orchestrating payment use-cases.

Covers payment initiation, gateway callbacks (IPN and customer return),
status reconciliation and refunds. Order state changes triggered by gateway
outcomes travel as domain events; this service only updates the payment
transaction and publishes.
"""
from __future__ import annotations

from datetime import timedelta
from typing import Mapping, Optional

from application.commands.bus import CommandBus
from application.commands.exceptions import CommandExecutionException
from application.commands.payments import PaymentProcessingResult, ProcessPaymentCommand
from application.dtos.payments import (
    GATEWAY_ERROR,
    GATEWAY_SUCCESS,
    CallbackOutcome,
    CallbackResult,
    PaymentStatusResponse,
    RefundResponse,
)
from application.ports.notification import NotificationPort
from application.ports.payment_gateway import PaymentGateway
from core.logging_config import get_logger
from core.settings import VNPaySettings
from domain.common.events import DomainEventPublisher
from domain.common.exceptions import BusinessException, PaymentTransactionNotFoundException
from domain.order.entity import OrderStatus
from domain.order.events import OrderCancelledEvent
from domain.order.service import OrderDomainService
from domain.payment.entity import PaymentStatus, PaymentTransaction
from domain.payment.events import PaymentFailedEvent, PaymentProcessedEvent
from domain.payment.factory import PaymentServiceFactoryCoordinator
from domain.payment.repository import PaymentTransactionRepository
from domain.payment.value_objects import DomainRefundRequest
from infrastructure.external.payments.vnpay.request_builder import amount_matches, parse_vnpay_date
from shared.codes.payment_codes import (
    IPN_CONFIRM_SUCCESS,
    IPN_INVALID_AMOUNT,
    IPN_INVALID_SIGNATURE,
    IPN_ORDER_ALREADY_CONFIRMED,
    IPN_ORDER_NOT_FOUND,
    IPN_UNKNOWN_ERROR,
    ORDER_NOT_PAYABLE,
    ORIGINAL_PAYMENT_INVALID,
    PAYMENT_ALREADY_REFUNDED,
    REFUND_WINDOW_EXPIRED,
    describe_response_code,
)


logger = get_logger(__name__)


_IPN_BY_OUTCOME = {
    CallbackOutcome.VALID_SUCCESS: IPN_CONFIRM_SUCCESS,
    CallbackOutcome.VALID_FAILURE: IPN_CONFIRM_SUCCESS,
    CallbackOutcome.INVALID_SIGNATURE: IPN_INVALID_SIGNATURE,
    CallbackOutcome.TRANSACTION_NOT_FOUND: IPN_ORDER_NOT_FOUND,
    CallbackOutcome.INVALID_AMOUNT: IPN_INVALID_AMOUNT,
    CallbackOutcome.ALREADY_PROCESSED: IPN_ORDER_ALREADY_CONFIRMED,
}


def ipn_acknowledgement(result: Optional[CallbackResult]) -> dict[str, str]:
    """Body VNPay expects in reply to an IPN call."""
    if result is None:
        return dict(IPN_UNKNOWN_ERROR)
    return dict(_IPN_BY_OUTCOME.get(result.outcome, IPN_UNKNOWN_ERROR))


class PaymentApplicationService:
    def __init__(
        self,
        *,
        gateway: PaymentGateway,
        command_bus: CommandBus,
        order_service: OrderDomainService,
        transactions: PaymentTransactionRepository,
        coordinator: PaymentServiceFactoryCoordinator,
        publisher: DomainEventPublisher,
        notifications: NotificationPort,
        config: VNPaySettings,
    ) -> None:
        self.gateway = gateway
        self.command_bus = command_bus
        self.order_service = order_service
        self.transactions = transactions
        self.coordinator = coordinator
        self.publisher = publisher
        self.notifications = notifications
        self.config = config

    # Initiation

    def initiate_payment(
        self,
        order_id: str,
        *,
        payment_method: Optional[str] = None,
        bank_code: Optional[str] = None,
        language: str = "vn",
        client_ip: Optional[str] = None,
        return_url: Optional[str] = None,
    ) -> PaymentProcessingResult:
        logger.info("payment_initiate_request", order_id=order_id, bank_code=bank_code)
        order = self.order_service.find_order(order_id)
        if order is None or not order.can_process_payment():
            return PaymentProcessingResult(
                success=False,
                message="Order cannot be paid",
                order_id=order_id,
                error_code=ORDER_NOT_PAYABLE,
            )

        command = ProcessPaymentCommand(
            order_id=order.order_id,
            payment_method=payment_method or order.payment_method.value,
            amount=order.total_amount,
            customer_id=order.customer_id,
            bank_code=bank_code,
            language=language,
            return_url=return_url,
            client_ip=client_ip,
        )
        try:
            return self.command_bus.execute(command)
        except CommandExecutionException as exc:
            cause = exc.__cause__
            if isinstance(cause, BusinessException):
                raise cause
            logger.error("payment_initiate_failed", order_id=order_id, error=str(cause))
            return PaymentProcessingResult(
                success=False,
                message=f"Payment initiation failed: {cause}",
                order_id=order_id,
                error_code=GATEWAY_ERROR,
            )

    # Callbacks

    def handle_payment_callback(self, params: Mapping[str, str], *, locale: str = "en") -> CallbackResult:
        """
        Reconcile a gateway callback with the recorded transaction.

        ``locale`` only affects the customer-facing ``message`` of the result;
        events and logs always carry the English reason.
        """
        txn_ref = params.get("vnp_TxnRef")
        code = params.get("vnp_ResponseCode")
        logger.info("payment_callback_received", txn_ref=txn_ref, response_code=code)

        if not self.gateway.validate_payment_callback(params):
            return CallbackResult(
                outcome=CallbackOutcome.INVALID_SIGNATURE,
                transaction_id=txn_ref,
                response_code=code,
                message="Invalid signature",
            )

        txn = self.transactions.get(txn_ref) if txn_ref else None
        if txn is None:
            logger.warning("payment_callback_unknown_transaction", txn_ref=txn_ref)
            return CallbackResult(
                outcome=CallbackOutcome.TRANSACTION_NOT_FOUND,
                transaction_id=txn_ref,
                response_code=code,
                message="Transaction not found",
            )

        if not amount_matches(params.get("vnp_Amount"), txn.amount):
            logger.warning(
                "payment_callback_amount_mismatch",
                txn_ref=txn_ref,
                expected=txn.amount,
                received=params.get("vnp_Amount"),
            )
            return CallbackResult(
                outcome=CallbackOutcome.INVALID_AMOUNT,
                transaction_id=txn_ref,
                order_id=txn.order_id,
                response_code=code,
                message="Invalid amount",
            )

        if txn.is_final_status():
            settled = txn.status in (PaymentStatus.SUCCESS, PaymentStatus.FAILED) and txn.response_code
            return CallbackResult(
                outcome=CallbackOutcome.ALREADY_PROCESSED,
                transaction_id=txn_ref,
                order_id=txn.order_id,
                response_code=txn.response_code,
                payment_status=txn.status.value,
                message=describe_response_code(txn.response_code, locale) if settled else "Transaction already processed",
            )

        self._warn_if_paid_after_expiry(txn, params.get("vnp_PayDate"))

        if code == GATEWAY_SUCCESS:
            txn.mark_as_successful(
                params.get("vnp_TransactionNo"),
                params.get("vnp_PayDate"),
                bank_code=params.get("vnp_BankCode"),
            )
            self.transactions.save(txn)
            self.publisher.publish(
                PaymentProcessedEvent(
                    order_id=txn.order_id,
                    payment_method=txn.payment_method.value,
                    amount=txn.amount,
                    transaction_id=txn.transaction_id,
                    successful=True,
                    requires_callback=False,
                )
            )
            logger.info("payment_callback_success", txn_ref=txn_ref, order_id=txn.order_id)
            return CallbackResult(
                outcome=CallbackOutcome.VALID_SUCCESS,
                transaction_id=txn_ref,
                order_id=txn.order_id,
                response_code=code,
                payment_status=PaymentStatus.SUCCESS.value,
                message=describe_response_code(code, locale),
            )

        reason = describe_response_code(code)
        txn.mark_as_failed(code, f"Payment failed with code: {code}")
        self.transactions.save(txn)
        self.publisher.publish(
            PaymentFailedEvent(
                order_id=txn.order_id,
                payment_method=txn.payment_method.value,
                amount=txn.amount,
                error_message=reason,
                error_code=code,
            )
        )
        logger.info("payment_callback_failure", txn_ref=txn_ref, order_id=txn.order_id, response_code=code)
        return CallbackResult(
            outcome=CallbackOutcome.VALID_FAILURE,
            transaction_id=txn_ref,
            order_id=txn.order_id,
            response_code=code,
            payment_status=PaymentStatus.FAILED.value,
            message=describe_response_code(code, locale),
        )

    def _warn_if_paid_after_expiry(self, txn: PaymentTransaction, pay_date: Optional[str]) -> None:
        created = parse_vnpay_date(txn.gateway_create_date)
        paid = parse_vnpay_date(pay_date)
        if created is None or paid is None:
            return
        if paid > created + timedelta(minutes=self.config.timeout_minutes):
            logger.warning(
                "payment_callback_after_expiry",
                txn_ref=txn.transaction_id,
                created=txn.gateway_create_date,
                paid=pay_date,
            )

    # Status

    def get_transaction(self, transaction_id: str) -> PaymentTransaction:
        txn = self.transactions.get(transaction_id)
        if txn is None:
            raise PaymentTransactionNotFoundException(transaction_id)
        return txn

    def list_order_transactions(self, order_id: str) -> list[PaymentTransaction]:
        self.order_service.get_order(order_id)
        return self.transactions.find_by_order_id(order_id)

    def query_payment_status(
        self,
        transaction_id: str,
        transaction_date: Optional[str] = None,
        *,
        client_ip: Optional[str] = None,
    ) -> PaymentStatusResponse:
        txn = self.transactions.get(transaction_id)
        date = transaction_date or (txn.gateway_create_date if txn else None)
        if not date:
            return PaymentStatusResponse(
                success=False,
                code=ORIGINAL_PAYMENT_INVALID,
                message="Transaction date is required",
                transaction_id=transaction_id,
            )

        response = self.gateway.check_payment_status(transaction_id, date, client_ip=client_ip)
        settled = response.success and response.transaction_status in (None, GATEWAY_SUCCESS)
        if txn is not None and settled and txn.status == PaymentStatus.PENDING:
            txn.mark_as_successful(response.gateway_transaction_no, response.pay_date, bank_code=response.bank_code)
            self.transactions.save(txn)
            self.publisher.publish(
                PaymentProcessedEvent(
                    order_id=txn.order_id,
                    payment_method=txn.payment_method.value,
                    amount=txn.amount,
                    transaction_id=txn.transaction_id,
                    successful=True,
                    requires_callback=False,
                )
            )
            logger.info("payment_status_synced", txn_ref=transaction_id, order_id=txn.order_id)
        return response

    # Refunds

    def process_refund(
        self,
        transaction_id: str,
        *,
        reason: Optional[str] = None,
        requested_by: str = "admin",
    ) -> RefundResponse:
        logger.info("payment_refund_request", txn_ref=transaction_id, requested_by=requested_by)
        txn = self.transactions.get(transaction_id)
        if txn is not None and txn.status == PaymentStatus.REFUNDED:
            return RefundResponse.failure(PAYMENT_ALREADY_REFUNDED, "Payment already refunded", transaction_id=transaction_id)
        if txn is None or not txn.is_successful():
            return RefundResponse.failure(
                ORIGINAL_PAYMENT_INVALID,
                "Original payment not found or not successful",
                transaction_id=transaction_id,
            )
        if not txn.can_be_refunded(window_days=self.config.refund_window_days):
            return RefundResponse.failure(REFUND_WINDOW_EXPIRED, "Refund window has expired", transaction_id=transaction_id)

        service = self.coordinator.get_payment_service(txn.payment_method)
        result = service.process_refund(
            DomainRefundRequest(
                order_id=txn.order_id,
                transaction_id=txn.transaction_id,
                amount=txn.amount,
                reason=reason,
                requested_by=requested_by,
                transaction_date=txn.gateway_create_date,
            )
        )
        if not result.success:
            logger.warning("payment_refund_rejected", txn_ref=transaction_id, reason=result.message)
            return RefundResponse.failure(GATEWAY_ERROR, result.message or "Refund failed", transaction_id=transaction_id)

        txn.mark_as_refunded(window_days=self.config.refund_window_days)
        self.transactions.save(txn)

        order = self.order_service.find_order(txn.order_id)
        if order is not None and order.status in (OrderStatus.CONFIRMED, OrderStatus.SHIPPED):
            order = self.order_service.mark_order_as_refunded(order.order_id)
            self.publisher.publish(
                OrderCancelledEvent(order_id=order.order_id, customer_id=order.customer_id, refund_amount=result.amount)
            )
        self.notifications.send_refund_notification(txn.order_id, result.refund_id, result.amount)
        return RefundResponse(
            success=True,
            code=GATEWAY_SUCCESS,
            message=result.message or "Refund processed successfully",
            refund_id=result.refund_id,
            transaction_id=transaction_id,
            amount=result.amount,
        )
