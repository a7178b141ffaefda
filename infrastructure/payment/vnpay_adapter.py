"""
VNPay implementation of the payment domain service.

Translates domain requests into gateway DTOs and gateway responses back into
domain results and statuses.
"""
from __future__ import annotations

from typing import Optional

from application.dtos.payments import GATEWAY_SUCCESS, GatewayPaymentRequest, GatewayRefundRequest
from application.ports.payment_gateway import PaymentGateway
from core.logging_config import get_logger
from core.settings import VNPaySettings
from domain.payment.entity import PaymentMethod, PaymentStatus
from domain.payment.repository import PaymentTransactionRepository
from domain.payment.value_objects import (
    DEFAULT_REFUND_COMPLETION_DAYS,
    DomainPaymentRequest,
    DomainRefundRequest,
    PaymentResult,
    RefundResult,
)
from infrastructure.external.payments.vnpay.request_builder import format_vnpay_date, vnpay_now
from shared.codes.payment_codes import PROVIDER_STATUS_TO_INTERNAL


logger = get_logger(__name__)

DEFAULT_REFUND_REQUESTER = "admin"


def map_query_status(code: Optional[str]) -> PaymentStatus:
    """querydr result code → domain status; unknown codes stay PENDING."""
    if code is None:
        return PaymentStatus.FAILED
    return PaymentStatus(PROVIDER_STATUS_TO_INTERNAL["vnpay"].get(code, PaymentStatus.PENDING.value))


class VNPayPaymentAdapter:
    payment_method = PaymentMethod.VNPAY
    requires_redirect = True

    def __init__(
        self,
        gateway: PaymentGateway,
        *,
        transactions: Optional[PaymentTransactionRepository] = None,
        config: Optional[VNPaySettings] = None,
    ) -> None:
        self.gateway = gateway
        self.transactions = transactions
        self.refund_completion_days = (
            config.refund_completion_days if config else DEFAULT_REFUND_COMPLETION_DAYS
        )
        self.refund_created_by = config.refund_created_by if config else None

    def process_payment(self, request: DomainPaymentRequest) -> PaymentResult:
        logger.info("vnpay_adapter_process_payment", order_id=request.order_id, amount=request.amount)
        try:
            response = self.gateway.initiate_payment(
                GatewayPaymentRequest(
                    order_id=request.order_id,
                    amount=request.amount,
                    currency=request.currency,
                    bank_code=request.bank_code,
                    language=request.language or "vn",
                    order_info=request.order_info,
                    return_url=request.return_url,
                    client_ip=request.client_ip,
                )
            )
        except Exception as exc:
            logger.error("vnpay_adapter_payment_failed", order_id=request.order_id, error=str(exc))
            return PaymentResult.failed(f"Payment processing failed: {exc}", "PAYMENT_ERROR")

        if response is None:
            return PaymentResult.failed("No response from VNPay service", "NO_RESPONSE")
        if response.code != GATEWAY_SUCCESS:
            return PaymentResult.failed(response.message or "Payment failed", response.code)
        return PaymentResult.succeeded(
            transaction_id=response.transaction_id,
            payment_url=response.payment_url,
            gateway_create_date=response.create_date,
        )

    def _transaction_date(self, transaction_id: str) -> str:
        if self.transactions is not None:
            txn = self.transactions.get(transaction_id)
            if txn is not None and txn.gateway_create_date:
                return txn.gateway_create_date
            if txn is not None:
                return format_vnpay_date(txn.created_at)
        return vnpay_now().strftime("%Y%m%d%H%M%S")

    def get_payment_status(self, transaction_id: str) -> PaymentStatus:
        try:
            response = self.gateway.check_payment_status(transaction_id, self._transaction_date(transaction_id))
        except Exception as exc:
            logger.error("vnpay_adapter_status_failed", transaction_id=transaction_id, error=str(exc))
            return PaymentStatus.FAILED
        if response is None:
            return PaymentStatus.FAILED
        # A successful query reports the payment's own state separately
        code = response.transaction_status if response.success and response.transaction_status else response.code
        status = map_query_status(code)
        logger.debug("vnpay_adapter_status", transaction_id=transaction_id, code=code, status=status.value)
        return status

    def process_refund(self, request: DomainRefundRequest) -> RefundResult:
        logger.info("vnpay_adapter_process_refund", order_id=request.order_id, amount=request.amount)
        try:
            response = self.gateway.process_refund(
                GatewayRefundRequest(
                    order_id=request.transaction_id,
                    amount=request.amount,
                    transaction_date=request.transaction_date or self._transaction_date(request.transaction_id),
                    reason=request.reason,
                    created_by=request.requested_by or self.refund_created_by or DEFAULT_REFUND_REQUESTER,
                )
            )
        except Exception as exc:
            logger.error("vnpay_adapter_refund_failed", order_id=request.order_id, error=str(exc))
            return RefundResult.failed(f"Refund processing failed: {exc}", transaction_id=request.transaction_id)

        if response is None:
            return RefundResult.failed("No response from VNPay refund service")
        if not response.success:
            return RefundResult.failed(
                response.message or "Refund processing failed",
                transaction_id=request.transaction_id,
            )
        return RefundResult.succeeded(
            amount=request.amount,
            transaction_id=response.transaction_id or request.transaction_id,
            refund_id=response.refund_id,
            completion_days=self.refund_completion_days,
        )

    def validate_transaction(self, transaction_id: str) -> bool:
        return self.get_payment_status(transaction_id) == PaymentStatus.SUCCESS

    def payment_method_name(self) -> str:
        return PaymentMethod.VNPAY.value
