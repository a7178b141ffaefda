"""
Immutable payment requests and results exchanged with payment domain services.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from domain.common.exceptions import DomainValidationException


PAYMENT_CREATED_MESSAGE = "Payment created successfully"
REFUND_PROCESSED_MESSAGE = "Refund processed successfully"
REFUND_STATUS_PENDING = "PENDING"
DEFAULT_REFUND_COMPLETION_DAYS = 7


@dataclass(frozen=True)
class DomainPaymentRequest:
    """Gateway-agnostic payment request. ``amount`` is in VND (major units)."""

    order_id: str
    amount: int
    customer_id: Optional[str] = None
    currency: str = "VND"
    bank_code: Optional[str] = None
    language: str = "vn"
    return_url: Optional[str] = None
    client_ip: Optional[str] = None
    order_info: Optional[str] = None

    def __post_init__(self):
        if not self.order_id or not self.order_id.strip():
            raise DomainValidationException("Order ID is required", field="order_id")
        if self.amount is None or self.amount <= 0:
            raise DomainValidationException("Amount must be positive", field="amount")


@dataclass(frozen=True)
class DomainRefundRequest:
    order_id: str
    transaction_id: str
    amount: int
    reason: Optional[str] = None
    requested_by: Optional[str] = None
    # yyyyMMddHHmmss of the original payment, required by the gateway
    transaction_date: Optional[str] = None

    def __post_init__(self):
        if not self.transaction_id:
            raise DomainValidationException("Transaction ID is required", field="transaction_id")
        if self.amount is None or self.amount <= 0:
            raise DomainValidationException("Amount must be positive", field="amount")


@dataclass(frozen=True)
class PaymentResult:
    success: bool
    transaction_id: Optional[str] = None
    payment_url: Optional[str] = None
    error_code: Optional[str] = None
    message: Optional[str] = None
    gateway_create_date: Optional[str] = None

    @classmethod
    def succeeded(
        cls,
        transaction_id: str,
        payment_url: Optional[str] = None,
        *,
        gateway_create_date: Optional[str] = None,
        message: str = PAYMENT_CREATED_MESSAGE,
    ) -> "PaymentResult":
        return cls(
            success=True,
            transaction_id=transaction_id,
            payment_url=payment_url,
            message=message,
            gateway_create_date=gateway_create_date,
        )

    @classmethod
    def failed(cls, message: str, error_code: Optional[str] = None) -> "PaymentResult":
        return cls(success=False, error_code=error_code, message=message)


@dataclass(frozen=True)
class RefundResult:
    success: bool
    transaction_id: Optional[str] = None
    refund_id: Optional[str] = None
    amount: int = 0
    status: Optional[str] = None
    method: Optional[str] = None
    message: Optional[str] = None
    processed_at: Optional[datetime] = None
    expected_completion: Optional[datetime] = None

    @classmethod
    def succeeded(
        cls,
        amount: int,
        transaction_id: str,
        refund_id: Optional[str],
        *,
        method: str = "VNPAY",
        completion_days: int = DEFAULT_REFUND_COMPLETION_DAYS,
        processed_at: Optional[datetime] = None,
    ) -> "RefundResult":
        processed = processed_at or datetime.now(timezone.utc)
        return cls(
            success=True,
            transaction_id=transaction_id,
            refund_id=refund_id,
            amount=amount,
            status=REFUND_STATUS_PENDING,
            method=method,
            message=REFUND_PROCESSED_MESSAGE,
            processed_at=processed,
            expected_completion=processed + timedelta(days=completion_days),
        )

    @classmethod
    def failed(cls, message: str, *, transaction_id: Optional[str] = None) -> "RefundResult":
        return cls(success=False, transaction_id=transaction_id, message=message)
