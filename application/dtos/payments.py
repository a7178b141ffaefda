"""
Payment DTOs (Pydantic v2) used at application boundaries.

Gateway-facing requests/responses exchanged with the VNPay client, plus the
HTTP payloads accepted by the payment routes.
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from domain.payment.entity import PaymentTransaction
from shared.codes.payment_codes import GATEWAY_ERROR, GATEWAY_SUCCESS


class GatewayPaymentRequest(BaseModel):
    order_id: str = Field(min_length=1)
    # VND, major units; multiplied by 100 on the wire
    amount: int = Field(gt=0)
    currency: str = "VND"
    bank_code: Optional[str] = None
    language: str = "vn"
    order_info: Optional[str] = None
    return_url: Optional[str] = None
    client_ip: Optional[str] = None
    expire_date: Optional[str] = None

    @field_validator("currency")
    @classmethod
    def _only_vnd(cls, v: str) -> str:
        u = (v or "").upper()
        if u != "VND":
            raise ValueError("VNPay only accepts VND")
        return u


class PaymentResponse(BaseModel):
    success: bool
    code: str
    message: str
    payment_url: Optional[str] = None
    transaction_id: Optional[str] = None
    create_date: Optional[str] = None

    @classmethod
    def ok(cls, payment_url: str, transaction_id: str, *, create_date: Optional[str] = None) -> "PaymentResponse":
        return cls(
            success=True,
            code=GATEWAY_SUCCESS,
            message="Success",
            payment_url=payment_url,
            transaction_id=transaction_id,
            create_date=create_date,
        )

    @classmethod
    def failure(cls, code: str, message: str) -> "PaymentResponse":
        return cls(success=False, code=code, message=message)


class PaymentStatusResponse(BaseModel):
    success: bool
    code: str
    message: str
    transaction_id: Optional[str] = None
    transaction_status: Optional[str] = None
    gateway_transaction_no: Optional[str] = None
    amount: Optional[int] = None
    bank_code: Optional[str] = None
    pay_date: Optional[str] = None


class GatewayRefundRequest(BaseModel):
    order_id: str = Field(min_length=1)
    amount: int = Field(gt=0)
    transaction_date: str = Field(min_length=1)
    reason: Optional[str] = None
    created_by: Optional[str] = None
    transaction_no: Optional[str] = None
    client_ip: Optional[str] = None


class RefundResponse(BaseModel):
    success: bool
    code: str
    message: str
    refund_id: Optional[str] = None
    transaction_id: Optional[str] = None
    amount: Optional[int] = None

    @classmethod
    def failure(cls, code: str, message: str, *, transaction_id: Optional[str] = None) -> "RefundResponse":
        return cls(success=False, code=code, message=message, transaction_id=transaction_id)


class CallbackOutcome(str, Enum):
    VALID_SUCCESS = "VALID_SUCCESS"
    VALID_FAILURE = "VALID_FAILURE"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    TRANSACTION_NOT_FOUND = "TRANSACTION_NOT_FOUND"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    ALREADY_PROCESSED = "ALREADY_PROCESSED"


class CallbackResult(BaseModel):
    outcome: CallbackOutcome
    transaction_id: Optional[str] = None
    order_id: Optional[str] = None
    response_code: Optional[str] = None
    payment_status: Optional[str] = None
    message: str = ""


# HTTP payloads


class ProcessPaymentPayload(BaseModel):
    order_id: str = Field(min_length=1)
    # Defaults to the method chosen when the order was placed
    payment_method: Optional[str] = None
    bank_code: Optional[str] = None
    language: str = "vn"
    return_url: Optional[str] = None


class RefundPayload(BaseModel):
    reason: Optional[str] = None
    requested_by: str = Field(default="admin", min_length=1)


class IpnAcknowledgement(BaseModel):
    RspCode: str
    Message: str

    @classmethod
    def of(cls, body: dict[str, Any]) -> "IpnAcknowledgement":
        return cls(**body)


class PaymentTransactionDTO(BaseModel):
    """Locally recorded payment attempt."""

    transaction_id: str
    order_id: str
    amount: int
    payment_method: str
    status: str
    response_code: Optional[str] = None
    response_message: Optional[str] = None
    gateway_transaction_no: Optional[str] = None
    bank_code: Optional[str] = None
    pay_date: Optional[str] = None
    created_at: datetime
    paid_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, txn: PaymentTransaction) -> "PaymentTransactionDTO":
        return cls(
            transaction_id=txn.transaction_id,
            order_id=txn.order_id,
            amount=txn.amount,
            payment_method=txn.payment_method.value,
            status=txn.status.value,
            response_code=txn.response_code,
            response_message=txn.response_message,
            gateway_transaction_no=txn.gateway_transaction_no,
            bank_code=txn.bank_code,
            pay_date=txn.pay_date,
            created_at=txn.created_at,
            paid_at=txn.paid_at,
            refunded_at=txn.refunded_at,
        )
