"""
Payment commands and their results.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

from .base import Command, CommandType


@dataclass(frozen=True)
class ProcessPaymentCommand(Command):
    command_type: ClassVar[CommandType] = CommandType.PROCESS_PAYMENT

    order_id: str
    payment_method: str
    amount: int
    customer_id: Optional[str] = None
    bank_code: Optional[str] = None
    language: str = "vn"
    return_url: Optional[str] = None
    client_ip: Optional[str] = None

    def validate(self) -> None:
        self._require(bool(self.order_id and self.order_id.strip()), "Order ID is required", "order_id")
        self._require(self.amount is not None and self.amount > 0, "Amount must be positive", "amount")
        self._require(bool(self.payment_method and self.payment_method.strip()), "Payment method is required", "payment_method")


@dataclass(frozen=True)
class PaymentProcessingResult:
    success: bool
    message: str
    order_id: Optional[str] = None
    transaction_id: Optional[str] = None
    payment_url: Optional[str] = None
    error_code: Optional[str] = None
