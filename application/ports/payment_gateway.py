"""
Payment gateway port (application/ports) exposing a replaceable protocol.

Application depends on this Protocol; infrastructure implements adapters.
"""
from __future__ import annotations

from typing import Mapping, Optional, Protocol, runtime_checkable

from application.dtos.payments import (
    GatewayPaymentRequest,
    GatewayRefundRequest,
    PaymentResponse,
    PaymentStatusResponse,
    RefundResponse,
)


@runtime_checkable
class PaymentGateway(Protocol):
    """Gateway protocol for redirect-based payment providers.

    Implementations are synchronous and never raise for gateway or network
    failures: those come back as failure-shaped responses.
    """

    provider: str

    def initiate_payment(self, request: Optional[GatewayPaymentRequest]) -> PaymentResponse: ...

    def check_payment_status(
        self,
        transaction_id: str,
        transaction_date: str,
        *,
        client_ip: Optional[str] = None,
    ) -> PaymentStatusResponse: ...

    def process_refund(self, request: GatewayRefundRequest) -> RefundResponse: ...

    def validate_payment_callback(self, params: Mapping[str, str]) -> bool: ...

    def close(self) -> None: ...
