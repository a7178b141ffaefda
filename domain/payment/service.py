"""
支付领域服务 - 与具体网关无关的支付契约

订单与命令层只依赖 PaymentDomainService；具体实现（VNPay、货到付款等）
由工厂按支付方式与地区选择。
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from .entity import PaymentMethod, PaymentStatus
from .value_objects import DomainPaymentRequest, DomainRefundRequest, PaymentResult, RefundResult


@runtime_checkable
class PaymentDomainService(Protocol):
    payment_method: PaymentMethod
    # Whether the customer must be redirected and the outcome arrives by callback
    requires_redirect: bool

    def process_payment(self, request: DomainPaymentRequest) -> PaymentResult: ...

    def get_payment_status(self, transaction_id: str) -> PaymentStatus: ...

    def process_refund(self, request: DomainRefundRequest) -> RefundResult: ...

    def validate_transaction(self, transaction_id: str) -> bool: ...

    def payment_method_name(self) -> str: ...


class CashOnDeliveryPaymentService:
    """货到付款：无网关交互，下单即视为支付方式确认"""

    payment_method = PaymentMethod.COD
    requires_redirect = False

    def process_payment(self, request: DomainPaymentRequest) -> PaymentResult:
        return PaymentResult.succeeded(
            transaction_id=f"COD-{request.order_id}",
            message="Cash on delivery confirmed",
        )

    def get_payment_status(self, transaction_id: str) -> PaymentStatus:
        # 现金在交付时收取
        return PaymentStatus.PENDING

    def process_refund(self, request: DomainRefundRequest) -> RefundResult:
        return RefundResult.succeeded(
            amount=request.amount,
            transaction_id=request.transaction_id,
            refund_id=None,
            method=PaymentMethod.COD.value,
            completion_days=0,
        )

    def validate_transaction(self, transaction_id: str) -> bool:
        return transaction_id.startswith("COD-")

    def payment_method_name(self) -> str:
        return PaymentMethod.COD.display_name
