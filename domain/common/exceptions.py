"""领域层业务异常定义，供领域与基础设施使用。

核心（core）层仅负责全局映射与异常处理，尽量避免领域层反向依赖核心层。
"""
from __future__ import annotations

from typing import Optional
from shared.codes import BusinessCode


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class DomainValidationException(BusinessException):
    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="DomainValidationError",
            details=details,
            field=field,
        )


class OrderNotFoundException(BusinessException):
    def __init__(self, order_id: Optional[str] = None):
        details = {"order_id": order_id} if order_id else None
        super().__init__(
            code=BusinessCode.ORDER_NOT_FOUND,
            message=f"Order not found: {order_id}",
            error_type="OrderNotFound",
            details=details,
        )


class InvalidOrderStateException(BusinessException):
    def __init__(self, order_id: str, status: str, action: str):
        super().__init__(
            code=BusinessCode.ORDER_STATE_INVALID,
            message=f"Cannot {action} order {order_id} in status {status}",
            error_type="InvalidOrderState",
            details={"order_id": order_id, "status": status, "action": action},
            field="status",
        )


class PaymentTransactionNotFoundException(BusinessException):
    def __init__(self, transaction_id: str):
        super().__init__(
            code=BusinessCode.PAYMENT_TRANSACTION_NOT_FOUND,
            message=f"Payment transaction not found: {transaction_id}",
            error_type="PaymentTransactionNotFound",
            details={"transaction_id": transaction_id},
        )


class PaymentNotRefundableException(BusinessException):
    def __init__(self, transaction_id: str, status: str):
        super().__init__(
            code=BusinessCode.PAYMENT_NOT_REFUNDABLE,
            message=f"Transaction cannot be refunded: {transaction_id}",
            error_type="PaymentNotRefundable",
            details={"transaction_id": transaction_id, "status": status},
        )


class UnsupportedPaymentMethodException(BusinessException):
    """No payment service is configured for the requested method/region.

    Distinct from gateway failures so callers can tell misconfiguration
    apart from a rejected payment.
    """

    def __init__(self, message: str, *, payment_method: Optional[str] = None, region: Optional[str] = None):
        details = {k: v for k, v in {"payment_method": payment_method, "region": region}.items() if v}
        super().__init__(
            code=BusinessCode.PAYMENT_METHOD_UNSUPPORTED,
            message=message,
            error_type="UnsupportedPaymentMethod",
            details=details or None,
            field="payment_method",
        )
