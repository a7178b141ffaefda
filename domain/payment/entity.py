"""
支付领域实体 - 支付方式、支付状态与支付交易聚合
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from domain.common.exceptions import DomainValidationException, PaymentNotRefundableException


GATEWAY_SUCCESS_CODE = "00"
DEFAULT_REFUND_WINDOW_DAYS = 30


class PaymentMethod(str, Enum):
    """支付方式枚举"""
    VNPAY = "VNPAY"
    COD = "COD"
    BANK_TRANSFER = "BANK_TRANSFER"
    CREDIT_CARD = "CREDIT_CARD"

    @property
    def display_name(self) -> str:
        return _METHOD_DISPLAY_NAMES[self]

    @classmethod
    def parse(cls, value: "str | PaymentMethod") -> "PaymentMethod":
        if isinstance(value, PaymentMethod):
            return value
        try:
            return cls((value or "").strip().upper())
        except ValueError:
            raise DomainValidationException(
                f"Unknown payment method: {value}",
                field="payment_method",
            ) from None


_METHOD_DISPLAY_NAMES = {
    PaymentMethod.VNPAY: "VNPay Electronic Payment",
    PaymentMethod.COD: "Cash on Delivery",
    PaymentMethod.BANK_TRANSFER: "Bank Transfer",
    PaymentMethod.CREDIT_CARD: "Credit Card",
}


class PaymentStatus(str, Enum):
    """支付状态枚举"""
    PENDING = "PENDING"           # 待支付
    PROCESSING = "PROCESSING"     # 处理中
    SUCCESS = "SUCCESS"           # 支付成功
    FAILED = "FAILED"             # 支付失败
    CANCELLED = "CANCELLED"       # 已取消
    REFUNDED = "REFUNDED"         # 已退款


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """确保时间为 UTC 时区"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass
class PaymentTransaction:
    """
    支付交易聚合 - 记录一次网关支付尝试

    业务规则：
    1. transaction_id 即网关 TxnRef（订单号 + 随机后缀），每次尝试唯一
    2. 金额必须大于0
    3. 只有成功（状态 SUCCESS 且响应码 00）的交易才可退款
    4. 退款必须在创建后 30 天内发起
    """

    transaction_id: str
    order_id: str
    amount: int
    payment_method: PaymentMethod = PaymentMethod.VNPAY
    status: PaymentStatus = PaymentStatus.PENDING

    response_code: Optional[str] = None
    response_message: Optional[str] = None
    gateway_transaction_no: Optional[str] = None
    bank_code: Optional[str] = None
    # 网关时间格式 yyyyMMddHHmmss (GMT+7)
    gateway_create_date: Optional[str] = None
    pay_date: Optional[str] = None

    created_at: datetime = field(default_factory=_utcnow)
    updated_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.transaction_id:
            raise DomainValidationException("Transaction ID is required", field="transaction_id")
        if self.amount <= 0:
            raise DomainValidationException(
                f"Amount must be positive: {self.amount}",
                field="amount",
            )
        self.created_at = _ensure_utc(self.created_at)
        self.updated_at = _ensure_utc(self.updated_at)
        self.paid_at = _ensure_utc(self.paid_at)
        self.refunded_at = _ensure_utc(self.refunded_at)

    def is_successful(self) -> bool:
        return self.status == PaymentStatus.SUCCESS and self.response_code == GATEWAY_SUCCESS_CODE

    def is_final_status(self) -> bool:
        return self.status in (
            PaymentStatus.SUCCESS,
            PaymentStatus.FAILED,
            PaymentStatus.CANCELLED,
            PaymentStatus.REFUNDED,
        )

    def can_be_refunded(
        self,
        *,
        now: Optional[datetime] = None,
        window_days: int = DEFAULT_REFUND_WINDOW_DAYS,
    ) -> bool:
        if not self.is_successful():
            return False
        current = _ensure_utc(now) or _utcnow()
        return current - self.created_at <= timedelta(days=window_days)

    def mark_as_successful(
        self,
        gateway_transaction_no: Optional[str],
        pay_date: Optional[str] = None,
        *,
        bank_code: Optional[str] = None,
    ) -> None:
        if self.status in (PaymentStatus.REFUNDED, PaymentStatus.CANCELLED):
            raise DomainValidationException(
                f"Cannot mark {self.status.value} transaction as successful",
                field="status",
            )
        self.status = PaymentStatus.SUCCESS
        self.response_code = GATEWAY_SUCCESS_CODE
        self.response_message = "Transaction successful"
        self.gateway_transaction_no = gateway_transaction_no
        self.pay_date = pay_date
        if bank_code:
            self.bank_code = bank_code
        self.paid_at = _utcnow()
        self.updated_at = self.paid_at

    def mark_as_failed(self, response_code: Optional[str], message: Optional[str]) -> None:
        if self.status in (PaymentStatus.SUCCESS, PaymentStatus.REFUNDED):
            raise DomainValidationException(
                f"Cannot mark {self.status.value} transaction as failed",
                field="status",
            )
        self.status = PaymentStatus.FAILED
        self.response_code = response_code
        self.response_message = message
        self.updated_at = _utcnow()

    def mark_as_refunded(
        self,
        *,
        now: Optional[datetime] = None,
        window_days: int = DEFAULT_REFUND_WINDOW_DAYS,
    ) -> None:
        if not self.can_be_refunded(now=now, window_days=window_days):
            raise PaymentNotRefundableException(self.transaction_id, self.status.value)
        self.status = PaymentStatus.REFUNDED
        self.refunded_at = _ensure_utc(now) or _utcnow()
        self.updated_at = self.refunded_at
