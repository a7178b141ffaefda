"""
Payment-related settings using pydantic-settings v2 with nested env keys.

Keys are read as ``PAYMENT__VNPAY__SECRET_KEY``, ``PAYMENT__TIMEOUTS__READ`` etc.
"""
from __future__ import annotations

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field


class PaymentTimeouts(BaseModel):
    connect: float = 1.0
    read: float = 3.0
    write: float = 3.0
    total: float = 5.0


class PaymentRetry(BaseModel):
    max: int = 2
    base_backoff: float = 0.2


class VNPaySettings(BaseModel):
    tmn_code: str = ""
    secret_key: str = ""
    pay_url: str = "https://sandbox.vnpayment.vn/paymentv2/vpcpay.html"
    api_url: str = "https://sandbox.vnpayment.vn/merchant_webapi/api/transaction"
    return_url: str = "http://localhost:8000/api/v1/payments/vnpay/return"
    version: str = "2.1.0"
    # Payment session lifetime embedded as vnp_ExpireDate
    timeout_minutes: int = 15
    refund_window_days: int = 30
    refund_completion_days: int = 7
    refund_created_by: Optional[str] = None


class PaymentSettings(BaseSettings):
    default_provider: str = "vnpay"
    timeouts: PaymentTimeouts = Field(default_factory=PaymentTimeouts)
    retry: PaymentRetry = Field(default_factory=PaymentRetry)
    vnpay: VNPaySettings = Field(default_factory=VNPaySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PAYMENT__",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )


payment_settings = PaymentSettings()
