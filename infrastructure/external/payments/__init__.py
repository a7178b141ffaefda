"""
Factory for payment gateway clients.
"""
from __future__ import annotations

from typing import Optional

from core.settings import PaymentSettings, payment_settings
from application.ports.payment_gateway import PaymentGateway


def get_payment_gateway(
    provider: Optional[str] = None,
    *,
    config: Optional[PaymentSettings] = None,
) -> PaymentGateway:
    cfg = config or payment_settings
    name = (provider or cfg.default_provider).lower()
    if name in {"vnpay", "vnp"}:
        from .vnpay.client import VNPayClient
        return VNPayClient(cfg.vnpay, timeouts=cfg.timeouts, retry=cfg.retry)
    raise ValueError(f"Unsupported payment provider: {name}")
