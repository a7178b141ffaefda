"""
Exceptions for payment providers mapped to unified BusinessException variants.

Clients raise these internally; the VNPay client converts them into
failure-shaped responses before they reach application code.
"""
from __future__ import annotations

from typing import Optional
from domain.common.exceptions import BusinessException
from shared.codes.payment_codes import PaymentCode


class _ProviderException(BusinessException):
    code: PaymentCode = PaymentCode.PROVIDER_ERROR
    error_type: str = "PaymentProviderError"

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        provider_code: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        full_details: dict = {"provider": provider}
        if provider_code is not None:
            full_details["provider_code"] = provider_code
        if details:
            full_details.update(details)
        self.provider = provider
        self.provider_code = provider_code
        super().__init__(
            code=type(self).code,
            message=message,
            error_type=type(self).error_type,
            details=full_details,
        )


class PaymentProviderError(_ProviderException):
    """Gateway rejected the call or answered with something unusable."""


class PaymentRecoverableError(_ProviderException):
    """Timeouts and transport failures; safe to retry with a fresh request id."""

    code = PaymentCode.PROVIDER_RECOVERABLE
    error_type = "PaymentRecoverableError"


class PaymentSignatureError(_ProviderException):
    code = PaymentCode.SIGNATURE_ERROR
    error_type = "PaymentSignatureError"
