"""
Shared business codes used across layers (Domain/Core/API).

This package exposes BusinessCode at `shared.codes` and keeps
payment-specific codes under `shared.codes.payment_codes`.
"""
from enum import IntEnum


class BusinessCode(IntEnum):
    """Unified business status codes (single source of truth)."""

    # Success
    SUCCESS = 0

    # Parameter errors (1xxxx)
    PARAM_ERROR = 10000
    PARAM_MISSING = 10001
    PARAM_TYPE_ERROR = 10002
    PARAM_VALIDATION_ERROR = 10003

    # Business errors (2xxxx)
    BUSINESS_ERROR = 20000
    NOT_FOUND = 20006  # Generic resource not found
    ORDER_NOT_FOUND = 20101
    ORDER_STATE_INVALID = 20102
    PAYMENT_TRANSACTION_NOT_FOUND = 20201
    PAYMENT_NOT_REFUNDABLE = 20202
    PAYMENT_METHOD_UNSUPPORTED = 20203

    # Command processing (3xxxx)
    COMMAND_ERROR = 30000
    COMMAND_VALIDATION_ERROR = 30001
    COMMAND_HANDLER_NOT_FOUND = 30002
    COMMAND_EXECUTION_ERROR = 30003
    EVENT_PUBLISHING_ERROR = 30004

    # System errors (4xxxx)
    SYSTEM_ERROR = 40000
    NETWORK_ERROR = 40002
    SERVICE_UNAVAILABLE = 40003


__all__ = ["BusinessCode"]
