"""
VNPay canonical parameter serialization and HMAC-SHA512 signing.

The canonical form must match the gateway bit for bit: keys sorted
lexicographically, only non-empty values, ``key=value`` joined by ``&``,
no URL encoding. The same routine signs outbound URLs and verifies IPNs.
"""
from __future__ import annotations

import hashlib
import hmac
import secrets
from typing import Iterable, Mapping, Optional

from core.logging_config import get_logger


logger = get_logger(__name__)

SECURE_HASH_FIELD = "vnp_SecureHash"
SECURE_HASH_TYPE_FIELD = "vnp_SecureHashType"


def build_hash_data(params: Mapping[str, Optional[str]]) -> str:
    return "&".join(
        f"{key}={params[key]}"
        for key in sorted(params)
        if params[key] is not None and str(params[key]) != ""
    )


def hmac_sha512(key: str, data: str) -> str:
    """Lowercase hex HMAC-SHA512; ``""`` on any failure."""
    if key is None or data is None:
        return ""
    try:
        return hmac.new(key.encode("utf-8"), data.encode("utf-8"), hashlib.sha512).hexdigest()
    except Exception as exc:
        logger.error("vnpay_hmac_failed", error=str(exc))
        return ""


def hash_all_fields(params: Mapping[str, Optional[str]], secret_key: str) -> str:
    try:
        data = build_hash_data(params)
    except Exception as exc:
        logger.error("vnpay_hash_data_failed", error=str(exc))
        return ""
    return hmac_sha512(secret_key, data)


def signatures_match(expected: str, received: Optional[str]) -> bool:
    """Constant-time comparison; an empty signature never matches."""
    if not expected or not received:
        return False
    return hmac.compare_digest(expected, received)


def pipe_join(values: Iterable[Optional[str]]) -> str:
    """Hash data for server-to-server API calls (querydr/refund)."""
    return "|".join("" if v is None else str(v) for v in values)


def random_number(length: int) -> str:
    return "".join(secrets.choice("0123456789") for _ in range(length))
