"""
Builders for VNPay payment, query (querydr) and refund parameter sets.

Timestamps use the gateway's local time (UTC+7) in ``yyyyMMddHHmmss``.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Optional
from urllib.parse import urlencode

from application.dtos.payments import GatewayPaymentRequest, GatewayRefundRequest
from core.settings import VNPaySettings

from .signing import SECURE_HASH_FIELD, hmac_sha512, pipe_join, random_number


VNPAY_TZ = timezone(timedelta(hours=7), name="GMT+7")
VNPAY_DATE_FORMAT = "%Y%m%d%H%M%S"

TXN_REF_SUFFIX_LENGTH = 8
REQUEST_ID_LENGTH = 8
DEFAULT_CLIENT_IP = "127.0.0.1"
DEFAULT_LOCALE = "vn"

# Checked in order; first usable value wins
CLIENT_IP_HEADERS = (
    "X-Forwarded-For",
    "Proxy-Client-IP",
    "WL-Proxy-Client-IP",
    "HTTP_CLIENT_IP",
    "HTTP_X_FORWARDED_FOR",
)

REFUND_FULL = "02"
DEFAULT_REFUND_CREATOR = "system"


def vnpay_now(now: Optional[datetime] = None) -> datetime:
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)
    return current.astimezone(VNPAY_TZ)


def format_vnpay_date(value: datetime) -> str:
    return vnpay_now(value).strftime(VNPAY_DATE_FORMAT)


def parse_vnpay_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.strptime(value, VNPAY_DATE_FORMAT).replace(tzinfo=VNPAY_TZ)
    except ValueError:
        return None


# vnp_Amount is in minor units (VND x 100)
def to_minor_units(amount: int) -> str:
    return str(amount * 100)


def minor_to_major(value: Any) -> Optional[int]:
    try:
        return int(value) // 100
    except (TypeError, ValueError):
        return None


def amount_matches(minor_value: Any, amount: int) -> bool:
    """Exact comparison of a gateway vnp_Amount with a major-unit amount."""
    try:
        return int(minor_value) == amount * 100
    except (TypeError, ValueError):
        return False


def resolve_client_ip(headers: Mapping[str, str], remote_addr: Optional[str] = None) -> str:
    """Client IP honoring proxy headers; first entry of a forwarded chain."""
    lowered = {str(k).lower(): v for k, v in headers.items()}
    for name in CLIENT_IP_HEADERS:
        value = lowered.get(name.lower())
        if not value or not value.strip() or value.strip().lower() == "unknown":
            continue
        first = value.split(",")[0].strip()
        if first:
            return first
    return remote_addr or DEFAULT_CLIENT_IP


def generate_txn_ref(order_id: str) -> str:
    return f"{order_id}{random_number(TXN_REF_SUFFIX_LENGTH)}"


def _drop_empty(params: dict[str, Optional[str]]) -> dict[str, str]:
    return {k: str(v) for k, v in params.items() if v is not None and str(v).strip() != ""}


def build_payment_params(
    request: GatewayPaymentRequest,
    config: VNPaySettings,
    *,
    now: Optional[datetime] = None,
    txn_ref: Optional[str] = None,
) -> dict[str, str]:
    txn_ref = txn_ref or generate_txn_ref(request.order_id)
    created = vnpay_now(now)
    expires = created + timedelta(minutes=config.timeout_minutes)

    params: dict[str, Optional[str]] = {
        "vnp_Version": config.version,
        "vnp_Command": "pay",
        "vnp_TmnCode": config.tmn_code,
        "vnp_Amount": to_minor_units(request.amount),
        "vnp_CurrCode": "VND",
        "vnp_BankCode": request.bank_code or None,
        "vnp_TxnRef": txn_ref,
        "vnp_OrderInfo": request.order_info or f"Thanh toan don hang:{txn_ref}",
        "vnp_OrderType": "other",
        "vnp_Locale": request.language or DEFAULT_LOCALE,
        "vnp_ReturnUrl": request.return_url or config.return_url,
        "vnp_IpAddr": request.client_ip or DEFAULT_CLIENT_IP,
        "vnp_CreateDate": created.strftime(VNPAY_DATE_FORMAT),
        "vnp_ExpireDate": request.expire_date or expires.strftime(VNPAY_DATE_FORMAT),
    }
    return _drop_empty(params)


def build_payment_url(pay_url: str, params: Mapping[str, str], secure_hash: str) -> str:
    query = urlencode([(k, params[k]) for k in sorted(params) if params[k]])
    return f"{pay_url}?{query}&{SECURE_HASH_FIELD}={secure_hash}"


def build_query_payload(
    txn_ref: str,
    transaction_date: str,
    config: VNPaySettings,
    *,
    client_ip: Optional[str] = None,
    now: Optional[datetime] = None,
) -> dict[str, str]:
    payload = {
        "vnp_RequestId": random_number(REQUEST_ID_LENGTH),
        "vnp_Version": config.version,
        "vnp_Command": "querydr",
        "vnp_TmnCode": config.tmn_code,
        "vnp_TxnRef": txn_ref,
        "vnp_OrderInfo": f"Kiem tra ket qua GD OrderId:{txn_ref}",
        "vnp_TransactionDate": transaction_date,
        "vnp_CreateDate": vnpay_now(now).strftime(VNPAY_DATE_FORMAT),
        "vnp_IpAddr": client_ip or DEFAULT_CLIENT_IP,
    }
    hash_data = pipe_join(
        payload[k]
        for k in (
            "vnp_RequestId",
            "vnp_Version",
            "vnp_Command",
            "vnp_TmnCode",
            "vnp_TxnRef",
            "vnp_TransactionDate",
            "vnp_CreateDate",
            "vnp_IpAddr",
            "vnp_OrderInfo",
        )
    )
    payload[SECURE_HASH_FIELD] = hmac_sha512(config.secret_key, hash_data)
    return payload


def build_refund_payload(
    request: GatewayRefundRequest,
    config: VNPaySettings,
    *,
    now: Optional[datetime] = None,
) -> dict[str, str]:
    payload = {
        "vnp_RequestId": random_number(REQUEST_ID_LENGTH),
        "vnp_Version": config.version,
        "vnp_Command": "refund",
        "vnp_TmnCode": config.tmn_code,
        "vnp_TransactionType": REFUND_FULL,
        "vnp_TxnRef": request.order_id,
        "vnp_Amount": to_minor_units(request.amount),
        "vnp_OrderInfo": request.reason or f"Hoan tien GD OrderId:{request.order_id}",
        "vnp_TransactionNo": request.transaction_no or "",
        "vnp_TransactionDate": request.transaction_date,
        "vnp_CreateBy": request.created_by or DEFAULT_REFUND_CREATOR,
        "vnp_CreateDate": vnpay_now(now).strftime(VNPAY_DATE_FORMAT),
        "vnp_IpAddr": request.client_ip or DEFAULT_CLIENT_IP,
    }
    hash_data = pipe_join(
        payload[k]
        for k in (
            "vnp_RequestId",
            "vnp_Version",
            "vnp_Command",
            "vnp_TmnCode",
            "vnp_TransactionType",
            "vnp_TxnRef",
            "vnp_Amount",
            "vnp_TransactionNo",
            "vnp_TransactionDate",
            "vnp_CreateBy",
            "vnp_CreateDate",
            "vnp_IpAddr",
            "vnp_OrderInfo",
        )
    )
    payload[SECURE_HASH_FIELD] = hmac_sha512(config.secret_key, hash_data)
    return payload
