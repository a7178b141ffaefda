"""
VNPay gateway client: payment URL creation, status query, refund and IPN
signature validation.

No method raises for gateway or network problems; every operation returns a
failure-shaped response carrying a code and message instead.
"""
from __future__ import annotations

from typing import Mapping, Optional

import httpx

from application.dtos.payments import (
    GATEWAY_ERROR,
    GATEWAY_SUCCESS,
    GatewayPaymentRequest,
    GatewayRefundRequest,
    PaymentResponse,
    PaymentStatusResponse,
    RefundResponse,
)
from application.ports.payment_gateway import PaymentGateway
from core.logging_config import get_logger
from core.settings import PaymentRetry, PaymentTimeouts, VNPaySettings
from infrastructure.external.payments.base import BasePaymentClient
from infrastructure.external.payments.exceptions import PaymentSignatureError

from .request_builder import (
    build_payment_params,
    build_payment_url,
    build_query_payload,
    build_refund_payload,
    minor_to_major,
)
from .signing import (
    SECURE_HASH_FIELD,
    SECURE_HASH_TYPE_FIELD,
    hash_all_fields,
    signatures_match,
)


logger = get_logger(__name__)


class VNPayClient(BasePaymentClient, PaymentGateway):
    provider = "vnpay"

    def __init__(
        self,
        config: VNPaySettings,
        *,
        timeouts: Optional[PaymentTimeouts] = None,
        retry: Optional[PaymentRetry] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        super().__init__(timeouts=timeouts, retry=retry, transport=transport)
        self.config = config

    def initiate_payment(self, request: Optional[GatewayPaymentRequest]) -> PaymentResponse:
        if request is None:
            return PaymentResponse.failure(GATEWAY_ERROR, "Payment initiation failed: Request cannot be null")
        try:
            params = build_payment_params(request, self.config)
            secure_hash = hash_all_fields(params, self.config.secret_key)
            if not secure_hash:
                raise PaymentSignatureError("Unable to sign payment parameters", provider=self.provider)
            url = build_payment_url(self.config.pay_url, params, secure_hash)
        except Exception as exc:
            logger.error("vnpay_payment_url_failed", order_id=request.order_id, error=str(exc))
            return PaymentResponse.failure(GATEWAY_ERROR, f"Payment initiation failed: {exc}")

        txn_ref = params["vnp_TxnRef"]
        self._log(
            "vnpay_payment_url_created",
            order_id=request.order_id,
            txn_ref=txn_ref,
            amount=request.amount,
            bank_code=request.bank_code,
        )
        return PaymentResponse.ok(url, txn_ref, create_date=params["vnp_CreateDate"])

    def check_payment_status(
        self,
        transaction_id: str,
        transaction_date: str,
        *,
        client_ip: Optional[str] = None,
    ) -> PaymentStatusResponse:
        try:
            payload = build_query_payload(transaction_id, transaction_date, self.config, client_ip=client_ip)
            self._log("vnpay_query_request", txn_ref=transaction_id, request_id=payload["vnp_RequestId"])
            body = self._post_json(self.config.api_url, payload)
        except Exception as exc:
            logger.error("vnpay_query_failed", txn_ref=transaction_id, error=str(exc))
            return PaymentStatusResponse(
                success=False,
                code=GATEWAY_ERROR,
                message=f"Status check failed: {exc}",
                transaction_id=transaction_id,
            )

        code = str(body.get("vnp_ResponseCode") or GATEWAY_ERROR)
        message = body.get("vnp_Message") or ("Success" if code == GATEWAY_SUCCESS else "Unknown error")
        self._log("vnpay_query_response", txn_ref=transaction_id, response_code=code)
        return PaymentStatusResponse(
            success=code == GATEWAY_SUCCESS,
            code=code,
            message=message,
            transaction_id=body.get("vnp_TxnRef") or transaction_id,
            transaction_status=body.get("vnp_TransactionStatus"),
            gateway_transaction_no=body.get("vnp_TransactionNo"),
            amount=minor_to_major(body.get("vnp_Amount")),
            bank_code=body.get("vnp_BankCode"),
            pay_date=body.get("vnp_PayDate"),
        )

    def process_refund(self, request: GatewayRefundRequest) -> RefundResponse:
        try:
            payload = build_refund_payload(request, self.config)
            self._log(
                "vnpay_refund_request",
                txn_ref=request.order_id,
                amount=request.amount,
                request_id=payload["vnp_RequestId"],
            )
            body = self._post_json(self.config.api_url, payload)
        except Exception as exc:
            logger.error("vnpay_refund_failed", txn_ref=request.order_id, error=str(exc))
            return RefundResponse.failure(
                GATEWAY_ERROR,
                f"Refund processing failed: {exc}",
                transaction_id=request.order_id,
            )

        code = str(body.get("vnp_ResponseCode") or GATEWAY_ERROR)
        message = body.get("vnp_Message") or ("Success" if code == GATEWAY_SUCCESS else "Unknown error")
        self._log("vnpay_refund_response", txn_ref=request.order_id, response_code=code)
        if code != GATEWAY_SUCCESS:
            return RefundResponse.failure(code, message, transaction_id=request.order_id)
        return RefundResponse(
            success=True,
            code=code,
            message=message,
            refund_id=body.get("vnp_TransactionNo"),
            transaction_id=body.get("vnp_TxnRef") or request.order_id,
            amount=minor_to_major(body.get("vnp_Amount")) or request.amount,
        )

    def validate_payment_callback(self, params: Mapping[str, str]) -> bool:
        txn_ref = None
        try:
            txn_ref = params.get("vnp_TxnRef")
            received = params.get(SECURE_HASH_FIELD)
            if not received:
                logger.warning("vnpay_callback_missing_hash", txn_ref=txn_ref)
                return False
            fields = {
                k: v for k, v in params.items() if k not in (SECURE_HASH_FIELD, SECURE_HASH_TYPE_FIELD)
            }
            expected = hash_all_fields(fields, self.config.secret_key)
            valid = signatures_match(expected, received)
        except Exception as exc:
            logger.error("vnpay_callback_validation_error", txn_ref=txn_ref, error=str(exc))
            return False

        if valid:
            self._log("vnpay_callback_signature_valid", txn_ref=txn_ref)
        else:
            logger.warning("vnpay_callback_signature_invalid", provider=self.provider, txn_ref=txn_ref)
        return valid
