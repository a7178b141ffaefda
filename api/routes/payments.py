"""
Payments API routes.

Payment initiation, VNPay IPN/return callbacks, status query and refunds.
Keep this thin: signing and wire formats live in the gateway client.
"""
from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from api.dependencies import get_client_ip, get_payment_service
from application.dtos.payments import (
    IpnAcknowledgement,
    PaymentTransactionDTO,
    ProcessPaymentPayload,
    RefundPayload,
)
from application.services.payment_service import PaymentApplicationService, ipn_acknowledgement
from core.logging_config import get_logger
from core.response import error_response, success_response
from domain.common.exceptions import BusinessException
from shared.codes import BusinessCode
from shared.codes.payment_codes import IPN_UNKNOWN_ERROR


router = APIRouter(prefix="/payments", tags=["Payments"])
logger = get_logger(__name__)


@router.post("")
def create_payment(
    payload: ProcessPaymentPayload,
    client_ip: Optional[str] = Depends(get_client_ip),
    service: PaymentApplicationService = Depends(get_payment_service),
):
    result = service.initiate_payment(
        payload.order_id,
        payment_method=payload.payment_method,
        bank_code=payload.bank_code,
        language=payload.language,
        client_ip=client_ip,
        return_url=payload.return_url,
    )
    if not result.success:
        raise BusinessException(
            code=BusinessCode.BUSINESS_ERROR,
            message=result.message,
            error_type="PaymentRejected",
            details={"order_id": payload.order_id, "error_code": result.error_code},
        )
    return success_response(data=asdict(result), message=result.message)


@router.get("/vnpay/ipn", response_model=IpnAcknowledgement)
def vnpay_ipn(request: Request, service: PaymentApplicationService = Depends(get_payment_service)):
    """Server-to-server notification; VNPay expects RspCode/Message, never an error status."""
    params = dict(request.query_params)
    try:
        result = service.handle_payment_callback(params)
    except Exception:
        logger.exception("vnpay_ipn_failed", txn_ref=params.get("vnp_TxnRef"))
        return IpnAcknowledgement.of(IPN_UNKNOWN_ERROR)
    return IpnAcknowledgement.of(ipn_acknowledgement(result))


@router.get("/vnpay/return")
def vnpay_return(
    request: Request,
    locale: str = Query("vn", pattern=r"^(vn|en)$", description="Language of the result message"),
    service: PaymentApplicationService = Depends(get_payment_service),
):
    """Customer redirect back from VNPay; the message is shown to the customer."""
    params = {k: v for k, v in request.query_params.items() if k != "locale"}
    result = service.handle_payment_callback(params, locale=locale)
    data = result.model_dump(mode="json")
    if result.outcome.value in ("VALID_SUCCESS", "ALREADY_PROCESSED") and result.payment_status == "SUCCESS":
        return success_response(data=data, message=result.message)
    return error_response(
        code=BusinessCode.BUSINESS_ERROR,
        message=result.message,
        error_type=result.outcome.value,
        data=data,
    )


@router.get("")
def list_payments(
    order_id: str = Query(..., min_length=1),
    service: PaymentApplicationService = Depends(get_payment_service),
):
    transactions = service.list_order_transactions(order_id)
    return success_response(data=[PaymentTransactionDTO.from_entity(t) for t in transactions])


@router.get("/{transaction_id}")
def get_payment(transaction_id: str, service: PaymentApplicationService = Depends(get_payment_service)):
    return success_response(data=PaymentTransactionDTO.from_entity(service.get_transaction(transaction_id)))


@router.get("/{transaction_id}/status")
def payment_status(
    transaction_id: str,
    transaction_date: Optional[str] = Query(None, pattern=r"^\d{14}$", description="yyyyMMddHHmmss (GMT+7)"),
    client_ip: Optional[str] = Depends(get_client_ip),
    service: PaymentApplicationService = Depends(get_payment_service),
):
    status = service.query_payment_status(transaction_id, transaction_date, client_ip=client_ip)
    return success_response(data=status, message=status.message)


@router.post("/{transaction_id}/refund")
def refund_payment(
    transaction_id: str,
    payload: RefundPayload,
    service: PaymentApplicationService = Depends(get_payment_service),
):
    result = service.process_refund(transaction_id, reason=payload.reason, requested_by=payload.requested_by)
    if not result.success:
        raise BusinessException(
            code=BusinessCode.BUSINESS_ERROR,
            message=result.message,
            error_type="RefundRejected",
            details={"transaction_id": transaction_id, "error_code": result.code},
        )
    return success_response(data=result, message=result.message)
