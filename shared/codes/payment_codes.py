"""
Payment specific codes, VNPay response-code tables and provider status mapping.
"""
from __future__ import annotations

from enum import IntEnum
from typing import Optional


class PaymentCode(IntEnum):
    # Provider/Network errors (6xxxx)
    PROVIDER_ERROR = 60000
    PROVIDER_RECOVERABLE = 60001
    SIGNATURE_ERROR = 60002


# Gateway-level result codes carried in PaymentResponse/RefundResponse.error_code
GATEWAY_SUCCESS = "00"
GATEWAY_ERROR = "99"

# Application-level rejection codes
ORDER_NOT_PAYABLE = "01"
ORIGINAL_PAYMENT_INVALID = "01"
PAYMENT_ALREADY_REFUNDED = "02"
REFUND_WINDOW_EXPIRED = "03"
PAYMENT_METHOD_MISMATCH = "04"


# vnp_ResponseCode -> customer-facing reason
VNPAY_RESPONSE_MESSAGES_EN = {
    "00": "Transaction successful",
    "07": "Successful transaction. Money will be deducted from account",
    "09": "Transaction failed: Customer's card/account not registered for InternetBanking service",
    "10": "Transaction failed: Customer's card/account authentication failed",
    "11": "Transaction failed: Timeout. Please try again",
    "12": "Transaction failed: Customer's card/account is locked",
    "13": "Transaction failed: Wrong OTP",
    "24": "Transaction failed: Customer cancelled transaction",
    "51": "Transaction failed: Insufficient account balance",
    "65": "Transaction failed: Daily transaction limit exceeded",
    "75": "Transaction failed: Bank is under maintenance",
    "79": "Transaction failed: Exceeded password entry limit",
    "99": "Other error",
}

VNPAY_RESPONSE_MESSAGES_VN = {
    "00": "Giao dịch thành công",
    "07": "Trừ tiền thành công. Giao dịch bị nghi ngờ (liên quan tới lừa đảo, giao dịch bất thường)",
    "09": "Thẻ/Tài khoản của khách hàng chưa đăng ký dịch vụ InternetBanking tại ngân hàng",
    "10": "Khách hàng xác thực thông tin thẻ/tài khoản không đúng quá 3 lần",
    "11": "Đã hết hạn chờ thanh toán. Xin quý khách vui lòng thực hiện lại giao dịch",
    "12": "Thẻ/Tài khoản của khách hàng bị khóa",
    "13": "Quý khách nhập sai mật khẩu xác thực giao dịch (OTP). Xin quý khách vui lòng thực hiện lại giao dịch",
    "24": "Khách hàng hủy giao dịch",
    "51": "Tài khoản của quý khách không đủ số dư để thực hiện giao dịch",
    "65": "Tài khoản của Quý khách đã vượt quá hạn mức giao dịch trong ngày",
    "75": "Ngân hàng thanh toán đang bảo trì",
    "79": "KH nhập sai mật khẩu thanh toán quá số lần quy định",
    "99": "Các lỗi khác (lỗi còn lại, không có trong danh sách mã lỗi đã liệt kê)",
}

VNPAY_MISSING_CODE_MESSAGE_VN = "Giao dịch không thành công"


def describe_response_code(code: Optional[str], locale: str = "en") -> str:
    """Map a vnp_ResponseCode to its customer-facing message.

    ``locale`` is ``"vn"`` for the Vietnamese table, anything else for English.
    """
    if (locale or "").lower() in {"vn", "vi"}:
        if code is None:
            return VNPAY_MISSING_CODE_MESSAGE_VN
        return VNPAY_RESPONSE_MESSAGES_VN.get(code, f"Giao dịch không thành công. Mã lỗi: {code}")
    return VNPAY_RESPONSE_MESSAGES_EN.get(code or "", f"Unknown error code: {code}")


# IPN acknowledgement codes expected back by VNPay
IPN_CONFIRM_SUCCESS = {"RspCode": "00", "Message": "Confirm Success"}
IPN_ORDER_NOT_FOUND = {"RspCode": "01", "Message": "Order not found"}
IPN_ORDER_ALREADY_CONFIRMED = {"RspCode": "02", "Message": "Order already confirmed"}
IPN_INVALID_AMOUNT = {"RspCode": "04", "Message": "Invalid amount"}
IPN_INVALID_SIGNATURE = {"RspCode": "97", "Message": "Invalid signature"}
IPN_UNKNOWN_ERROR = {"RspCode": "99", "Message": "Unknown error"}


# Provider→internal status mapping (querydr vnp_TransactionStatus / response code)
PROVIDER_STATUS_TO_INTERNAL = {
    "vnpay": {
        "00": "SUCCESS",
        "01": "PROCESSING",
        "02": "PROCESSING",
        "04": "REFUNDED",
        "05": "FAILED",
        "06": "FAILED",
        "07": "FAILED",
    },
}
