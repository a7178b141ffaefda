"""
请求上下文中间件

为每个请求确定 request_id 与客户端IP，写入 request.state、contextvars
和 structlog 上下文；VNPay 回调请求额外绑定 txn_ref，便于按交易检索日志。
"""
import re
import uuid
from contextvars import ContextVar
from typing import Optional

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from infrastructure.external.payments.vnpay import resolve_client_ip


request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
client_ip_var: ContextVar[Optional[str]] = ContextVar("client_ip", default=None)

# 上游透传的ID只接受安全字符，否则重新生成
_SAFE_REQUEST_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def _inbound_request_id(value: Optional[str]) -> str:
    if value and _SAFE_REQUEST_ID.match(value):
        return value
    return uuid.uuid4().hex


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    请求上下文中间件

    - request_id：沿用合法的 X-Request-ID，否则生成新的
    - client_ip：按代理头优先级解析，支付下单时作为 vnp_IpAddr 上送
    - txn_ref：仅回调请求携带 vnp_TxnRef 时绑定
    """

    HEADER_NAME = "X-Request-ID"

    async def dispatch(self, request: Request, call_next):
        request_id = _inbound_request_id(request.headers.get(self.HEADER_NAME))
        remote = request.client.host if request.client else None
        client_ip = resolve_client_ip(request.headers, remote)

        request.state.request_id = request_id
        request.state.client_ip = client_ip
        request_id_var.set(request_id)
        client_ip_var.set(client_ip)

        context = {
            "request_id": request_id,
            "client_ip": client_ip,
            "method": request.method,
            "path": request.url.path,
        }
        txn_ref = request.query_params.get("vnp_TxnRef")
        if txn_ref:
            context["txn_ref"] = txn_ref
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(**context)

        response = await call_next(request)
        response.headers[self.HEADER_NAME] = request_id
        return response


def get_request_id() -> Optional[str]:
    return request_id_var.get()


def get_client_ip() -> Optional[str]:
    return client_ip_var.get()
