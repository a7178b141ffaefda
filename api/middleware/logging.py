"""
访问日志中间件

每个请求一条结束日志（状态码、耗时），VNPay 回调额外记录网关结果字段。
查询参数与请求体中的签名、密钥字段一律脱敏。
"""
import json
import time
from typing import Any, Optional
from urllib.parse import parse_qs

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from core.config import settings
from core.logging_config import REDACTED_KEYS, get_logger


logger = get_logger(__name__)

_MASK = "***"
_SENSITIVE = {k.lower() for k in REDACTED_KEYS} | {"token"}

# 回调日志只摘取对账需要的字段
_CALLBACK_FIELDS = ("vnp_TxnRef", "vnp_ResponseCode", "vnp_TransactionStatus", "vnp_Amount", "vnp_BankCode")


def mask_sensitive(data: Any) -> Any:
    if isinstance(data, dict):
        return {k: (_MASK if str(k).lower() in _SENSITIVE else mask_sensitive(v)) for k, v in data.items()}
    if isinstance(data, list):
        return [mask_sensitive(v) for v in data]
    return data


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    访问日志中间件

    请求体默认不记录；DEBUG 下可通过配置开启，或由 X-Log-Body 头按请求控制。
    """

    SKIP_PATHS = {"/health", "/api/v1/health", "/docs", "/redoc", "/openapi.json"}
    CALLBACK_PATH_MARKER = "/vnpay/"

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.log_body_by_default = settings.LOG_REQUEST_BODY_ENABLE_BY_DEFAULT and settings.DEBUG
        self.max_body_bytes = settings.LOG_REQUEST_BODY_MAX_BYTES

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.SKIP_PATHS:
            return await call_next(request)

        started = time.perf_counter()
        fields = await self._request_fields(request)
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "request_failed",
                duration_ms=self._elapsed_ms(started),
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=True,
                **fields,
            )
            raise

        duration_ms = self._elapsed_ms(started)
        self._log_response(response, duration_ms, fields)
        response.headers["X-Process-Time"] = f"{duration_ms / 1000:.3f}"
        return response

    @staticmethod
    def _elapsed_ms(started: float) -> float:
        return round((time.perf_counter() - started) * 1000, 2)

    async def _request_fields(self, request: Request) -> dict:
        params = dict(request.query_params)
        fields: dict = {}
        if self.CALLBACK_PATH_MARKER in request.url.path:
            fields["gateway"] = {k: params[k] for k in _CALLBACK_FIELDS if k in params}
        elif params:
            fields["query_params"] = mask_sensitive(params)

        if request.method in ("POST", "PUT", "PATCH") and self._should_log_body(request):
            body = await self._read_body(request)
            if body is not None:
                fields["body"] = body
        return fields

    def _should_log_body(self, request: Request) -> bool:
        flag = (request.headers.get("X-Log-Body") or "").lower()
        if flag in ("true", "1", "yes"):
            return True
        if flag in ("false", "0", "no"):
            return False
        return self.log_body_by_default

    async def _read_body(self, request: Request) -> Optional[Any]:
        raw = await request.body()
        if not raw:
            return None
        text = raw[: self.max_body_bytes].decode("utf-8", errors="ignore")
        content_type = request.headers.get("content-type", "").lower()
        if "application/json" in content_type:
            try:
                return mask_sensitive(json.loads(text))
            except ValueError:
                return text
        if "application/x-www-form-urlencoded" in content_type:
            form = {k: v if len(v) > 1 else v[0] for k, v in parse_qs(text).items()}
            return mask_sensitive(form)
        return text

    def _log_response(self, response: Response, duration_ms: float, fields: dict) -> None:
        status_code = response.status_code
        if status_code < 400:
            logger.info("request_completed", status_code=status_code, duration_ms=duration_ms, **fields)
        elif status_code < 500:
            logger.warning("request_client_error", status_code=status_code, duration_ms=duration_ms, **fields)
        else:
            logger.error("request_server_error", status_code=status_code, duration_ms=duration_ms, **fields)
