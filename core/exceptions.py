"""
自定义异常映射与全局异常处理器
"""
import traceback
import uuid
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status as http_status
from starlette.exceptions import HTTPException

from .response import error_response
from shared.codes import BusinessCode
from core.logging_config import get_logger
from domain.common.exceptions import BusinessException
from application.commands.exceptions import CommandExecutionException


_HTTP_STATUS_BY_CODE = {
    BusinessCode.PARAM_ERROR: http_status.HTTP_400_BAD_REQUEST,
    BusinessCode.PARAM_MISSING: http_status.HTTP_400_BAD_REQUEST,
    BusinessCode.PARAM_TYPE_ERROR: http_status.HTTP_400_BAD_REQUEST,
    BusinessCode.PARAM_VALIDATION_ERROR: http_status.HTTP_422_UNPROCESSABLE_ENTITY,

    BusinessCode.BUSINESS_ERROR: http_status.HTTP_400_BAD_REQUEST,
    BusinessCode.NOT_FOUND: http_status.HTTP_404_NOT_FOUND,
    BusinessCode.ORDER_NOT_FOUND: http_status.HTTP_404_NOT_FOUND,
    BusinessCode.ORDER_STATE_INVALID: http_status.HTTP_409_CONFLICT,
    BusinessCode.PAYMENT_TRANSACTION_NOT_FOUND: http_status.HTTP_404_NOT_FOUND,
    BusinessCode.PAYMENT_NOT_REFUNDABLE: http_status.HTTP_409_CONFLICT,
    BusinessCode.PAYMENT_METHOD_UNSUPPORTED: http_status.HTTP_400_BAD_REQUEST,

    BusinessCode.COMMAND_ERROR: http_status.HTTP_400_BAD_REQUEST,
    BusinessCode.COMMAND_VALIDATION_ERROR: http_status.HTTP_422_UNPROCESSABLE_ENTITY,
    BusinessCode.COMMAND_HANDLER_NOT_FOUND: http_status.HTTP_500_INTERNAL_SERVER_ERROR,
    BusinessCode.COMMAND_EXECUTION_ERROR: http_status.HTTP_500_INTERNAL_SERVER_ERROR,
    BusinessCode.EVENT_PUBLISHING_ERROR: http_status.HTTP_500_INTERNAL_SERVER_ERROR,

    BusinessCode.SYSTEM_ERROR: http_status.HTTP_500_INTERNAL_SERVER_ERROR,
    BusinessCode.NETWORK_ERROR: http_status.HTTP_502_BAD_GATEWAY,
    BusinessCode.SERVICE_UNAVAILABLE: http_status.HTTP_503_SERVICE_UNAVAILABLE,
}


def business_code_to_http_status(code: int) -> int:
    """根据业务码映射HTTP状态码（默认400）。"""
    try:
        return _HTTP_STATUS_BY_CODE.get(BusinessCode(code), http_status.HTTP_400_BAD_REQUEST)
    except ValueError:
        # 支付网关错误码（6xxxx）不在 BusinessCode 中
        return http_status.HTTP_502_BAD_GATEWAY


def _request_id(request: Request) -> str:
    return getattr(getattr(request, "state", object()), "request_id", None) or str(uuid.uuid4())


_HTTP_STATUS_TO_CODE = {
    http_status.HTTP_404_NOT_FOUND: BusinessCode.NOT_FOUND,
    http_status.HTTP_500_INTERNAL_SERVER_ERROR: BusinessCode.SYSTEM_ERROR,
    http_status.HTTP_503_SERVICE_UNAVAILABLE: BusinessCode.SERVICE_UNAVAILABLE,
}


def _envelope(request: Request, status_code: int, headers: Optional[dict] = None, **fields) -> JSONResponse:
    body = error_response(request_id=_request_id(request), **fields)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"), headers=headers)


def _business_response(request: Request, exc: BusinessException) -> JSONResponse:
    return _envelope(
        request,
        business_code_to_http_status(exc.code),
        code=exc.code,
        message=exc.message,
        error_type=exc.error_type,
        details=exc.details,
        field=exc.field,
    )


def register_exception_handlers(app: FastAPI):
    """
    注册全局异常处理器

    命令总线包装的业务异常按原异常返回；支付网关错误码映射为 502；
    未捕获异常统一为 500，DEBUG 下附带堆栈。
    """
    logger = get_logger(__name__)

    @app.exception_handler(CommandExecutionException)
    async def command_exception_handler(request: Request, exc: CommandExecutionException):
        cause = exc.__cause__
        if isinstance(cause, BusinessException):
            return _business_response(request, cause)
        logger.error("command_execution_failed", error=str(cause), **(exc.details or {}))
        return _business_response(request, exc)

    @app.exception_handler(BusinessException)
    async def business_exception_handler(request: Request, exc: BusinessException):
        return _business_response(request, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [{k: v for k, v in e.items() if k != "ctx"} for e in exc.errors()]
        first = errors[0] if errors else {}
        return _envelope(
            request,
            http_status.HTTP_422_UNPROCESSABLE_ENTITY,
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=f"Validation failed: {first.get('msg', 'unknown')}",
            error_type="ValidationError",
            details={"errors": errors},
            field=".".join(str(loc) for loc in first.get("loc", [])[1:]),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return _envelope(
            request,
            exc.status_code,
            headers=getattr(exc, "headers", None),
            code=_HTTP_STATUS_TO_CODE.get(exc.status_code, BusinessCode.BUSINESS_ERROR),
            message=str(exc.detail),
            error_type="HTTPError",
            details={"status_code": exc.status_code},
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error("unhandled_exception", error=str(exc), exc_info=True)
        details = {"exception": str(exc), "traceback": traceback.format_exc()} if app.debug else None
        return _envelope(
            request,
            http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            code=BusinessCode.SYSTEM_ERROR,
            message="Internal server error",
            error_type="SystemError",
            details=details,
        )
