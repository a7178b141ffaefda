"""
Command processing exceptions.
"""
from __future__ import annotations

from typing import Optional

from domain.common.exceptions import BusinessException
from shared.codes import BusinessCode


class CommandValidationException(BusinessException):
    def __init__(self, message: str, *, command_type: Optional[str] = None, field: Optional[str] = None):
        super().__init__(
            code=BusinessCode.COMMAND_VALIDATION_ERROR,
            message=message,
            error_type="CommandValidationError",
            details={"command_type": command_type} if command_type else None,
            field=field,
        )


class CommandHandlerNotFoundException(BusinessException):
    def __init__(self, command_type: str):
        super().__init__(
            code=BusinessCode.COMMAND_HANDLER_NOT_FOUND,
            message=f"No handler found for command type: {command_type}",
            error_type="CommandHandlerNotFound",
            details={"command_type": command_type},
        )


class CommandExecutionException(BusinessException):
    """Raised by the bus for any failure; the original error is ``__cause__``."""

    def __init__(self, command_type: str, command_id: str, cause: BaseException):
        self.cause = cause
        super().__init__(
            code=BusinessCode.COMMAND_EXECUTION_ERROR,
            message="Command execution failed",
            error_type="CommandExecutionError",
            details={
                "command_type": command_type,
                "command_id": command_id,
                "reason": str(cause),
            },
        )
