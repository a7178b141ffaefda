from __future__ import annotations

import threading
import time
from typing import Any, Dict

from core.logging_config import get_logger
from domain.common.exceptions import DomainValidationException
from domain.payment.entity import PaymentMethod

from .base import Command, CommandMiddleware
from .exceptions import CommandValidationException


class LoggingCommandMiddleware(CommandMiddleware):
    order = 1

    def __init__(self) -> None:
        self.log = get_logger("commands")
        self._lock = threading.Lock()
        self._started: Dict[str, float] = {}

    def _elapsed_ms(self, command: Command) -> float | None:
        with self._lock:
            started = self._started.pop(command.command_id, None)
        if started is None:
            return None
        return round((time.perf_counter() - started) * 1000, 2)

    def pre_process(self, command: Command) -> None:
        with self._lock:
            self._started[command.command_id] = time.perf_counter()
        self.log.info(
            "command_started",
            command_type=command.command_type.value,
            command_id=command.command_id,
        )

    def post_process(self, command: Command, result: Any) -> None:
        self.log.info(
            "command_completed",
            command_type=command.command_type.value,
            command_id=command.command_id,
            success=getattr(result, "success", None),
            duration_ms=self._elapsed_ms(command),
        )

    def on_error(self, command: Command, exc: BaseException) -> None:
        self.log.error(
            "command_failed",
            command_type=command.command_type.value,
            command_id=command.command_id,
            error=str(exc),
            error_type=type(exc).__name__,
            duration_ms=self._elapsed_ms(command),
        )


class ValidationCommandMiddleware(CommandMiddleware):
    """Re-validates commands and checks that payment methods are known."""

    order = 10

    def pre_process(self, command: Command) -> None:
        command.validate()
        method = getattr(command, "payment_method", None)
        if method:
            try:
                PaymentMethod.parse(method)
            except DomainValidationException as exc:
                raise CommandValidationException(
                    exc.message,
                    command_type=command.command_type.value,
                    field="payment_method",
                ) from exc
