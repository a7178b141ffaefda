"""
Command, handler and middleware contracts.

Commands form a tagged union: each concrete dataclass carries a
``command_type`` tag the bus dispatches on.
"""
from __future__ import annotations

import abc
import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, ClassVar, Generic, Optional, TypeVar

from .exceptions import CommandValidationException


class CommandType(str, enum.Enum):
    PLACE_ORDER = "PLACE_ORDER"
    PROCESS_PAYMENT = "PROCESS_PAYMENT"
    CANCEL_ORDER = "CANCEL_ORDER"


@dataclass(frozen=True)
class Command:
    command_type: ClassVar[CommandType]

    command_id: str = field(default_factory=lambda: str(uuid.uuid4()), kw_only=True)
    issued_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc), kw_only=True)

    def validate(self) -> None:
        """Raise CommandValidationException when the command is malformed."""

    def _require(self, condition: bool, message: str, field_name: Optional[str] = None) -> None:
        if not condition:
            raise CommandValidationException(message, command_type=self.command_type.value, field=field_name)


C = TypeVar("C", bound=Command)
R = TypeVar("R")


class CommandHandler(abc.ABC, Generic[C, R]):
    handles: ClassVar[CommandType]
    # Higher wins when several handlers support the same command type
    priority: int = 0

    def supports(self, command_type: CommandType) -> bool:
        return command_type == self.handles

    @abc.abstractmethod
    def handle(self, command: C) -> R: ...


class CommandMiddleware(abc.ABC):
    # Ascending; lower runs first
    order: int = 100

    def pre_process(self, command: Command) -> None:
        return None

    def post_process(self, command: Command, result: Any) -> None:
        return None

    def on_error(self, command: Command, exc: BaseException) -> None:
        return None
