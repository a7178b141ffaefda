"""
Synchronous command bus.

Dispatch goes through a table from command type to handlers, rebuilt on
every registration and ordered by descending priority then registration
order, so the first entry is always the handler to run.
"""
from __future__ import annotations

import itertools
import threading
from typing import Any, Dict, List, Optional, Tuple

from core.logging_config import get_logger

from .base import Command, CommandHandler, CommandMiddleware, CommandType
from .exceptions import CommandExecutionException, CommandHandlerNotFoundException


logger = get_logger(__name__)


class CommandBus:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._seq = itertools.count()
        self._handlers: List[Tuple[int, CommandHandler]] = []
        self._dispatch: Dict[CommandType, Tuple[CommandHandler, ...]] = {}
        self._middlewares: Tuple[CommandMiddleware, ...] = ()

    def register_handler(self, handler: CommandHandler) -> None:
        with self._lock:
            self._handlers.append((next(self._seq), handler))
            self._dispatch = self._build_dispatch_table()
        logger.debug("command_handler_registered", handler=type(handler).__name__, priority=handler.priority)

    def register_middleware(self, middleware: CommandMiddleware) -> None:
        with self._lock:
            self._middlewares = tuple(sorted((*self._middlewares, middleware), key=lambda m: m.order))

    def _build_dispatch_table(self) -> Dict[CommandType, Tuple[CommandHandler, ...]]:
        table: Dict[CommandType, Tuple[CommandHandler, ...]] = {}
        ordered = sorted(self._handlers, key=lambda entry: (-entry[1].priority, entry[0]))
        for command_type in CommandType:
            table[command_type] = tuple(h for _, h in ordered if h.supports(command_type))
        return table

    def handler_for(self, command_type: CommandType) -> Optional[CommandHandler]:
        candidates = self._dispatch.get(command_type, ())
        return candidates[0] if candidates else None

    @property
    def middlewares(self) -> Tuple[CommandMiddleware, ...]:
        return self._middlewares

    def execute(self, command: Command) -> Any:
        middlewares = self._middlewares
        try:
            command.validate()
            for middleware in middlewares:
                middleware.pre_process(command)
            handler = self.handler_for(command.command_type)
            if handler is None:
                raise CommandHandlerNotFoundException(command.command_type.value)
            result = handler.handle(command)
            for middleware in middlewares:
                middleware.post_process(command, result)
            return result
        except Exception as exc:
            for middleware in middlewares:
                try:
                    middleware.on_error(command, exc)
                except Exception:
                    logger.exception("command_error_middleware_failed", middleware=type(middleware).__name__)
            raise CommandExecutionException(command.command_type.value, command.command_id, exc) from exc
