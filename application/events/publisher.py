"""
Synchronous domain event publisher.

Each event is stored first, then delivered to the handlers registered for
its type in ascending priority (lower number runs first). A failing handler
is logged and skipped so its siblings still run; delivery is not
transactional with the state change that produced the event.
"""
from __future__ import annotations

import abc
import threading
from typing import ClassVar, Dict, Iterable, List, Optional, Tuple

from core.logging_config import get_logger
from domain.common.events import DomainEvent
from domain.common.exceptions import BusinessException
from shared.codes import BusinessCode

from .store import EventStore, InMemoryEventStore


logger = get_logger(__name__)

DEFAULT_HANDLER_PRIORITY = 100


class EventPublishingException(BusinessException):
    def __init__(self, event: DomainEvent, cause: BaseException):
        super().__init__(
            code=BusinessCode.EVENT_PUBLISHING_ERROR,
            message=f"Failed to publish event {event.event_type}",
            error_type="EventPublishingError",
            details={"event_id": event.event_id, "event_type": event.event_type, "reason": str(cause)},
        )


class DomainEventHandler(abc.ABC):
    event_type: ClassVar[str]
    priority: int = DEFAULT_HANDLER_PRIORITY

    @abc.abstractmethod
    def handle(self, event: DomainEvent) -> None: ...


class SynchronousEventPublisher:
    def __init__(self, store: Optional[EventStore] = None) -> None:
        self.store = store or InMemoryEventStore()
        self._lock = threading.Lock()
        # Immutable per-type tuples; registration swaps in a new tuple
        self._handlers: Dict[str, Tuple[DomainEventHandler, ...]] = {}

    def register(self, handler: DomainEventHandler) -> None:
        with self._lock:
            current = self._handlers.get(handler.event_type, ())
            self._handlers[handler.event_type] = tuple(
                sorted((*current, handler), key=lambda h: h.priority)
            )
        logger.debug(
            "event_handler_registered",
            event_type=handler.event_type,
            handler=type(handler).__name__,
            priority=handler.priority,
        )

    def unregister(self, handler: DomainEventHandler) -> bool:
        with self._lock:
            current = self._handlers.get(handler.event_type, ())
            if handler not in current:
                return False
            self._handlers[handler.event_type] = tuple(h for h in current if h is not handler)
            return True

    def handlers_for(self, event_type: str) -> List[DomainEventHandler]:
        with self._lock:
            return list(self._handlers.get(event_type, ()))

    def handler_count(self, event_type: Optional[str] = None) -> int:
        with self._lock:
            if event_type is not None:
                return len(self._handlers.get(event_type, ()))
            return sum(len(hs) for hs in self._handlers.values())

    def publish(self, event: DomainEvent) -> None:
        try:
            self.store.store(event)
        except Exception as exc:
            logger.error("event_store_failed", event_type=event.event_type, event_id=event.event_id, error=str(exc))
            raise EventPublishingException(event, exc) from exc

        handlers = self.handlers_for(event.event_type)
        logger.info(
            "event_published",
            event_type=event.event_type,
            event_id=event.event_id,
            aggregate_id=event.aggregate_id(),
            handlers=len(handlers),
        )
        for handler in handlers:
            try:
                handler.handle(event)
            except Exception:
                logger.exception(
                    "event_handler_failed",
                    event_type=event.event_type,
                    event_id=event.event_id,
                    handler=type(handler).__name__,
                )

    def publish_all(self, events: Iterable[DomainEvent]) -> None:
        for event in events:
            self.publish(event)
