"""
Domain event base type and publishing port.

Events are immutable facts carrying only primitive identifiers and amounts.
Each concrete event declares its ``event_type`` tag and returns its own
aggregate id, so stores and dispatchers key on the tag instead of the class.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import ClassVar, Iterable, Protocol, runtime_checkable
import uuid


@dataclass(frozen=True)
class DomainEvent:
    event_type: ClassVar[str] = "DomainEvent"

    event_id: str = field(default_factory=lambda: str(uuid.uuid4()), kw_only=True)
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc), kw_only=True)

    def aggregate_id(self) -> str:
        raise NotImplementedError


@runtime_checkable
class DomainEventPublisher(Protocol):
    """Publish-only port used by handlers and application services."""

    def publish(self, event: DomainEvent) -> None: ...

    def publish_all(self, events: Iterable[DomainEvent]) -> None: ...
