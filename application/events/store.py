"""
Append-only event store. The in-memory variant keeps insertion order and
indexes by event type tag and aggregate id.
"""
from __future__ import annotations

import abc
import threading
from collections import defaultdict
from typing import Dict, Iterable, List

from domain.common.events import DomainEvent


class EventStore(abc.ABC):
    @abc.abstractmethod
    def store(self, event: DomainEvent) -> None: ...

    def store_all(self, events: Iterable[DomainEvent]) -> None:
        for event in events:
            self.store(event)

    @abc.abstractmethod
    def events_by_type(self, event_type: str) -> List[DomainEvent]: ...

    @abc.abstractmethod
    def events_for_aggregate(self, aggregate_id: str) -> List[DomainEvent]: ...

    @abc.abstractmethod
    def all_events(self) -> List[DomainEvent]: ...

    @abc.abstractmethod
    def count(self) -> int: ...


class InMemoryEventStore(EventStore):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._events: List[DomainEvent] = []
        self._by_type: Dict[str, List[DomainEvent]] = defaultdict(list)
        self._by_aggregate: Dict[str, List[DomainEvent]] = defaultdict(list)

    def store(self, event: DomainEvent) -> None:
        aggregate_id = event.aggregate_id()
        with self._lock:
            self._events.append(event)
            self._by_type[event.event_type].append(event)
            self._by_aggregate[aggregate_id].append(event)

    def store_all(self, events: Iterable[DomainEvent]) -> None:
        batch = [(event, event.aggregate_id()) for event in events]
        with self._lock:
            for event, aggregate_id in batch:
                self._events.append(event)
                self._by_type[event.event_type].append(event)
                self._by_aggregate[aggregate_id].append(event)

    def events_by_type(self, event_type: str) -> List[DomainEvent]:
        with self._lock:
            return list(self._by_type.get(event_type, ()))

    def events_for_aggregate(self, aggregate_id: str) -> List[DomainEvent]:
        with self._lock:
            return list(self._by_aggregate.get(aggregate_id, ()))

    def all_events(self) -> List[DomainEvent]:
        with self._lock:
            return list(self._events)

    def count(self) -> int:
        with self._lock:
            return len(self._events)

    def clear(self) -> None:
        with self._lock:
            self._events.clear()
            self._by_type.clear()
            self._by_aggregate.clear()
