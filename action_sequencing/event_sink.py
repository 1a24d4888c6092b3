"""
Event sinks for sequencer observability.

A sink numbers events by poll: every poll() calls start_poll() first, and seq
counts events within that poll. begin() does not start a poll, so its BEGIN
event lands on poll 0 for a fresh sink, or on the last poll number after a
re-begin.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from action_sequencing.events import Event, EventType


class EventSink(ABC):
    """
    Consumer of structured events.
    Sequencers must be able to run with event_sink=None (no events).
    """

    @abstractmethod
    def start_poll(self) -> int: ...

    @abstractmethod
    def emit(self, event_type: EventType, index: int | None = None, **data: Any) -> None: ...


@dataclass
class InMemoryEventSink(EventSink):
    """
    Simple sink for tests/demos.
    Owns poll/seq numbering. Events emitted by begin() land on the most
    recent poll number (0 before the first poll).
    """

    events: list[Event] = field(default_factory=list)
    _poll: int = field(default=0, init=False)
    _seq: int = field(default=0, init=False)

    @property
    def current_poll(self) -> int:
        return self._poll

    def start_poll(self) -> int:
        self._poll += 1
        self._seq = 0
        return self._poll

    def emit(self, event_type: EventType, index: int | None = None, **data: Any) -> None:
        self._seq += 1
        self.events.append(
            Event(
                poll=self._poll,
                seq=self._seq,
                type=event_type,
                index=index,
                data=dict(data),
            )
        )

    def of_type(self, event_type: EventType) -> list[Event]:
        return [e for e in self.events if e.type == event_type]
