from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class EventType(str, Enum):
    """
    Minimal event vocabulary emitted by the sequencers.
    Keep this small; add types only when tests require them.
    """

    BEGIN = "BEGIN"
    TRIGGERED = "TRIGGERED"
    DONE = "DONE"
    MISSED = "MISSED"


@dataclass(frozen=True, slots=True)
class Event:
    """
    A structured, orderable fact emitted by a sequencer (optionally).

    poll and seq are owned by the sink (so the sequencer keeps no counters for it).
    index is the table index the event refers to, when there is one.
    """

    poll: int
    seq: int
    type: EventType
    index: int | None = None
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "poll": self.poll,
            "seq": self.seq,
            "type": self.type.value,
            "index": self.index,
            "data": dict(self.data),
        }
