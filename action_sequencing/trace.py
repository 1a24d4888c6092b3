from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from action_sequencing.engine import Sequencer
from action_sequencing.errors import SequencingError


@dataclass(frozen=True)
class PollTrace:
    poll: int
    elapsed: timedelta
    value: Any
    ok: bool
    next: timedelta
    done: bool
    # Error kind raised by this poll, if any (value/ok/next are then empty).
    error: str | None = None


def poll_instants(
        start: datetime,
        resolution: timedelta,
        until: timedelta | None = None,
) -> Iterator[datetime]:
    """Evenly spaced virtual-clock instants from start to start+until, inclusive.

    With until=None the series never ends; bound it with itertools.islice.
    """
    if resolution <= timedelta(0):
        raise ValueError(f"resolution must be positive (got {resolution})")
    elapsed = timedelta(0)
    while until is None or elapsed <= until:
        yield start + elapsed
        elapsed += resolution


def run_with_trace(
        sequencer: Sequencer,
        start: datetime,
        instants: Iterable[datetime],
        *,
        stop_when_done: bool = False,
) -> list[PollTrace]:
    """
    begin(start) then poll every instant, returning a per-poll log.

    Sequencing errors are recorded in the log instead of propagating so a whole
    run can be inspected. This adds observability only; it changes no rules.
    """
    sequencer.begin(start)
    log: list[PollTrace] = []
    for i, now in enumerate(instants, start=1):
        elapsed = now - start
        try:
            r = sequencer.poll(now)
        except SequencingError as e:
            log.append(
                PollTrace(
                    poll=i,
                    elapsed=elapsed,
                    value=None,
                    ok=False,
                    next=timedelta(0),
                    done=False,
                    error=e.kind.value,
                )
            )
            continue
        log.append(PollTrace(i, elapsed, r.value, r.ok, r.next, r.done))
        if stop_when_done and r.done:
            break
    return log


def triggered(log: Iterable[PollTrace]) -> list[tuple[timedelta, Any]]:
    """(elapsed, value) for every poll that triggered an action."""
    return [(t.elapsed, t.value) for t in log if t.ok]
