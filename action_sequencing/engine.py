from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Generic, TypeVar

from action_sequencing.errors import BadIterationCountError, NotStartedError
from action_sequencing.event_sink import EventSink
from action_sequencing.events import EventType
from action_sequencing.models import Action, ActionTable

T = TypeVar("T")

logger = logging.getLogger(__name__)

UNBOUNDED = -1
ZERO = timedelta(0)


@dataclass(frozen=True, slots=True)
class PollResult(Generic[T]):
    """
    Outcome of a single poll.

    ok=True: value is the action to execute now; next is how long it has.
    ok=False: nothing to do; wait next. next == 0 means the sequence is done.
    """

    value: T | None
    ok: bool
    next: timedelta

    @property
    def done(self) -> bool:
        return not self.ok and self.next == ZERO


def locate(table: ActionTable[T], elapsed: timedelta) -> tuple[int | None, timedelta]:
    """
    Find the action active at `elapsed` into a single pass of the table.

    Returns (index, time until that action ends), or (None, 0) when elapsed is
    at or beyond the end of the table.
    """
    end = ZERO
    for i, action in enumerate(table):
        end += action.duration
        if elapsed < end:
            return i, end - elapsed
    return None, ZERO


def check_iterations(iterations: int) -> int:
    if isinstance(iterations, bool) or not isinstance(iterations, int):
        raise BadIterationCountError(f"iterations must be an int, got {type(iterations).__name__}")
    if iterations <= 0 and iterations != UNBOUNDED:
        raise BadIterationCountError(
            f"iterations must be positive or {UNBOUNDED} for unbounded (got {iterations})"
        )
    return iterations


class Sequencer(ABC, Generic[T]):
    """
    Common shape of the polling engines: begin, poll, cycle_duration, iterations.

    Progress is tracked as an absolute action ordinal (cycle * len(table) + index)
    so "nothing triggered yet" (None) can never be confused with index 0.
    """

    def __init__(
            self,
            table: ActionTable[T],
            iterations: int,
            *,
            event_sink: EventSink | None = None,
    ) -> None:
        self._table = table
        self._iterations = check_iterations(iterations)
        self._event_sink = event_sink
        self._start: datetime | None = None
        self._last: int | None = None
        self._done_reported = False

    @staticmethod
    def _as_table(
            actions: ActionTable[T] | Iterable[Action[T]], **table_kwargs
    ) -> ActionTable[T]:
        if isinstance(actions, ActionTable):
            return actions
        # Report SmallDurationWarning at the line that built the sequencer.
        return ActionTable(actions, stacklevel=4, **table_kwargs)

    # ------------------------------------------------------------------
    # Contract
    # ------------------------------------------------------------------
    @property
    def table(self) -> ActionTable[T]:
        return self._table

    @property
    def cycle_duration(self) -> timedelta:
        return self._table.cycle_duration

    @property
    def iterations(self) -> int:
        """Number of passes over the table, or UNBOUNDED (-1)."""
        return self._iterations

    @property
    def start_instant(self) -> datetime | None:
        """Instant passed to the last begin(); None if never started."""
        return self._start

    @property
    def run_duration(self) -> timedelta | None:
        """iterations * cycle_duration; None when unbounded. Polling never needs it."""
        if self._iterations == UNBOUNDED:
            return None
        return self.cycle_duration * self._iterations

    @property
    def last_index(self) -> int | None:
        """Table index of the most recently triggered action, None if none yet."""
        if self._last is None:
            return None
        return self._last % len(self._table)

    def begin(self, now: datetime) -> None:
        """Start (or restart) the sequence at `now`, discarding all progress."""
        self._start = now
        self._last = None
        self._done_reported = False
        self._reset()
        logger.debug("%s begins at %s", type(self).__name__, now)
        if self._event_sink is not None:
            self._event_sink.emit(EventType.BEGIN, start=str(now))

    def poll(self, now: datetime) -> PollResult[T]:
        """
        Check `now` against the start instant and return the action due, if any.

        Raises NotStartedError when begin() was never called.
        """
        if self._event_sink is not None:
            self._event_sink.start_poll()
        if self._start is None:
            raise NotStartedError(f"{type(self).__name__}.poll called before begin")
        return self._poll(now)

    @abstractmethod
    def _reset(self) -> None: ...

    @abstractmethod
    def _poll(self, now: datetime) -> PollResult[T]: ...

    # ------------------------------------------------------------------
    # Shared transitions
    # ------------------------------------------------------------------
    def _wait(self, next_: timedelta) -> PollResult[T]:
        return PollResult(None, False, next_)

    def _trigger(self, ordinal: int, next_: timedelta) -> PollResult[T]:
        self._last = ordinal
        index = ordinal % len(self._table)
        value = self._table[index].value
        logger.debug("trigger action #%d (index %d), next in %s", ordinal, index, next_)
        if self._event_sink is not None:
            self._event_sink.emit(
                EventType.TRIGGERED,
                index=index,
                ordinal=ordinal,
                next_us=_micros(next_),
            )
        return PollResult(value, True, next_)

    def _finish(self) -> PollResult[T]:
        if not self._done_reported:
            self._done_reported = True
            logger.debug("%s done after %s actions", type(self).__name__, _count(self._last))
            if self._event_sink is not None:
                self._event_sink.emit(EventType.DONE, triggered=_count(self._last))
        return PollResult(None, False, ZERO)


def _count(last: int | None) -> int:
    return 0 if last is None else last + 1


def _micros(d: timedelta) -> int:
    return d // timedelta(microseconds=1)
