from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timedelta
from typing import NoReturn, TypeVar

from action_sequencing.engine import UNBOUNDED, ZERO, PollResult, Sequencer, locate
from action_sequencing.errors import GroupFailedError, MissedActionError, ZeroDurationError
from action_sequencing.event_sink import EventSink
from action_sequencing.events import EventType
from action_sequencing.models import MIN_SAFE_DURATION, Action, ActionTable

T = TypeVar("T")

logger = logging.getLogger(__name__)


class SyncSequencer(Sequencer[T]):
    """
    Strict engine: runs actions one after another while preserving the
    periodicity of the whole group.

    Cycle boundaries always land on multiples of cycle_duration from the start
    instant, so after a long run one can tell exactly how many passes were made.

    Use it when:
      - actions last much longer than the period of the polling loop;
      - staying in step with other groups matters more than each action's duration.

    Things to note:
      - an action observed late has its window shortened so the next one is not delayed;
      - if an action is not observed during its window the group fails, and every
        poll raises GroupFailedError until begin() is called again.
    """

    def __init__(
            self,
            actions: ActionTable[T] | Iterable[Action[T]],
            iterations: int = 1,
            *,
            min_safe_duration: timedelta = MIN_SAFE_DURATION,
            event_sink: EventSink | None = None,
    ) -> None:
        table = self._as_table(actions, min_safe_duration=min_safe_duration)
        if table.has_zero_duration:
            raise ZeroDurationError(
                "zero duration action in a synchronized table; "
                "use LooseSequencer when actions can have zero duration"
            )
        super().__init__(table, iterations, event_sink=event_sink)
        self._failure: MissedActionError | None = None

    @property
    def failed(self) -> bool:
        return self._failure is not None

    def _reset(self) -> None:
        self._failure = None

    def _poll(self, now: datetime) -> PollResult[T]:
        if self._failure is not None:
            raise GroupFailedError(self._failure)

        elapsed = now - self._start
        if elapsed < ZERO:
            return self._wait(-elapsed)  # Still waiting for start time.

        n = len(self._table)
        expected = 0 if self._last is None else self._last + 1
        # Whole cycles are counted as ints; a timedelta run length can overflow.
        cycle, position = divmod(elapsed, self.cycle_duration)
        if self._iterations != UNBOUNDED and cycle >= self._iterations:
            if expected == n * self._iterations:
                return self._finish()
            # Covers a first poll arriving after the whole run elapsed.
            self._fail(expected, None)

        index, next_ = locate(self._table, position)
        # position < cycle_duration, so locate always finds an action.
        assert index is not None
        ordinal = cycle * n + index

        if ordinal == self._last:
            return self._wait(next_)  # Current action still running.
        if ordinal != expected:
            self._fail(expected, ordinal)
        return self._trigger(ordinal, next_)

    def _fail(self, expected: int, found: int | None) -> NoReturn:
        err = MissedActionError(expected, found)
        self._failure = err
        logger.warning("%s failed: %s", type(self).__name__, err)
        if self._event_sink is not None:
            self._event_sink.emit(
                EventType.MISSED,
                index=None if found is None else found % len(self._table),
                expected=expected,
                found=found,
            )
        raise err
