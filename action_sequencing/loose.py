from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import TypeVar

from action_sequencing.engine import UNBOUNDED, ZERO, PollResult, Sequencer
from action_sequencing.event_sink import EventSink
from action_sequencing.models import Action, ActionTable

T = TypeVar("T")


class LooseSequencer(Sequencer[T]):
    """
    Tolerant engine: runs actions one after another, guaranteeing each one at
    least its declared duration.

    There is no penalty for polling late and this engine never fails. Use it when
    synchronizing with other groups is not a priority, or when action durations
    may be tiny or zero.
    """

    def __init__(
            self,
            actions: ActionTable[T] | Iterable[Action[T]],
            iterations: int = 1,
            *,
            event_sink: EventSink | None = None,
    ) -> None:
        # Small durations are harmless here: nothing can be missed.
        table = self._as_table(actions, allow_zero=True, warn=False)
        super().__init__(table, iterations, event_sink=event_sink)
        self._action_started_at: datetime | None = None

    @property
    def action_started_at(self) -> datetime | None:
        """Instant the current action was triggered at."""
        return self._action_started_at

    def _reset(self) -> None:
        self._action_started_at = None

    def _poll(self, now: datetime) -> PollResult[T]:
        elapsed = now - self._start
        if elapsed < ZERO:
            return self._wait(-elapsed)  # Still waiting for start time.

        if self._last is None:
            self._action_started_at = now
            return self._trigger(0, self._table[0].duration)

        n = len(self._table)
        current = self._table[self._last % n]
        action_elapsed = now - self._action_started_at
        if action_elapsed < current.duration:
            return self._wait(current.duration - action_elapsed)

        ordinal = self._last + 1
        if self._iterations != UNBOUNDED and ordinal >= n * self._iterations:
            return self._finish()

        self._action_started_at = now
        # The full duration is handed out on trigger since it is a lower bound,
        # the same guarantee a sleep gives.
        return self._trigger(ordinal, self._table[ordinal % n].duration)
