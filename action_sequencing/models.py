from __future__ import annotations

import logging
import warnings
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import timedelta
from typing import Generic, TypeVar, overload

from action_sequencing.errors import (
    EmptyTableError,
    NegativeDurationError,
    SmallDurationWarning,
    ZeroDurationError,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)

# Actions shorter than this risk being skipped by an ordinary event loop.
MIN_SAFE_DURATION = timedelta(milliseconds=1)


def as_duration(value: timedelta | float | int) -> timedelta:
    """Coerce a timedelta or a real number of seconds into a timedelta."""
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"duration must be a timedelta or seconds, got {type(value).__name__}")
    return timedelta(seconds=value)


@dataclass(frozen=True, slots=True)
class Action(Generic[T]):
    duration: timedelta
    # Opaque payload; the engines never look inside.
    value: T


class ActionTable(Sequence[Action[T]], Generic[T]):
    """
    Immutable, ordered, non-empty schedule definition.

    Index order is execution order. The caller's sequence is copied on
    construction so later mutation of it cannot reach a running sequencer.
    cycle_duration is summed once here and is the only place that sum lives.
    """

    __slots__ = ("_actions", "_cycle_duration", "_has_zero", "_has_small")

    def __init__(
            self,
            actions: Iterable[Action[T]],
            *,
            allow_zero: bool = False,
            min_safe_duration: timedelta = MIN_SAFE_DURATION,
            warn: bool = True,
            stacklevel: int = 2,
    ) -> None:
        items = tuple(Action(as_duration(a.duration), a.value) for a in actions)
        if not items:
            raise EmptyTableError("action table must contain at least one action")

        total = timedelta(0)
        has_zero = False
        has_small = False
        for i, a in enumerate(items):
            if a.duration < timedelta(0):
                raise NegativeDurationError(f"actions[{i}] has negative duration {a.duration}")
            if a.duration == timedelta(0):
                if not allow_zero:
                    raise ZeroDurationError(
                        f"actions[{i}] has zero duration; use a loose sequencer "
                        "when actions may have zero duration"
                    )
                has_zero = True
            elif a.duration < min_safe_duration:
                has_small = True
            total += a.duration

        self._actions = items
        self._cycle_duration = total
        self._has_zero = has_zero
        self._has_small = has_small

        if has_small and warn:
            # Still usable: the caller may own really tight-timed hardware.
            warnings.warn(
                f"action table has durations below {min_safe_duration}; "
                "this may cause missed action errors",
                SmallDurationWarning,
                stacklevel=stacklevel,
            )
        logger.debug("action table built: %d actions, cycle %s", len(items), total)

    @property
    def cycle_duration(self) -> timedelta:
        return self._cycle_duration

    @property
    def has_zero_duration(self) -> bool:
        return self._has_zero

    @property
    def has_small_duration(self) -> bool:
        return self._has_small

    def values(self) -> list[T]:
        return [a.value for a in self._actions]

    @overload
    def __getitem__(self, index: int) -> Action[T]: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[Action[T], ...]: ...

    def __getitem__(self, index):
        return self._actions[index]

    def __len__(self) -> int:
        return len(self._actions)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ActionTable):
            return NotImplemented
        return self._actions == other._actions

    def __hash__(self) -> int:
        return hash(self._actions)

    def __repr__(self) -> str:
        return f"ActionTable({list(self._actions)!r})"
