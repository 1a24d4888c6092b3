from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """
    Discriminable failure kinds.
    Every SequencingError carries one so callers can branch without isinstance.
    """

    EMPTY_TABLE = "EMPTY_TABLE"
    NEGATIVE_DURATION = "NEGATIVE_DURATION"
    ZERO_DURATION = "ZERO_DURATION"
    BAD_ITERATION_COUNT = "BAD_ITERATION_COUNT"
    NOT_STARTED = "NOT_STARTED"
    MISSED_ACTION = "MISSED_ACTION"
    GROUP_FAILED = "GROUP_FAILED"


class SequencingError(Exception):
    """Base class for every error raised by this package's engines."""

    kind: ErrorKind


class ScheduleDefinitionError(SequencingError, ValueError):
    """Raised at construction time. The caller must fix the input and rebuild."""


class EmptyTableError(ScheduleDefinitionError):
    kind = ErrorKind.EMPTY_TABLE


class NegativeDurationError(ScheduleDefinitionError):
    kind = ErrorKind.NEGATIVE_DURATION


class ZeroDurationError(ScheduleDefinitionError):
    kind = ErrorKind.ZERO_DURATION


class BadIterationCountError(ScheduleDefinitionError):
    kind = ErrorKind.BAD_ITERATION_COUNT


class NotStartedError(SequencingError, RuntimeError):
    """Raised when poll() is called before begin()."""

    kind = ErrorKind.NOT_STARTED


class MissedActionError(SequencingError, RuntimeError):
    """
    The poll cadence was too coarse and at least one action boundary was
    crossed without being observed.

    expected/found are absolute action ordinals (cycle * len(table) + index);
    found is None when the whole bounded run had already elapsed.
    """

    kind = ErrorKind.MISSED_ACTION

    def __init__(self, expected: int, found: int | None) -> None:
        self.expected = expected
        self.found = found
        where = "end of schedule" if found is None else f"action #{found}"
        super().__init__(
            f"missed action: expected action #{expected} but polled at {where}; "
            "poll must be called often enough to observe every action"
        )


class GroupFailedError(SequencingError, RuntimeError):
    """Sticky re-surfacing of an earlier MissedActionError until begin() is called again."""

    kind = ErrorKind.GROUP_FAILED

    def __init__(self, cause: MissedActionError) -> None:
        self.cause = cause
        super().__init__(f"group failed: {cause}")


class SmallDurationWarning(UserWarning):
    """An action is shorter than the minimum safe duration; a coarse poll cadence may miss it."""
