"""
Action Sequencing

Polled, timer-free sequencing of (duration, value) actions.

Core modules:
- models: Action and the immutable ActionTable
- engine: the shared Sequencer contract, PollResult and locate()
- sync: SyncSequencer, drift-free strict timing
- loose: LooseSequencer, minimum-duration timing that never fails
- trace: helpers for producing per-poll traces (no behavior changes)
"""
from action_sequencing.engine import UNBOUNDED, PollResult, Sequencer, locate
from action_sequencing.errors import (
    BadIterationCountError,
    EmptyTableError,
    ErrorKind,
    GroupFailedError,
    MissedActionError,
    NegativeDurationError,
    NotStartedError,
    ScheduleDefinitionError,
    SequencingError,
    SmallDurationWarning,
    ZeroDurationError,
)
from action_sequencing.loose import LooseSequencer
from action_sequencing.models import MIN_SAFE_DURATION, Action, ActionTable, as_duration
from action_sequencing.sync import SyncSequencer

__all__ = [
    "UNBOUNDED",
    "MIN_SAFE_DURATION",
    "Action",
    "ActionTable",
    "as_duration",
    "locate",
    "PollResult",
    "Sequencer",
    "SyncSequencer",
    "LooseSequencer",
    "ErrorKind",
    "SequencingError",
    "ScheduleDefinitionError",
    "EmptyTableError",
    "NegativeDurationError",
    "ZeroDurationError",
    "BadIterationCountError",
    "NotStartedError",
    "MissedActionError",
    "GroupFailedError",
    "SmallDurationWarning",
]
