from __future__ import annotations

import json
import math
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path
from typing import Any

from action_sequencing.engine import UNBOUNDED, Sequencer
from action_sequencing.event_sink import EventSink
from action_sequencing.events import Event
from action_sequencing.loose import LooseSequencer
from action_sequencing.models import MIN_SAFE_DURATION, Action, ActionTable
from action_sequencing.sync import SyncSequencer

MODES = ("sync", "loose")


class InputFormatError(ValueError):
    """Raised when a schedule file fails validation."""


@dataclass(frozen=True)
class ScheduleOptions:
    # "sync" (strict, drift-free) or "loose" (minimum duration per action).
    mode: str = "sync"
    # Positive number of passes, or -1 to run forever.
    iterations: int = 1
    min_safe_duration: timedelta = MIN_SAFE_DURATION


@dataclass(frozen=True)
class ScheduleSpec:
    actions: list[Action[Any]]
    options: ScheduleOptions = ScheduleOptions()

    def build(self, event_sink: EventSink | None = None) -> Sequencer[Any]:
        """Construct the configured sequencer. Construction errors propagate."""
        if self.options.mode == "loose":
            return LooseSequencer(self.actions, self.options.iterations, event_sink=event_sink)
        table = ActionTable(
            self.actions,
            min_safe_duration=self.options.min_safe_duration,
            stacklevel=3,
        )
        return SyncSequencer(table, self.options.iterations, event_sink=event_sink)


def load_schedule(path: Path) -> ScheduleSpec:
    """Load and validate a schedule file.

    Format:
      {
        "mode": "sync",
        "iterations": 1,
        "min_safe_duration_ms": 1,
        "actions": [
          {"duration_ms": 500, "value": 20},
          {"duration": 0.5, "value": 30},
          ...
        ]
      }

    Only "actions" is required. Each action takes exactly one of duration_ms
    (milliseconds) or duration (seconds); value may be any JSON value.
    """
    if not path.exists():
        raise InputFormatError(f"file not found: {path}")
    if not path.is_file():
        raise InputFormatError(f"not a file: {path}")

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except UnicodeDecodeError as e:
        raise InputFormatError(f"not UTF-8 text: byte {e.start}: {e.reason}") from e
    except json.JSONDecodeError as e:
        raise InputFormatError(
            f"invalid JSON: {e.msg} (line {e.lineno}, col {e.colno})"
        ) from e

    return parse_schedule(raw)


def parse_schedule(raw: Any) -> ScheduleSpec:
    if not isinstance(raw, dict):
        raise InputFormatError("root must be a JSON object")

    actions_raw = raw.get("actions")
    if not isinstance(actions_raw, list) or not actions_raw:
        raise InputFormatError("actions must be a non-empty array")

    actions: list[Action[Any]] = []
    for i, item in enumerate(actions_raw):
        if not isinstance(item, dict):
            raise InputFormatError(f"actions[{i}] must be an object")
        actions.append(_parse_action(item, label=f"actions[{i}]"))

    return ScheduleSpec(actions=actions, options=_parse_options(raw))


def _parse_action(raw: dict[str, Any], *, label: str) -> Action[Any]:
    has_ms = "duration_ms" in raw
    has_s = "duration" in raw
    if has_ms == has_s:
        raise InputFormatError(f"{label} needs exactly one of duration_ms or duration")
    key = "duration_ms" if has_ms else "duration"
    amount = _number(raw[key], label=f"{label}.{key}")
    if amount < 0:
        raise InputFormatError(f"{label}.{key} must be >= 0 (got {amount})")
    if has_ms:
        duration = _to_timedelta(label=f"{label}.{key}", milliseconds=amount)
    else:
        duration = _to_timedelta(label=f"{label}.{key}", seconds=amount)
    return Action(duration, raw.get("value"))


def _parse_options(raw: dict[str, Any]) -> ScheduleOptions:
    mode = raw.get("mode", "sync")
    if mode not in MODES:
        raise InputFormatError(f"mode must be one of {', '.join(MODES)} (got {mode!r})")

    iterations = raw.get("iterations", 1)
    if isinstance(iterations, bool) or not isinstance(iterations, int):
        raise InputFormatError("iterations must be an int")
    if iterations <= 0 and iterations != UNBOUNDED:
        raise InputFormatError(f"iterations must be positive or -1 (got {iterations})")

    min_safe = MIN_SAFE_DURATION
    if "min_safe_duration_ms" in raw:
        ms = _number(raw["min_safe_duration_ms"], label="min_safe_duration_ms")
        if ms < 0:
            raise InputFormatError(f"min_safe_duration_ms must be >= 0 (got {ms})")
        min_safe = _to_timedelta(label="min_safe_duration_ms", milliseconds=ms)

    return ScheduleOptions(mode=mode, iterations=iterations, min_safe_duration=min_safe)


def _number(value: Any, *, label: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InputFormatError(f"{label} must be a number")
    try:
        finite = math.isfinite(value)
    except OverflowError as e:
        # ints too large for a float
        raise InputFormatError(f"{label} is out of range") from e
    if not finite:
        raise InputFormatError(f"{label} must be finite")
    return value


def write_events(path: Path, events: list[Event]) -> None:
    path.write_text(
        json.dumps([e.to_dict() for e in events], indent=2),
        encoding="utf-8",
    )


def _to_timedelta(*, label: str, **amount: float) -> timedelta:
    try:
        return timedelta(**amount)
    except OverflowError as e:
        raise InputFormatError(f"{label} is out of range") from e
