# tests/_support/schedule_helpers.py
from __future__ import annotations

import random
from datetime import datetime, timedelta

from action_sequencing.models import Action

US = timedelta(microseconds=1)
MS = timedelta(milliseconds=1)

# Any non-sentinel instant works; only differences matter.
START = datetime(2000, 1, 1) + US


def ms(n: float) -> timedelta:
    return timedelta(milliseconds=n)


def at(offset: timedelta) -> datetime:
    return START + offset


def random_int_actions(
        rng: random.Random,
        min_d: timedelta,
        max_d: timedelta,
        n: int,
        *,
        unit: timedelta = US,
) -> list[Action[int]]:
    """
    Actions with ordered values 1..n and random durations in [min_d, max_d].
    Durations are whole multiples of `unit`.
    """
    if n <= 0:
        raise ValueError("bad length")
    if min_d > max_d or min_d < timedelta(0):
        raise ValueError("bad duration range")
    lo, hi = min_d // unit, max_d // unit
    return [Action(unit * rng.randint(lo, hi), i + 1) for i in range(n)]


def reference_index(actions: list[Action], elapsed: timedelta) -> tuple[int, timedelta]:
    """Independent scan used to check engine output; -1 means past the end."""
    end = timedelta(0)
    for i, a in enumerate(actions):
        end += a.duration
        if elapsed < end:
            return i, end - elapsed
    return -1, timedelta(0)


def boundaries(actions: list[Action], cycles: int) -> list[timedelta]:
    """Start offset of every action over `cycles` passes, plus the final end."""
    out = [timedelta(0)]
    for _ in range(cycles):
        for a in actions:
            out.append(out[-1] + a.duration)
    return out
