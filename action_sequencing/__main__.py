from __future__ import annotations

import argparse
import itertools
import json
import logging
import math
import sys
import warnings
from datetime import datetime, timedelta
from pathlib import Path

from action_sequencing.engine import UNBOUNDED, Sequencer
from action_sequencing.errors import ScheduleDefinitionError, SequencingError, SmallDurationWarning
from action_sequencing.event_sink import InMemoryEventSink
from action_sequencing.models import Action
from action_sequencing.stream_io import (
    InputFormatError,
    ScheduleOptions,
    ScheduleSpec,
    load_schedule,
    write_events,
)
from action_sequencing.trace import poll_instants

LOG_FORMAT = "[%(asctime)s] [%(name)s] %(levelname)s: %(message)s"

# Virtual clock origin. Only elapsed time since begin() matters.
EPOCH = datetime(2000, 1, 1)


def _demo_spec() -> ScheduleSpec:
    # Three half-second actions, one pass: adds 20, 30, 50.
    half = timedelta(milliseconds=500)
    return ScheduleSpec(
        actions=[Action(half, 20), Action(half, 30), Action(half, 50)],
        options=ScheduleOptions(mode="sync", iterations=1),
    )


def _fmt_duration(d: timedelta) -> str:
    return f"{d.total_seconds():g}s"


def _fmt_value(value: object) -> str:
    try:
        return json.dumps(value)
    except TypeError:
        return repr(value)


def _simulate(sequencer: Sequencer, *, resolution: timedelta, max_polls: int) -> int:
    """Poll on a virtual clock and print each trigger. Returns the exit code."""
    sequencer.begin(EPOCH)
    instants = itertools.islice(poll_instants(EPOCH, resolution), max_polls)
    while True:
        try:
            now = next(instants)
        except StopIteration:
            break
        except OverflowError:
            print("ERROR: virtual clock ran past datetime.max", file=sys.stderr)
            return 2
        elapsed = now - EPOCH
        try:
            r = sequencer.poll(now)
        except SequencingError as e:
            print(f"t={_fmt_duration(elapsed)} ERROR: {e}", file=sys.stderr)
            return 1
        if r.done:
            print(f"t={_fmt_duration(elapsed)} done")
            return 0
        if r.ok:
            print(
                f"t={_fmt_duration(elapsed)} action {sequencer.last_index} "
                f"value={_fmt_value(r.value)} next={_fmt_duration(r.next)}"
            )
    print(f"stopped after {max_polls} polls")
    return 0


def _cmd_run(args: argparse.Namespace) -> int:
    if bool(args.demo) == bool(args.schedule):
        print("ERROR: choose exactly one of --demo or --schedule.", file=sys.stderr)
        return 2
    # Written so NaN is rejected too.
    if not (0 < args.resolution_ms < math.inf):
        print("ERROR: --resolution-ms must be a positive, finite number.", file=sys.stderr)
        return 2
    try:
        resolution = timedelta(milliseconds=args.resolution_ms)
    except OverflowError:
        print("ERROR: --resolution-ms is out of range.", file=sys.stderr)
        return 2

    if args.schedule:
        try:
            spec = load_schedule(Path(str(args.schedule)))
        except InputFormatError as e:
            print(f"ERROR: invalid schedule: {e}", file=sys.stderr)
            return 2
    else:
        spec = _demo_spec()

    if args.iterations is not None:
        spec = ScheduleSpec(
            actions=spec.actions,
            options=ScheduleOptions(
                mode=spec.options.mode,
                iterations=int(args.iterations),
                min_safe_duration=spec.options.min_safe_duration,
            ),
        )

    sink = InMemoryEventSink()
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always", SmallDurationWarning)
        try:
            sequencer = spec.build(event_sink=sink)
        except ScheduleDefinitionError as e:
            print(f"ERROR: invalid schedule: {e}", file=sys.stderr)
            return 2
        except OverflowError:
            print("ERROR: invalid schedule: total duration is out of range", file=sys.stderr)
            return 2
    for w in caught:
        print(f"WARNING: {w.message}", file=sys.stderr)

    iterations = "unbounded" if sequencer.iterations == UNBOUNDED else str(sequencer.iterations)
    print(
        f"{spec.options.mode} schedule: {len(sequencer.table)} actions, "
        f"cycle {_fmt_duration(sequencer.cycle_duration)}, iterations {iterations}"
    )

    code = _simulate(
        sequencer,
        resolution=resolution,
        max_polls=int(args.max_polls),
    )

    if args.events_out:
        write_events(Path(str(args.events_out)), sink.events)
    return code


def build_parser() -> argparse.ArgumentParser:
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="action_sequencing",
        description=(
            "Action Sequencing - polling harness.\n"
            "\n"
            "Polls a schedule on a virtual clock at a fixed resolution\n"
            "and prints every action as it becomes due."
        ),
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level for engine diagnostics (written to stderr).",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Simulate polling a schedule and print triggered actions.")
    run.add_argument("--demo", action="store_true", help="Run the built-in 20/30/50 schedule.")
    run.add_argument("--schedule", type=str, help="Run a schedule JSON file.")
    run.add_argument("--resolution-ms", type=float, default=250.0, help="Virtual poll period.")
    run.add_argument("--max-polls", type=int, default=10_000, help="Safety cap: max polls to simulate.")
    run.add_argument(
        "--iterations",
        type=int,
        default=None,
        help="Override the schedule's iteration count (-1 runs forever).",
    )
    run.add_argument("--events-out", type=str, default=None, help="Write captured events as JSON.")
    run.set_defaults(func=_cmd_run)

    return parser


def main(argv: list[str] | None = None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
