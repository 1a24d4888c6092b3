from __future__ import annotations

from datetime import datetime, timedelta

from action_sequencing.models import Action
from action_sequencing.loose import LooseSequencer
from action_sequencing.sync import SyncSequencer
from action_sequencing.trace import poll_instants, run_with_trace


def main() -> None:
    actions = [
        Action(timedelta(milliseconds=300), "red"),
        Action(timedelta(milliseconds=100), "amber"),
        Action(timedelta(milliseconds=400), "green"),
    ]
    start = datetime(2000, 1, 1)
    # Irregular cadence: 70ms polls, so sync windows get shortened and loose ones stretch.
    instants = list(poll_instants(start, timedelta(milliseconds=70), timedelta(seconds=2)))

    for seq in (SyncSequencer(actions, iterations=2), LooseSequencer(actions, iterations=2)):
        print(f"\n{type(seq).__name__} (cycle={seq.cycle_duration.total_seconds():g}s)")
        for entry in run_with_trace(seq, start, instants, stop_when_done=True):
            ms = entry.elapsed // timedelta(milliseconds=1)
            if entry.error is not None:
                print(f"  t={ms:5d}ms  ERROR {entry.error}")
            elif entry.ok:
                print(f"  t={ms:5d}ms  {entry.value:<6s} next={entry.next.total_seconds():g}s")
            elif entry.done:
                print(f"  t={ms:5d}ms  done")
                break


if __name__ == "__main__":
    main()
