from __future__ import annotations

import json
import os
import subprocess
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]


def _run_module(*args: str) -> subprocess.CompletedProcess[str]:
    cmd = [sys.executable, "-m", "action_sequencing", *args]
    env = os.environ.copy()
    env["PYTHONPATH"] = str(REPO_ROOT) + os.pathsep + env.get("PYTHONPATH", "")
    return subprocess.run(
        cmd, text=True, capture_output=True, cwd=REPO_ROOT, env=env
    )


def test_cli_help_succeeds() -> None:
    p = _run_module("--help")
    assert p.returncode == 0, p.stderr
    assert "Action Sequencing" in (p.stdout or "")


def test_cli_demo_adds_values_in_order() -> None:
    p = _run_module("run", "--demo")
    assert p.returncode == 0, p.stderr
    out = p.stdout or ""
    assert "cycle 1.5s, iterations 1" in out
    lines = [ln for ln in out.splitlines() if "value=" in ln]
    assert [ln.split("value=")[1].split()[0] for ln in lines] == ["20", "30", "50"]
    assert out.rstrip().endswith("t=1.5s done")


def test_cli_coarse_resolution_reports_missed_action() -> None:
    sample = REPO_ROOT / "samples" / "demo_schedule.json"
    p = _run_module("run", "--schedule", str(sample), "--resolution-ms", "1100")
    assert p.returncode == 1
    assert "missed action" in (p.stderr or "")


def test_cli_unbounded_stops_at_poll_cap() -> None:
    p = _run_module("run", "--demo", "--iterations", "-1", "--max-polls", "20")
    assert p.returncode == 0, p.stderr
    assert "iterations unbounded" in p.stdout
    assert "stopped after 20 polls" in p.stdout


def test_cli_rejects_demo_and_schedule_together() -> None:
    sample = REPO_ROOT / "samples" / "demo_schedule.json"
    p = _run_module("run", "--demo", "--schedule", str(sample))
    assert p.returncode == 2
    assert "choose exactly one" in (p.stderr or "")


def test_cli_rejects_bad_schedule(tmp_path: Path) -> None:
    path = tmp_path / "s.json"
    path.write_text(json.dumps({"actions": [{"duration_ms": 0}]}), encoding="utf-8")
    p = _run_module("run", "--schedule", str(path))
    assert p.returncode == 2
    assert "zero duration" in (p.stderr or "")

    huge = tmp_path / "huge.json"
    huge.write_text(json.dumps({"actions": [{"duration": 1e300, "value": 1}]}), encoding="utf-8")
    p = _run_module("run", "--schedule", str(huge))
    assert p.returncode == 2
    assert "out of range" in (p.stderr or "")
    assert "Traceback" not in (p.stderr or "")

    # Each action fits in a timedelta, their sum does not.
    total = tmp_path / "total.json"
    total.write_text(
        json.dumps({"actions": [{"duration": 8e13, "value": 1}, {"duration": 8e13, "value": 2}]}),
        encoding="utf-8",
    )
    p = _run_module("run", "--schedule", str(total))
    assert p.returncode == 2
    assert "total duration is out of range" in (p.stderr or "")

    latin = tmp_path / "latin.json"
    latin.write_bytes(b'{"actions": [{"duration": 1, "value": "caf\xe9"}]}')
    p = _run_module("run", "--schedule", str(latin))
    assert p.returncode == 2
    assert "not UTF-8" in (p.stderr or "")


def test_cli_rejects_non_finite_resolution() -> None:
    for bad in ("nan", "inf", "0", "-5"):
        p = _run_module("run", "--demo", "--resolution-ms", bad)
        assert p.returncode == 2, bad
        assert "--resolution-ms" in (p.stderr or ""), bad


def test_cli_small_duration_warning_is_reported(tmp_path: Path) -> None:
    path = tmp_path / "s.json"
    path.write_text(json.dumps({"actions": [{"duration_ms": 0.5, "value": 1}]}), encoding="utf-8")
    p = _run_module("run", "--schedule", str(path), "--resolution-ms", "0.1")
    assert p.returncode == 0, p.stderr
    assert "WARNING:" in (p.stderr or "")
    assert "done" in p.stdout


def test_cli_events_out_and_debug_logging(tmp_path: Path) -> None:
    out = tmp_path / "events.json"
    sample = REPO_ROOT / "samples" / "blink_loose.json"
    p = _run_module(
        "--log-level", "DEBUG",
        "run", "--schedule", str(sample), "--resolution-ms", "100", "--events-out", str(out),
    )
    assert p.returncode == 0, p.stderr
    assert "LooseSequencer begins at" in (p.stderr or "")

    events = json.loads(out.read_text(encoding="utf-8"))
    types = [e["type"] for e in events]
    assert types[0] == "BEGIN"
    assert types.count("TRIGGERED") == 9
    assert types[-1] == "DONE"
