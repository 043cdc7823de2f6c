import importlib
import json
import os
import time

from progress import (
    record_region,
    reset,
    set_done,
    set_region,
    set_regions_total,
    set_result_url,
    set_status,
    snapshot,
)


def test_set_done_no_args_defaults_to_solved():
    reset()
    set_done()
    snap = snapshot()
    assert snap["status"] == "Solved"
    assert snap["percent"] == 100.0
    assert snap["done"] is True
    assert snap["ok"] is True
    assert snap["result_url"] == ""


def test_set_done_with_failure_keeps_reason():
    reset()
    set_status("Solving")
    set_done(False, reason="boom")
    snap = snapshot()
    assert snap["status"] == "Error"
    assert snap["percent"] == 100.0
    assert snap["message"] == "boom"
    assert snap["done"] is True
    assert snap["ok"] is False


def test_set_result_url_tracks_navigation_target():
    reset()
    set_result_url("/foo")
    snap = snapshot()
    assert snap["result_url"] == "/foo"
    assert snap["done"] is False


def test_reset_increments_run_identifier():
    reset()
    first = snapshot()["run_id"]
    reset()
    second = snapshot()["run_id"]
    assert isinstance(first, int)
    assert isinstance(second, int)
    assert second == first + 1


def test_record_region_counts_outcomes_and_percent():
    reset()
    set_regions_total(4)
    set_region("4x4 (#1)")
    record_region("4x4 (#1)", ok=True, elapsed_sec=0.01, nodes=12)
    record_region("2x2 (#2)", ok=False, elapsed_sec=0.0, nodes=0)
    record_region("0x4 (#3)", ok=False, error="width/height must be positive")

    snap = snapshot()
    assert snap["regions_done"] == 3
    assert snap["feasible"] == 1
    assert snap["errors"] == 1
    assert snap["percent"] == 75.0
    assert snap["region"] == "4x4 (#1)"
    assert "elapsed_start" not in snap
    assert "elapsed_str" in snap


def test_snapshot_reads_state_written_by_other_process(tmp_path, monkeypatch):
    import progress as progress_module

    state_path = tmp_path / "state.json"
    monkeypatch.setenv("PROGRESS_STATE_FILE", str(state_path))
    progress = importlib.reload(progress_module)

    progress.reset()
    progress.set_phase("regions")
    first = progress.snapshot()
    assert first["phase"] == "regions"

    data = dict(first)
    data["phase"] = "catalogue"
    data["feasible"] = 9
    state_path.write_text(json.dumps(data))
    os.utime(state_path, None)

    with progress.PROGRESS_LOCK:
        progress.PROGRESS["phase"] = ""
        progress.PROGRESS["feasible"] = 0
        progress._LAST_STATE_MTIME = 0.0

    time.sleep(0.01)
    updated = progress.snapshot()
    assert updated["phase"] == "catalogue"
    assert updated["feasible"] == 9

    monkeypatch.delenv("PROGRESS_STATE_FILE", raising=False)
    importlib.reload(progress_module)
