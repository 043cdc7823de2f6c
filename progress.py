from __future__ import annotations

import json
import logging
import os
import time
import threading
from pathlib import Path
from typing import Any, Dict, Optional

# ------------------------------
# Thread-safe global progress state
# ------------------------------

PROGRESS_LOCK = threading.Lock()


def _state_file_path() -> Path:
    configured = os.environ.get("PROGRESS_STATE_FILE")
    if configured:
        return Path(configured)
    return Path(__file__).resolve().parent / "logs" / "progress_state.json"


STATE_FILE = _state_file_path()
STATE_FILE_TMP = STATE_FILE.with_name(STATE_FILE.name + ".tmp")
_LAST_STATE_MTIME: float = 0.0


def _init_logger() -> logging.Logger:
    logger = logging.getLogger("solver.attempt_log")
    if logger.handlers:
        return logger

    log_path = Path(__file__).resolve().parent / "logs" / "solver_attempts.log"
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_path, encoding="utf-8")
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    except OSError:
        # No log file (read-only checkout); progress tracking still works.
        logger.handlers.clear()
    return logger


ATTEMPT_LOGGER = _init_logger()


def _log_enabled() -> bool:
    return bool(ATTEMPT_LOGGER.handlers)


def _fmt_seconds(seconds: Optional[float]) -> Optional[str]:
    if seconds is None:
        return None
    try:
        return f"{float(seconds):.2f}s"
    except (TypeError, ValueError):
        return None


def _emit_log(event: str, level: int = logging.INFO, **fields: Any) -> None:
    if not _log_enabled():
        return
    extras = [
        f"{key}={value}"
        for key, value in fields.items()
        if value is not None and value != ""
    ]
    if extras:
        ATTEMPT_LOGGER.log(level, "%s | %s", event, " ".join(extras))
    else:
        ATTEMPT_LOGGER.log(level, "%s", event)


def log_attempt_detail(event: str, **fields: Any) -> None:
    """Free-form ``event | key=value`` line in the attempt log."""
    _emit_log(event, **fields)


def log_attempt_warning(event: str, **fields: Any) -> None:
    _emit_log(event, level=logging.WARNING, **fields)


LOG_STATE: Dict[str, Any] = {
    "run_start": None,
    "phase": "",
    "phase_start": None,
    "region": "",
    "region_start": None,
}


def _persist_locked() -> None:
    global _LAST_STATE_MTIME
    try:
        STATE_FILE.parent.mkdir(parents=True, exist_ok=True)
        with STATE_FILE_TMP.open("w", encoding="utf-8") as fh:
            json.dump(PROGRESS, fh, ensure_ascii=False, separators=(",", ":"))
        STATE_FILE_TMP.replace(STATE_FILE)
        try:
            _LAST_STATE_MTIME = STATE_FILE.stat().st_mtime
        except OSError:
            _LAST_STATE_MTIME = time.time()
    except OSError:
        # The state file only mirrors PROGRESS for other processes.
        pass


def _load_persisted_locked(force: bool = False) -> None:
    global _LAST_STATE_MTIME
    try:
        stat = STATE_FILE.stat()
    except OSError:
        return
    if not force and stat.st_mtime <= _LAST_STATE_MTIME:
        return
    try:
        with STATE_FILE.open("r", encoding="utf-8") as fh:
            data = json.load(fh)
    except (OSError, ValueError):
        return
    if not isinstance(data, dict):
        return
    for key in PROGRESS.keys():
        if key in data:
            PROGRESS[key] = data[key]
    _LAST_STATE_MTIME = stat.st_mtime


def _log_phase_transition_locked(new_phase: str) -> None:
    prev_phase = LOG_STATE.get("phase") or ""
    if new_phase == prev_phase:
        return
    now = _now()
    if prev_phase and LOG_STATE.get("phase_start"):
        duration = max(0.0, now - float(LOG_STATE["phase_start"]))
        _emit_log("Phase finished", phase=prev_phase, duration=_fmt_seconds(duration))
    LOG_STATE["phase"] = new_phase
    LOG_STATE["phase_start"] = now
    if new_phase:
        _emit_log("Phase started", phase=new_phase)


def _log_region_transition_locked(new_region: str) -> None:
    prev_region = LOG_STATE.get("region") or ""
    if new_region == prev_region:
        return
    now = _now()
    LOG_STATE["region"] = new_region
    LOG_STATE["region_start"] = now if new_region else None
    if new_region:
        _emit_log("Region started", phase=LOG_STATE.get("phase") or "", region=new_region)

# Single source of truth for the web view
PROGRESS: Dict[str, Any] = {
    "status": "Idle",          # Idle | Solving | Solved | Error
    "phase": "",               # e.g. catalogue | regions
    "region": "",              # e.g. "12x5 (#3)"
    "percent": 0.0,            # 0..100 float
    "regions_total": 0,
    "regions_done": 0,
    "feasible": 0,
    "errors": 0,
    "elapsed_start": None,     # t0 (float) when solving started
    "elapsed": 0.0,            # seconds snapshot
    "message": "",             # optional note
    "done": False,             # run completed
    "ok": None,                # success flag if known
    "result_url": "",          # optional navigation target
    "run_id": 0,               # monotonically increasing identifier
}

# ------------------------------
# Helpers
# ------------------------------

def _now() -> float:
    return time.time()

def _fmt_elapsed(seconds: float) -> str:
    seconds = max(0.0, float(seconds))
    if seconds < 60:
        return f"{int(seconds)}s"
    m, s = divmod(int(seconds), 60)
    if m < 60:
        return f"{m}m {s}s"
    h, m = divmod(m, 60)
    return f"{h}h {m}m"

def _touch_elapsed_locked() -> None:
    t0 = PROGRESS.get("elapsed_start")
    if t0 is not None:
        PROGRESS["elapsed"] = _now() - float(t0)

def _update_percent_locked() -> None:
    total = int(PROGRESS.get("regions_total") or 0)
    done = int(PROGRESS.get("regions_done") or 0)
    PROGRESS["percent"] = 100.0 * done / total if total > 0 else 0.0

def reset() -> None:
    with PROGRESS_LOCK:
        try:
            current_run_id = int(PROGRESS.get("run_id", 0))
        except (TypeError, ValueError):
            current_run_id = 0
        PROGRESS.update({
            "status": "Idle",
            "phase": "",
            "region": "",
            "percent": 0.0,
            "regions_total": 0,
            "regions_done": 0,
            "feasible": 0,
            "errors": 0,
            "elapsed_start": None,
            "elapsed": 0.0,
            "message": "",
            "done": False,
            "ok": None,
            "result_url": "",
            "run_id": current_run_id + 1,
        })
        LOG_STATE.update({
            "run_start": None,
            "phase": "",
            "phase_start": None,
            "region": "",
            "region_start": None,
        })
        _emit_log("Progress reset")
        _persist_locked()

def start_timer() -> None:
    with PROGRESS_LOCK:
        now = _now()
        PROGRESS["elapsed_start"] = now
        PROGRESS["elapsed"] = 0.0
        LOG_STATE["run_start"] = now
        _emit_log("Run timer started")
        _persist_locked()

# ------------------------------
# Setters
# ------------------------------

def set_status(v: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["status"] = str(v)
        _persist_locked()

def set_phase(v: Any) -> None:
    with PROGRESS_LOCK:
        phase_str = "" if v is None else str(v)
        PROGRESS["phase"] = phase_str
        _log_phase_transition_locked(phase_str)
        _persist_locked()

def set_region(v: Any) -> None:
    with PROGRESS_LOCK:
        region_str = "" if v is None else str(v)
        PROGRESS["region"] = region_str
        _log_region_transition_locked(region_str)
        _persist_locked()

def set_regions_total(n: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["regions_total"] = max(0, int(n))
        _update_percent_locked()
        _persist_locked()

def record_region(label: str, *, ok: bool, error: Optional[str] = None,
                  elapsed_sec: Optional[float] = None, nodes: Any = None) -> None:
    """Count one finished region and log its outcome."""
    with PROGRESS_LOCK:
        PROGRESS["regions_done"] = int(PROGRESS.get("regions_done") or 0) + 1
        if error:
            PROGRESS["errors"] = int(PROGRESS.get("errors") or 0) + 1
        elif ok:
            PROGRESS["feasible"] = int(PROGRESS.get("feasible") or 0) + 1
        _update_percent_locked()
        _touch_elapsed_locked()
        _emit_log(
            "Region finished",
            level=logging.WARNING if error else logging.INFO,
            region=label,
            result="error" if error else ("fits" if ok else "no_fit"),
            error=error,
            nodes=nodes,
            duration=_fmt_seconds(elapsed_sec),
        )
        _persist_locked()

def set_elapsed(seconds: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["elapsed"] = max(0.0, float(seconds))
        _persist_locked()

def set_message(msg: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["message"] = "" if msg is None else str(msg)
        _persist_locked()

def set_result_url(url: Any) -> None:
    with PROGRESS_LOCK:
        PROGRESS["result_url"] = "" if url is None else str(url)
        _persist_locked()

def set_done(ok: Any = None, *, reason: Any = None) -> None:
    """Mark the run complete.

    ``ok`` picks the final status ("Solved" / "Error"); when omitted the
    run counts as solved.  ``reason`` is surfaced via the message field.
    """
    ok_flag = True if ok is None else bool(ok)

    with PROGRESS_LOCK:
        _touch_elapsed_locked()
        now = _now()
        PROGRESS["status"] = "Solved" if ok_flag else "Error"
        PROGRESS["ok"] = ok_flag
        PROGRESS["percent"] = 100.0
        PROGRESS["done"] = True
        if reason is not None:
            PROGRESS["message"] = str(reason)
        run_start = LOG_STATE.get("run_start")
        total = max(0.0, now - float(run_start)) if isinstance(run_start, (int, float)) else None
        LOG_STATE.update({"run_start": None, "phase_start": None, "region": "", "region_start": None})
        _emit_log(
            "Run finished",
            status=PROGRESS.get("status"),
            ok=PROGRESS.get("ok"),
            duration=_fmt_seconds(total),
            regions=PROGRESS.get("regions_done"),
            feasible=PROGRESS.get("feasible"),
            errors=PROGRESS.get("errors"),
            message=PROGRESS.get("message"),
        )
        _persist_locked()

# ------------------------------
# Snapshots for the UI
# ------------------------------

def snapshot() -> Dict[str, Any]:
    with PROGRESS_LOCK:
        _load_persisted_locked()
        _touch_elapsed_locked()
        snap = {k: v for k, v in PROGRESS.items() if k != "elapsed_start"}
        snap["elapsed_str"] = _fmt_elapsed(PROGRESS["elapsed"])
        return snap

def as_json() -> Dict[str, Any]:
    # Alias used by /progress3
    return snapshot()


with PROGRESS_LOCK:
    _load_persisted_locked(force=True)
