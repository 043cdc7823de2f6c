# app.py: paste a puzzle, count fitting regions; progress no-cache
from __future__ import annotations
import os
import time
from typing import Any, Dict, List, Tuple

from flask import Flask, request, render_template, send_from_directory, jsonify, url_for

from solver.orchestrator import RunSummary, solve_regions
from puzzle_parser import parse_puzzle
from config import CFG
from io_files import write_results, write_layout_view_html
from render import render_sections
from models import PuzzleInputError, RegionResult

from progress import (
    reset as progress_reset,
    as_json as progress_json,
    start_timer as progress_start,
    set_status, set_done, set_result_url, set_elapsed,
)

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


def _resolve_output_paths(configured: str, fallback: str) -> Tuple[str, str, str]:
    name = (configured or "").strip() or fallback
    if os.path.isabs(name):
        full_path = name
    else:
        full_path = os.path.abspath(os.path.join(BASE_DIR, name))
    directory = os.path.dirname(full_path) or BASE_DIR
    filename = os.path.basename(full_path) or fallback
    return full_path, directory, filename


_RESULTS_FULL_PATH, RESULTS_DIR, RESULTS_FILENAME = _resolve_output_paths(
    CFG.RESULTS_OUT, "results.txt"
)
_LAYOUT_FULL_PATH, LAYOUT_DIR, LAYOUT_FILENAME = _resolve_output_paths(
    CFG.LAYOUT_HTML, "layout_view.html"
)

LAST_RESULT: Dict[str, Any] = {
    "ok": False,
    "message": "No run yet",
    "feasible": 0,
    "total": 0,
    "errors": 0,
    "elapsed_str": "0s",
    "regions": [],
    "sections": [],
    "results_filename": RESULTS_FILENAME,
    "layout_filename": LAYOUT_FILENAME,
}

app = Flask(__name__, template_folder="templates")


@app.after_request
def _no_cache_progress(resp):
    if request.path == "/progress3":
        resp.headers["Cache-Control"] = "no-store, max-age=0"
        resp.headers["Pragma"] = "no-cache"
        resp.headers["Expires"] = "0"
    return resp


@app.route("/")
def index():
    return render_template("index.html")


@app.route("/result/latest")
def result_latest():
    return render_template("result.html", **LAST_RESULT)


def _fmt_elapsed(seconds: float) -> str:
    if seconds < 1:
        return "0s"
    m, s = divmod(int(seconds), 60)
    if m == 0:
        return f"{s}s"
    h, m = divmod(m, 60)
    if h == 0:
        return f"{m}m {s}s"
    return f"{h}h {m}m {s}s"


def _puzzle_text_from_request() -> str:
    payload = request.get_json(silent=True)
    if isinstance(payload, dict) and isinstance(payload.get("puzzle"), str):
        return payload["puzzle"]
    text = request.form.get("puzzle")
    if text:
        return text
    upload = request.files.get("puzzle_file")
    if upload is not None:
        return upload.read().decode("utf-8", errors="replace")
    return ""


def _region_payload(result: RegionResult) -> Dict[str, Any]:
    return {
        "region": result.label,
        "ok": result.ok,
        "error": result.error,
        "reason": result.reason,
        "pieces_placed": len(result.placed),
        "nodes": result.stats.get("nodes"),
        "elapsed_sec": round(result.elapsed_sec, 4),
    }


def _summary_payload(summary: RunSummary) -> Dict[str, Any]:
    return {
        "ok": summary.errors == 0,
        "feasible": summary.feasible,
        "infeasible": summary.infeasible,
        "errors": summary.errors,
        "total": summary.total,
        "regions": [_region_payload(r) for r in summary.results],
    }


def _finalize_solver_progress(ok_flag: bool, message: str) -> None:
    """Mark the run finished; set_done picks "Solved" or "Error" from ok_flag."""

    set_done(ok_flag, reason=message)


def _wants_html() -> bool:
    if request.is_json:
        return False
    best = request.accept_mimetypes.best_match(["application/json", "text/html"])
    return best == "text/html"


@app.route("/solve", methods=["POST"])
def solve():
    progress_reset()
    progress_start()
    set_status("Solving")
    t0 = time.time()

    text = _puzzle_text_from_request()
    try:
        puzzle = parse_puzzle(text)
        if not puzzle.regions:
            raise PuzzleInputError("no region lines found")
    except PuzzleInputError as exc:
        reason = f"Bad puzzle: {exc}"
        _finalize_solver_progress(False, reason)
        LAST_RESULT.update({
            "ok": False, "message": reason, "feasible": 0, "total": 0, "errors": 0,
            "elapsed_str": _fmt_elapsed(time.time() - t0), "regions": [], "sections": [],
        })
        return jsonify({"ok": False, "error": reason}), 400

    summary = solve_regions(puzzle)
    payload = _summary_payload(summary)
    message = f"{summary.feasible} of {summary.total} regions fit"
    _finalize_solver_progress(payload["ok"], message)
    set_elapsed(time.time() - t0)

    sections: List[Tuple[str, str, str]] = render_sections(summary.results)
    results_path = write_results(summary.results, BASE_DIR)
    layout_path = write_layout_view_html(sections, BASE_DIR)

    LAST_RESULT.update({
        "ok": payload["ok"],
        "message": message,
        "feasible": summary.feasible,
        "total": summary.total,
        "errors": summary.errors,
        "elapsed_str": _fmt_elapsed(time.time() - t0),
        "regions": payload["regions"],
        "sections": sections,
        "results_filename": os.path.basename(results_path) or RESULTS_FILENAME,
        "layout_filename": os.path.basename(layout_path) or LAYOUT_FILENAME,
    })
    set_result_url(url_for("result_latest"))

    if _wants_html():
        return render_template("result.html", **LAST_RESULT)
    return jsonify(payload)


@app.route("/download/results")
def download_results():
    return send_from_directory(RESULTS_DIR, RESULTS_FILENAME, as_attachment=True)


@app.route("/download/html")
def download_html():
    return send_from_directory(LAYOUT_DIR, LAYOUT_FILENAME, as_attachment=True)


@app.route("/progress3")
def progress3():
    return jsonify(progress_json())


if __name__ == "__main__":
    progress_start()
    app.run(debug=False)
