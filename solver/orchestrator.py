# Orchestrator: orientation catalogue once, then one independent search per region
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import multiprocessing as mp

from models import Orientation, Placed, PuzzleInputError, Region, RegionResult, Shape, UnknownShapeError
from puzzle_parser import Puzzle
from config import CFG, METHODS
from progress import (
    set_phase, set_region, set_regions_total, set_status, set_message,
    record_region, log_attempt_detail, log_attempt_warning,
)
from solver.orientations import build_orientation_sets
from solver.backtrack import try_pack_region

Catalogue = Mapping[int, Sequence[Orientation]]


# ---------- helpers ----------

@dataclass
class RunSummary:
    results: List[RegionResult] = field(default_factory=list)
    feasible: int = 0
    infeasible: int = 0
    errors: int = 0
    elapsed_sec: float = 0.0

    @property
    def total(self) -> int:
        return len(self.results)


def _region_label(index: int, region: Region) -> str:
    return f"{region.display()} (#{index + 1})"


def _resolve_method(method: Optional[str]) -> str:
    name = (method or CFG.METHOD or "backtrack").strip().lower()
    if name not in METHODS:
        raise ValueError(f"Unknown method {name!r} (expected one of {', '.join(METHODS)})")
    return name


def _is_undecided(reason: Optional[str]) -> bool:
    """True when a solver stopped without proving fit or no-fit."""
    if not reason:
        return False
    text = str(reason).strip().lower()
    return any(token in text for token in ("timebox", "timeout", "stopped before solution"))


def build_catalogue(shapes: Mapping[int, Shape]) -> Dict[int, Tuple[Orientation, ...]]:
    catalogue = build_orientation_sets(dict(shapes))
    log_attempt_detail(
        "Catalogue built",
        shapes=len(catalogue),
        orientations=sum(len(v) for v in catalogue.values()),
    )
    return catalogue


def validate_region(region: Region, catalogue: Catalogue) -> None:
    if region.width <= 0 or region.height <= 0:
        raise PuzzleInputError(
            f"Bad region {region.display()}: width/height must be positive"
        )
    for shape_index, qty in region.quantities:
        if qty < 0:
            raise PuzzleInputError(
                f"Bad region {region.display()}: negative quantity for shape {shape_index}"
            )
        if qty > 0 and shape_index not in catalogue:
            raise UnknownShapeError(
                shape_index,
                f"Region {region.display()} requires unknown shape index {shape_index}",
            )


def _solve_one(
    region: Region,
    catalogue: Catalogue,
    method: str,
    symmetry_breaking: bool,
) -> Tuple[bool, List[Placed], Optional[str], Dict[str, object]]:
    if method == "cp_sat":
        from solver.cp_sat import try_pack_cp_sat  # ortools only needed here
        ok, placed, reason = try_pack_cp_sat(
            catalogue, region.quantities, region.width, region.height
        )
        return ok, placed, reason, {"method": "cp_sat"}

    ok, placed, reason, stats = try_pack_region(
        catalogue, region.quantities, region.width, region.height,
        symmetry_breaking=symmetry_breaking,
    )
    stats["method"] = "backtrack"
    return ok, placed, reason, stats


def evaluate_region(
    index: int,
    region: Region,
    catalogue: Catalogue,
    method: Optional[str] = None,
    *,
    symmetry_breaking: Optional[bool] = None,
    raise_errors: bool = False,
) -> RegionResult:
    """Evaluate one region with its own grid.

    Precondition violations become ``RegionResult(error=...)`` unless
    ``raise_errors`` is set; "does not fit" is ``ok=False`` with no error.
    """
    method = _resolve_method(method)
    if symmetry_breaking is None:
        symmetry_breaking = bool(CFG.SYMMETRY_BREAKING)
    label = _region_label(index, region)
    t0 = time.time()

    try:
        validate_region(region, catalogue)
        ok, placed, reason, stats = _solve_one(region, catalogue, method, symmetry_breaking)
    except PuzzleInputError as exc:
        if raise_errors:
            raise
        return RegionResult(
            index=index, label=label, ok=False, error=str(exc),
            elapsed_sec=time.time() - t0,
            width=region.width, height=region.height,
        )

    error = None
    if not ok and _is_undecided(reason):
        error = f"Undecided: {reason}"

    return RegionResult(
        index=index,
        label=label,
        ok=bool(ok),
        error=error,
        reason=reason,
        placed=list(placed),
        stats=stats,
        elapsed_sec=time.time() - t0,
        width=region.width,
        height=region.height,
    )


# Worker must be top-level (picklable on spawn)
def _region_worker(task):
    index, region, catalogue, method, symmetry_breaking, raise_errors = task
    return evaluate_region(
        index, region, catalogue, method,
        symmetry_breaking=symmetry_breaking,
        raise_errors=raise_errors,
    )


def _iter_results(tasks, workers: int):
    if workers <= 1 or len(tasks) <= 1:
        for task in tasks:
            yield _region_worker(task)
        return

    ctx = mp.get_context("spawn")
    with ctx.Pool(processes=workers) as pool:
        for result in pool.imap(_region_worker, tasks):
            yield result


# ---------- public entrypoint ----------

def solve_regions(
    puzzle: Puzzle,
    *,
    method: Optional[str] = None,
    workers: Optional[int] = None,
    fail_fast: bool = False,
    symmetry_breaking: Optional[bool] = None,
) -> RunSummary:
    """Evaluate every region of ``puzzle`` and count the ones that fit."""
    t0 = time.time()
    method = _resolve_method(method)
    workers = max(1, int(CFG.WORKERS if workers is None else workers))
    if symmetry_breaking is None:
        symmetry_breaking = bool(CFG.SYMMETRY_BREAKING)

    log_attempt_detail(
        "Run setup",
        shapes=len(puzzle.shapes),
        regions=len(puzzle.regions),
        method=method,
        workers=workers,
        symmetry_breaking=int(symmetry_breaking),
    )
    set_status("Solving")
    set_phase("catalogue")
    catalogue = build_catalogue(puzzle.shapes)

    set_phase("regions")
    set_regions_total(len(puzzle.regions))

    tasks = [
        (i, region, catalogue, method, symmetry_breaking, fail_fast)
        for i, region in enumerate(puzzle.regions)
    ]

    summary = RunSummary()
    try:
        for result in _iter_results(tasks, workers):
            set_region(result.label)
            summary.results.append(result)
            if result.error:
                summary.errors += 1
                log_attempt_warning("Region error", region=result.label, error=result.error)
            elif result.ok:
                summary.feasible += 1
            else:
                summary.infeasible += 1
            record_region(
                result.label,
                ok=result.ok,
                error=result.error,
                elapsed_sec=result.elapsed_sec,
                nodes=result.stats.get("nodes"),
            )
    except PuzzleInputError as exc:
        set_status("Error")
        set_message(str(exc))
        raise

    summary.elapsed_sec = time.time() - t0
    set_region("")
    set_message(f"{summary.feasible} of {summary.total} regions fit")
    return summary


__all__ = [
    "RunSummary",
    "build_catalogue",
    "validate_region",
    "evaluate_region",
    "solve_regions",
]
