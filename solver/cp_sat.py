from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from ortools.sat.python import cp_model as _cp

from models import Orientation, Piece, Placed
from config import CFG
from solver.backtrack import OrientationSets, Quantities, _check_board, expand_pieces

TIMEBOX_REASON = "Stopped before solution (timebox)"
INFEASIBLE_REASON = "Proven infeasible under current constraints"

Option = Tuple[int, int, int]  # (x, y, orientation index)

# ---------------- helpers ----------------

def _compute_locs(W: int, H: int, orient: Orientation) -> List[Tuple[int, int]]:
    return [
        (x, y)
        for y in range(0, H - orient.height + 1)
        for x in range(0, W - orient.width + 1)
    ]


def build_options(
    W: int,
    H: int,
    pieces: Sequence[Piece],
    orientation_sets: OrientationSets,
) -> List[List[Option]]:
    """Every in-bounds (x, y, orientation) choice, per piece."""
    by_shape: Dict[int, List[Option]] = {}
    opts: List[List[Option]] = []
    for piece in pieces:
        cached = by_shape.get(piece.shape_index)
        if cached is None:
            cached = []
            for k, orient in enumerate(orientation_sets[piece.shape_index]):
                cached.extend((x, y, k) for (x, y) in _compute_locs(W, H, orient))
            by_shape[piece.shape_index] = cached
        opts.append(cached)
    return opts


def _option_cells(orient: Orientation, x: int, y: int):
    for dy, row in enumerate(orient.rows):
        for dx in range(orient.width):
            if (row >> dx) & 1:
                yield (x + dx, y + dy)


# ---------------- main solve ----------------

def try_pack_cp_sat(
    orientation_sets: OrientationSets,
    quantities: Quantities,
    W: int,
    H: int,
    max_seconds: Optional[float] = None,
) -> Tuple[bool, List[Placed], Optional[str]]:
    """Fit model (each piece exactly once, each cell at most once)."""
    W, H = _check_board(W, H)
    pieces = expand_pieces(quantities, orientation_sets)
    if not pieces:
        return True, [], "No pieces to place"

    total_area = sum(p.area for p in pieces)
    if total_area > W * H:
        return False, [], f"Total piece area {total_area} exceeds region area {W * H}"

    options = build_options(W, H, pieces, orientation_sets)
    m = _cp.CpModel()
    n = len(pieces)

    p = [[m.NewBoolVar(f"p_{i}_{k}") for k in range(len(options[i]))] for i in range(n)]
    for i in range(n):
        if not p[i]:
            return False, [], f"No placements remain for piece {i} (shape {pieces[i].shape_index})"
        m.AddExactlyOne(p[i])

    # symmetry breaking: identical pieces pick options in non-decreasing order
    place_idx = []
    for i in range(n):
        idx = m.NewIntVar(0, max(0, len(options[i]) - 1), f"idx_{i}")
        m.Add(idx == sum(k * p[i][k] for k in range(len(options[i]))))
        place_idx.append(idx)
    for a in range(1, n):
        if pieces[a].shape_index == pieces[a - 1].shape_index:
            m.Add(place_idx[a - 1] <= place_idx[a])

    # non-overlap
    cell_to_vars: Dict[Tuple[int, int], List[_cp.IntVar]] = defaultdict(list)
    for i in range(n):
        orients = orientation_sets[pieces[i].shape_index]
        for k, (x, y, o) in enumerate(options[i]):
            for cell in _option_cells(orients[o], x, y):
                cell_to_vars[cell].append(p[i][k])
    for vars_here in cell_to_vars.values():
        if len(vars_here) > 1:
            m.AddAtMostOne(vars_here)

    seconds = CFG.CP_SAT_MAX_SECONDS if max_seconds is None else max_seconds
    solver = _cp.CpSolver()
    solver.parameters.max_time_in_seconds = float(seconds)
    solver.parameters.max_memory_in_mb = int(getattr(CFG, "MAX_MEMORY_MB", 2048))
    solver.parameters.num_workers = max(1, int(getattr(CFG, "CP_SAT_WORKERS", 1)))
    solver.parameters.log_search_progress = False

    status = solver.Solve(m)

    if status in (_cp.OPTIMAL, _cp.FEASIBLE):
        placed: List[Placed] = []
        for i in range(n):
            orients = orientation_sets[pieces[i].shape_index]
            for k, (x, y, o) in enumerate(options[i]):
                if solver.BooleanValue(p[i][k]):
                    placed.append(Placed(x, y, pieces[i].shape_index, orients[o]))
                    break
        return True, placed, None
    if status == _cp.INFEASIBLE:
        return False, [], INFEASIBLE_REASON
    if status == _cp.MODEL_INVALID:
        return False, [], "CP-SAT reported an invalid model"
    return False, [], TIMEBOX_REASON


__all__ = ["build_options", "try_pack_cp_sat", "TIMEBOX_REASON", "INFEASIBLE_REASON"]
