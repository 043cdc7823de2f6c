# solver/backtrack.py: bitmask backtracking search for one region
from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from models import Orientation, Piece, Placed, PuzzleInputError, UnknownShapeError

OrientationSets = Mapping[int, Sequence[Orientation]]
Quantities = Union[Mapping[int, int], Iterable[Tuple[int, int]]]


# ---------------- helpers ----------------

def _iter_quantities(quantities: Quantities) -> Iterable[Tuple[int, int]]:
    if isinstance(quantities, Mapping):
        return list(quantities.items())
    return list(quantities)


def expand_pieces(quantities: Quantities, orientation_sets: OrientationSets) -> List[Piece]:
    """One Piece per required instance, largest area first.

    Zero quantities are skipped even when the shape index is unknown; a
    positive quantity for an unknown index raises UnknownShapeError.
    Ties on area are grouped by shape index so identical pieces stay
    adjacent, which the symmetry-breaking rule relies on.
    """
    pieces: List[Piece] = []
    for shape_index, qty in _iter_quantities(quantities):
        try:
            n = int(qty)
        except (TypeError, ValueError):
            raise PuzzleInputError(f"Bad quantity for shape {shape_index}: {qty!r}") from None
        if n < 0:
            raise PuzzleInputError(f"Negative quantity for shape {shape_index}: {n}")
        if n == 0:
            continue
        orients = orientation_sets.get(shape_index)
        if not orients:
            raise UnknownShapeError(shape_index)
        area = orients[0].area
        pieces.extend([Piece(shape_index, area)] * n)

    pieces.sort(key=lambda p: (-p.area, p.shape_index))
    return pieces


def _remaining_area(pieces: Sequence[Piece]) -> List[int]:
    # remaining[i] = total area of pieces[i:]
    remaining = [0] * (len(pieces) + 1)
    for i in range(len(pieces) - 1, -1, -1):
        remaining[i] = remaining[i + 1] + pieces[i].area
    return remaining


def _check_board(W: int, H: int) -> Tuple[int, int]:
    try:
        W = int(W)
        H = int(H)
    except (TypeError, ValueError):
        raise PuzzleInputError("Bad region: width/height must be integers") from None
    if W <= 0 or H <= 0:
        raise PuzzleInputError(f"Bad region: {W}x{H} (width/height must be positive)")
    return W, H


# ---------------- search ----------------

def _run_search(
    orientation_sets: OrientationSets,
    pieces: Sequence[Piece],
    W: int,
    H: int,
    *,
    symmetry_breaking: bool,
    limit: Optional[int],
) -> Tuple[int, List[Placed], Dict[str, object]]:
    """Depth-first search over pieces in order.

    Returns (leaves_found, last_witness, stats).  Stops once ``limit``
    leaves were reached; ``limit=None`` walks the whole pruned tree.
    Every call owns its grid, so concurrent searches never interfere.

    The depth equals the piece count, so the walk keeps its own frame
    stack (one candidate generator per placed piece) instead of recursing.
    """
    n = len(pieces)
    board_cells = W * H
    remaining = _remaining_area(pieces)

    grid: List[int] = [0] * H
    last_pos: List[int] = [-1] * n
    stack: List[Placed] = []
    occupied = 0

    nodes = 0
    backtracks = 0
    pruned_area = 0
    found = 0
    witness: List[Placed] = []

    def _candidates(i: int) -> Iterator[Tuple[Orientation, int, int]]:
        # Yields free offsets for piece i; the grid is restored before each resume.
        piece = pieces[i]
        start_row = 0
        start_col = 0
        if symmetry_breaking and i > 0 and pieces[i - 1].shape_index == piece.shape_index:
            prev = last_pos[i - 1]
            if prev >= 0:
                start_row, start_col = divmod(prev, W)

        for orient in orientation_sets[piece.shape_index]:
            rows = orient.rows
            oh = orient.height
            max_row = H - oh
            max_col = W - orient.width

            for y in range(start_row, max_row + 1):
                c_start = start_col if y == start_row else 0
                for x in range(c_start, max_col + 1):
                    if grid[y] & (rows[0] << x):
                        continue
                    collision = False
                    for r in range(1, oh):
                        if grid[y + r] & (rows[r] << x):
                            collision = True
                            break
                    if not collision:
                        yield orient, x, y

    def _undo(placed: Placed) -> None:
        nonlocal occupied
        rows = placed.orientation.rows
        for r in range(placed.orientation.height):
            grid[placed.y + r] &= ~(rows[r] << placed.x)
        occupied -= placed.orientation.area

    frames: List[Iterator[Tuple[Orientation, int, int]]] = []
    if n == 0:
        found = 1
    elif remaining[0] > board_cells:
        pruned_area += 1
    else:
        frames.append(_candidates(0))

    while frames:
        i = len(frames) - 1
        if len(stack) > i:
            # resuming piece i: lift its previous placement first
            _undo(stack.pop())
            backtracks += 1

        nxt = next(frames[-1], None)
        if nxt is None:
            frames.pop()
            continue

        orient, x, y = nxt
        piece = pieces[i]
        nodes += 1
        for r in range(orient.height):
            grid[y + r] |= orient.rows[r] << x
        occupied += piece.area
        last_pos[i] = y * W + x
        stack.append(Placed(x, y, piece.shape_index, orient))

        if i + 1 == n:
            found += 1
            witness = list(stack)
            if limit is not None and found >= limit:
                break
            continue

        if remaining[i + 1] > board_cells - occupied:
            pruned_area += 1
            continue

        frames.append(_candidates(i + 1))

    stats: Dict[str, object] = {
        "nodes": nodes,
        "backtracks": backtracks,
        "pruned_area": pruned_area,
        "leaves": found,
    }
    return found, witness, stats


# ---------------- public entrypoints ----------------

def try_pack_region(
    orientation_sets: OrientationSets,
    quantities: Quantities,
    W: int,
    H: int,
    *,
    symmetry_breaking: bool = True,
) -> Tuple[bool, List[Placed], Optional[str], Dict[str, object]]:
    """Decide whether every required piece fits in a W × H region.

    Returns (ok, placed, reason, stats).  ``placed`` is the witness found by
    the last successful search (empty when infeasible).  Precondition
    violations raise PuzzleInputError; "does not fit" is a plain False.
    """
    W, H = _check_board(W, H)
    pieces = expand_pieces(quantities, orientation_sets)
    total_area = sum(p.area for p in pieces)

    stats: Dict[str, object] = {
        "board": (W, H),
        "board_cells": W * H,
        "pieces": len(pieces),
        "area": total_area,
        "symmetry_breaking": bool(symmetry_breaking),
        "nodes": 0,
        "backtracks": 0,
        "pruned_area": 0,
    }

    if not pieces:
        stats["result"] = "solved"
        return True, [], "No pieces to place", stats

    if total_area > W * H:
        stats["result"] = "area_exceeds_board"
        return False, [], f"Total piece area {total_area} exceeds region area {W * H}", stats

    found, witness, search_stats = _run_search(
        orientation_sets, pieces, W, H,
        symmetry_breaking=symmetry_breaking,
        limit=1,
    )
    stats.update(search_stats)
    if found:
        stats["result"] = "solved"
        return True, witness, None, stats

    stats["result"] = "exhausted"
    return False, [], "Search exhausted: no non-overlapping placement", stats


def can_fit(
    orientation_sets: OrientationSets,
    quantities: Quantities,
    W: int,
    H: int,
    *,
    symmetry_breaking: bool = True,
) -> bool:
    ok, _placed, _reason, _stats = try_pack_region(
        orientation_sets, quantities, W, H, symmetry_breaking=symmetry_breaking
    )
    return ok


def count_packings(
    orientation_sets: OrientationSets,
    quantities: Quantities,
    W: int,
    H: int,
    *,
    limit: Optional[int] = None,
    symmetry_breaking: bool = True,
) -> int:
    """Count complete placements reached by the search (up to ``limit``).

    With symmetry breaking on, interchangeable identical pieces are counted
    once per set of positions rather than once per permutation.
    """
    W, H = _check_board(W, H)
    pieces = expand_pieces(quantities, orientation_sets)
    if not pieces:
        return 1
    if sum(p.area for p in pieces) > W * H:
        return 0
    found, _witness, _stats = _run_search(
        orientation_sets, pieces, W, H,
        symmetry_breaking=symmetry_breaking,
        limit=limit,
    )
    return found


__all__ = ["expand_pieces", "try_pack_region", "can_fit", "count_packings"]
