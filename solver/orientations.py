# solver/orientations.py: rotations/reflections and per-row bitmask encoding
from __future__ import annotations

from typing import Dict, Iterable, List, Sequence, Set, Tuple

from models import Orientation, PuzzleInputError, Shape

Grid = Tuple[Tuple[bool, ...], ...]


def _as_grid(cells: Iterable[Sequence[bool]]) -> Grid:
    grid = tuple(tuple(bool(c) for c in row) for row in cells)
    if not grid or not grid[0]:
        raise PuzzleInputError("Shape grid is empty")
    width = len(grid[0])
    for r, row in enumerate(grid):
        if len(row) != width:
            raise PuzzleInputError(
                f"Shape grid is not rectangular (row {r} has {len(row)} cells, expected {width})"
            )
    if not any(any(row) for row in grid):
        raise PuzzleInputError("Shape grid has no filled cells")
    return grid


def rotate(grid: Grid) -> Grid:
    """Rotate 90 degrees clockwise."""
    rows = len(grid)
    cols = len(grid[0])
    return tuple(
        tuple(grid[r][c] for r in range(rows - 1, -1, -1))
        for c in range(cols)
    )


def flip_horizontal(grid: Grid) -> Grid:
    return tuple(tuple(reversed(row)) for row in grid)


def encode_mask(grid: Iterable[Sequence[bool]]) -> Orientation:
    """Encode a boolean grid as one int bitmask per row (bit c = column c)."""
    grid = _as_grid(grid)
    rows: List[int] = []
    for row in grid:
        mask = 0
        for c, filled in enumerate(row):
            if filled:
                mask |= 1 << c
        rows.append(mask)
    return Orientation(rows=tuple(rows), width=len(grid[0]), height=len(grid))


def decode_mask(orientation: Orientation) -> Grid:
    return tuple(
        tuple(bool((row >> c) & 1) for c in range(orientation.width))
        for row in orientation.rows
    )


def generate_orientations(cells: Iterable[Sequence[bool]]) -> Tuple[Orientation, ...]:
    """All distinct rotations and mirror images of a cell grid.

    Candidates are visited rotation-major (0, 90, 180, 270 degrees), each
    followed by its horizontal mirror.  The first occurrence of every
    pattern is kept, so a solid square yields a single orientation and a
    fully asymmetric shape yields eight.
    """
    current = _as_grid(cells)
    seen: Set[Orientation] = set()
    result: List[Orientation] = []

    for _ in range(4):
        for variant in (current, flip_horizontal(current)):
            # Orientation is a frozen dataclass: equal dims + rows => same pattern
            encoded = encode_mask(variant)
            if encoded not in seen:
                seen.add(encoded)
                result.append(encoded)
        current = rotate(current)

    return tuple(result)


def shape_orientations(shape: Shape) -> Tuple[Orientation, ...]:
    return generate_orientations(shape.cells)


def build_orientation_sets(shapes: Dict[int, Shape]) -> Dict[int, Tuple[Orientation, ...]]:
    return {idx: shape_orientations(shape) for idx, shape in shapes.items()}


__all__ = [
    "rotate",
    "flip_horizontal",
    "encode_mask",
    "decode_mask",
    "generate_orientations",
    "shape_orientations",
    "build_orientation_sets",
]
