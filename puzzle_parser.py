# puzzle_parser.py
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Tuple, Union

from models import PuzzleInputError, Region, Shape

_SHAPE_HEADER_RE = re.compile(r"^(?P<idx>\d+)\s*:\s*$")
_REGION_RE = re.compile(r"^(?P<w>-?\d+)\s*[xX×]\s*(?P<h>-?\d+)\s*:\s*(?P<qty>.*)$")
_GRID_RE = re.compile(r"^[#.]+$")


@dataclass
class Puzzle:
    shapes: Dict[int, Shape] = field(default_factory=dict)
    regions: List[Region] = field(default_factory=list)


def _to_int(tok: str, line_no: int) -> int:
    try:
        return int(tok)
    except ValueError:
        raise PuzzleInputError(f"line {line_no}: expected an integer, got {tok!r}") from None


def _finish_shape(shapes: Dict[int, Shape], idx: int, rows: List[str], header_line: int) -> None:
    if not rows:
        raise PuzzleInputError(f"line {header_line}: shape {idx} has no grid rows")
    width = len(rows[0])
    for offset, row in enumerate(rows, start=1):
        if len(row) != width:
            raise PuzzleInputError(
                f"line {header_line + offset}: shape {idx} is not rectangular "
                f"(row has {len(row)} cells, expected {width})"
            )
    cells = tuple(tuple(ch == "#" for ch in row) for row in rows)
    if not any(any(row) for row in cells):
        raise PuzzleInputError(f"line {header_line}: shape {idx} has no filled cells")
    shapes[idx] = Shape(index=idx, cells=cells)


def parse_region_line(line: str, line_no: int = 0) -> Region:
    """Parse ``WxH: q0 q1 ...`` where qi is the quantity of shape i."""
    m = _REGION_RE.match(line.strip())
    if not m:
        raise PuzzleInputError(f"line {line_no}: not a region line: {line.strip()!r}")
    w = _to_int(m.group("w"), line_no)
    h = _to_int(m.group("h"), line_no)
    quantities: List[Tuple[int, int]] = []
    for i, tok in enumerate(m.group("qty").split()):
        q = _to_int(tok, line_no)
        if q < 0:
            raise PuzzleInputError(f"line {line_no}: negative quantity {q} for shape {i}")
        quantities.append((i, q))
    return Region(
        width=w,
        height=h,
        quantities=tuple(quantities),
        label=f"{w}x{h}",
        line_no=line_no,
    )


def parse_puzzle(text: str) -> Puzzle:
    """
    Parse shape blocks followed by region lines.

    Shape blocks are an ``N:`` header and rows of ``#``/``.``; a block ends
    at a blank line, the next header or the first region line.  Region
    dimensions are not range-checked here; the orchestrator reports
    non-positive sizes per region.
    """
    puzzle = Puzzle()
    cur_idx = None
    cur_rows: List[str] = []
    cur_line = 0

    def _flush() -> None:
        nonlocal cur_idx, cur_rows
        if cur_idx is not None:
            _finish_shape(puzzle.shapes, cur_idx, cur_rows, cur_line)
        cur_idx = None
        cur_rows = []

    for line_no, raw in enumerate((text or "").splitlines(), start=1):
        line = raw.strip()
        if not line:
            _flush()
            continue

        if _REGION_RE.match(line):
            _flush()
            puzzle.regions.append(parse_region_line(line, line_no))
            continue

        m = _SHAPE_HEADER_RE.match(line)
        if m:
            _flush()
            if puzzle.regions:
                raise PuzzleInputError(f"line {line_no}: shape definition after region lines")
            idx = int(m.group("idx"))
            if idx in puzzle.shapes:
                raise PuzzleInputError(f"line {line_no}: duplicate shape index {idx}")
            cur_idx = idx
            cur_line = line_no
            continue

        if cur_idx is not None and _GRID_RE.match(line):
            cur_rows.append(line)
            continue

        raise PuzzleInputError(f"line {line_no}: unrecognised line {line!r}")

    _flush()
    return puzzle


def parse_puzzle_file(path: Union[str, Path]) -> Puzzle:
    with open(path, "r", encoding="utf-8") as fh:
        return parse_puzzle(fh.read())


__all__ = ["Puzzle", "parse_puzzle", "parse_puzzle_file", "parse_region_line"]
