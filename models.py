from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple


class PuzzleInputError(ValueError):
    """Precondition violation: the input describes something the solver cannot evaluate."""


class UnknownShapeError(PuzzleInputError):
    def __init__(self, shape_index: int, message: Optional[str] = None):
        self.shape_index = shape_index
        super().__init__(message or f"Unknown shape index {shape_index}")


@dataclass(frozen=True)
class Shape:
    index: int
    cells: Tuple[Tuple[bool, ...], ...]  # row-major, row 0 = top

    @property
    def height(self) -> int:
        return len(self.cells)

    @property
    def width(self) -> int:
        return len(self.cells[0]) if self.cells else 0

    @property
    def area(self) -> int:
        return sum(1 for row in self.cells for filled in row if filled)


@dataclass(frozen=True)
class Orientation:
    rows: Tuple[int, ...]  # bit c of rows[r] set iff cell (r, c) is filled
    width: int
    height: int

    @property
    def area(self) -> int:
        return sum(bin(row).count("1") for row in self.rows)


@dataclass(frozen=True)
class Piece:
    shape_index: int
    area: int


@dataclass(frozen=True)
class Region:
    width: int
    height: int
    quantities: Tuple[Tuple[int, int], ...]  # (shape_index, quantity)
    label: str = ""
    line_no: int = 0

    @property
    def board_cells(self) -> int:
        return self.width * self.height

    def display(self) -> str:
        return self.label or f"{self.width}x{self.height}"


@dataclass
class Placed:
    x: int
    y: int
    shape_index: int
    orientation: Orientation

    def cells(self) -> Iterator[Tuple[int, int]]:
        for dy, row in enumerate(self.orientation.rows):
            for dx in range(self.orientation.width):
                if (row >> dx) & 1:
                    yield (self.x + dx, self.y + dy)


@dataclass
class RegionResult:
    index: int
    label: str
    ok: bool
    error: Optional[str] = None
    reason: Optional[str] = None
    placed: List[Placed] = field(default_factory=list)
    stats: Dict[str, Any] = field(default_factory=dict)
    elapsed_sec: float = 0.0
    width: int = 0
    height: int = 0

    def status_label(self) -> str:
        if self.error:
            return "error"
        return "fits" if self.ok else "does not fit"
