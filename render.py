import random
from typing import Dict, List, Optional, Sequence, Tuple

from config import CFG
from models import Placed, RegionResult

def _color(shape_index: int) -> str:
    rng = random.Random(shape_index * 7919 + 17)
    r = rng.randint(40, 200)
    g = rng.randint(40, 200)
    b = rng.randint(40, 200)
    return f"rgb({r},{g},{b})"

def render_result(placed: List[Placed], Wc: int, Hc: int, scale: Optional[int] = None):
    """SVG of one region's witness, one square per covered cell."""
    scale = int(scale or CFG.RENDER_SCALE)
    palette: Dict[int, str] = {}
    for p in placed:
        palette.setdefault(p.shape_index, _color(p.shape_index))

    svg_w = Wc * scale + 2
    svg_h = Hc * scale + 2

    cells = []
    for n, p in enumerate(placed):
        fill = palette[p.shape_index]
        for (cx, cy) in p.cells():
            x = 1 + cx * scale
            y = 1 + cy * scale
            cells.append(
                f'<rect x="{x}" y="{y}" width="{scale}" height="{scale}" fill="{fill}" '
                f'stroke="black" stroke-width="0.5"><title>piece {n} (shape {p.shape_index})</title></rect>'
            )
    border = f'<rect x="1" y="1" width="{svg_w-2}" height="{svg_h-2}" fill="none" stroke="black" stroke-width="2"/>'
    svg = (
        f'<svg class="layout-svg" xmlns="http://www.w3.org/2000/svg" '
        f'width="{svg_w}" height="{svg_h}" '
        f'viewBox="0 0 {svg_w} {svg_h}" preserveAspectRatio="xMinYMin meet">'
        f'{border}{"".join(cells)}</svg>'
    )

    legend = "".join(
        f"<li><span class='swatch' style='background:{c}'></span>shape {i}</li>"
        for i, c in sorted(palette.items())
    )
    return svg, legend

def render_sections(results: Sequence[RegionResult]) -> List[Tuple[str, str, str]]:
    """(title, svg, legend) for every region that fit with a witness."""
    sections = []
    for r in results:
        if not (r.ok and r.placed):
            continue
        svg, legend = render_result(r.placed, r.width, r.height)
        sections.append((r.label, svg, legend))
    return sections
