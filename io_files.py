"""Helpers for writing solver outputs to disk."""

from __future__ import annotations

import html
import os
from typing import List, Sequence, Tuple

from config import CFG
from models import RegionResult


def _resolve_output_path(base_dir: str, configured_name: str, fallback: str) -> str:
    """Return the absolute path where an output artifact should be written."""

    name = (configured_name or "").strip() or fallback
    if os.path.isabs(name):
        return name
    return os.path.join(base_dir, name)


def format_result_line(result: RegionResult) -> str:
    line = f"{result.label}: {result.status_label()}"
    if result.error:
        line += f" ({result.error})"
    elif result.ok and result.placed:
        line += f" [{len(result.placed)} pieces placed]"
    return line


def write_results(results: Sequence[RegionResult], base_dir: str) -> str:
    """Write one line per region plus the feasible count to the configured text file."""

    path = _resolve_output_path(base_dir, CFG.RESULTS_OUT, "results.txt")
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)

    feasible = sum(1 for r in results if r.ok and not r.error)
    with open(path, "w", encoding="utf-8") as f:
        if not results:
            f.write("No regions\n")
        for r in results:
            f.write(format_result_line(r) + "\n")
        f.write(f"Regions that fit: {feasible} of {len(results)}\n")
    return path


def write_layout_view_html(sections: List[Tuple[str, str, str]], base_dir: str) -> str:
    """Write rendered SVG/legend previews, one (title, svg, legend_html) per region."""

    path = _resolve_output_path(base_dir, CFG.LAYOUT_HTML, "layout_view.html")
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)

    body = "".join(
        f"<section class='card'><h3>{html.escape(title)}</h3>"
        f"<div class='gridwrap'>{svg}</div><ul>{legend}</ul></section>"
        for title, svg, legend in sections
    ) or "<p>No placements to show.</p>"

    with open(path, "w", encoding="utf-8") as vf:
        vf.write(
            f"""<!doctype html>
<html><head><meta charset='utf-8'><title>Layout View</title></head>
<body class='container'>
<h1>Layout View</h1>
{body}
</body></html>"""
        )
    return path


__all__ = ["format_result_line", "write_results", "write_layout_view_html"]
