# cli.py: evaluate every region of a puzzle file and print the fit count
from __future__ import annotations

import argparse
import os
import sys
from typing import List, Optional

from config import CFG, METHODS
from io_files import format_result_line, write_layout_view_html, write_results
from models import PuzzleInputError
from progress import reset as progress_reset, start_timer, set_done
from puzzle_parser import parse_puzzle_file
from render import render_sections
from solver.orchestrator import solve_regions

EXIT_OK = 0
EXIT_REGION_ERRORS = 1
EXIT_BAD_INPUT = 2


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Count the regions whose required shapes fit without overlap.")
    ap.add_argument("input", help="Puzzle file: shape blocks followed by 'WxH: q0 q1 ...' lines")
    ap.add_argument("--method", choices=METHODS, default=None, help=f"Solver (default: {CFG.METHOD})")
    ap.add_argument("--workers", type=int, default=None, help=f"Parallel region workers (default: {CFG.WORKERS})")
    ap.add_argument("--fail-fast", action="store_true", help="Abort on the first malformed region")
    ap.add_argument("--no-symmetry-breaking", action="store_true", help="Disable identical-piece ordering")
    ap.add_argument("--out-dir", default=None, help="Where to write results/layout files (default: input's directory)")
    ap.add_argument("--html", action="store_true", help="Also write the layout view HTML")
    ap.add_argument("--verbose", "-v", action="store_true", help="Print one line per region")
    return ap


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        puzzle = parse_puzzle_file(args.input)
    except OSError as exc:
        print(f"error: cannot read {args.input}: {exc}", file=sys.stderr)
        return EXIT_BAD_INPUT
    except PuzzleInputError as exc:
        print(f"error: {args.input}: {exc}", file=sys.stderr)
        return EXIT_BAD_INPUT

    progress_reset()
    start_timer()
    try:
        summary = solve_regions(
            puzzle,
            method=args.method,
            workers=args.workers,
            fail_fast=args.fail_fast,
            symmetry_breaking=False if args.no_symmetry_breaking else None,
        )
    except PuzzleInputError as exc:
        set_done(False, reason=str(exc))
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_REGION_ERRORS

    set_done(summary.errors == 0, reason=f"{summary.feasible} of {summary.total} regions fit")

    for result in summary.results:
        if args.verbose or result.error:
            print(format_result_line(result))

    out_dir = args.out_dir or os.path.dirname(os.path.abspath(args.input))
    write_results(summary.results, out_dir)
    if args.html:
        write_layout_view_html(render_sections(summary.results), out_dir)

    print(summary.feasible)
    return EXIT_REGION_ERRORS if summary.errors else EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
