from conftest import grid
from models import Placed, RegionResult
from render import render_result, render_sections
from solver.orientations import encode_mask


def test_render_result_draws_one_square_per_cell():
    ell = encode_mask(grid("##", "#."))
    placed = [Placed(0, 0, 2, ell), Placed(1, 1, 0, encode_mask(grid("#")))]

    svg, legend = render_result(placed, 2, 2, scale=10)

    assert svg.startswith("<svg")
    assert 'width="22"' in svg
    assert svg.count("<title>") == 4
    assert "shape 0" in legend and "shape 2" in legend
    assert legend.index("shape 0") < legend.index("shape 2")


def test_colors_are_stable_per_shape():
    mono = encode_mask(grid("#"))
    first, _ = render_result([Placed(0, 0, 5, mono)], 1, 1, scale=8)
    second, _ = render_result([Placed(0, 0, 5, mono)], 1, 1, scale=8)
    assert first == second


def test_render_sections_skips_regions_without_witness():
    mono = encode_mask(grid("#"))
    results = [
        RegionResult(index=0, label="1x1 (#1)", ok=True, placed=[Placed(0, 0, 0, mono)], width=1, height=1),
        RegionResult(index=1, label="1x1 (#2)", ok=False, width=1, height=1),
        RegionResult(index=2, label="1x1 (#3)", ok=True, placed=[], width=1, height=1),
    ]
    sections = render_sections(results)
    assert [title for title, _svg, _legend in sections] == ["1x1 (#1)"]
