import pytest

from solver.orientations import generate_orientations

EXAMPLE_SHAPES = """\
0:
###
##.
##.

1:
###
##.
.##

2:
.##
###
##.

3:
##.
###
##.

4:
###
#..
###

5:
###
.#.
###
"""


def grid(*rows):
    return tuple(tuple(ch == "#" for ch in row) for row in rows)


def catalogue_of(**named_rows):
    """{index: orientations} from keyword args like s0=("##", "#.")."""
    out = {}
    for key, rows in named_rows.items():
        idx = int(key.lstrip("s"))
        out[idx] = generate_orientations(grid(*rows))
    return out


@pytest.fixture
def example_shapes_text():
    return EXAMPLE_SHAPES


@pytest.fixture
def small_catalogue():
    # 0: monomino, 1: straight tromino, 2: L tromino, 3: O tetromino, 4: plus pentomino
    return catalogue_of(
        s0=("#",),
        s1=("###",),
        s2=("##", "#."),
        s3=("##", "##"),
        s4=(".#.", "###", ".#."),
    )


def assert_valid_witness(placed, W, H):
    seen = set()
    for p in placed:
        for (x, y) in p.cells():
            assert 0 <= x < W and 0 <= y < H, f"cell {(x, y)} out of {W}x{H}"
            assert (x, y) not in seen, f"cell {(x, y)} covered twice"
            seen.add((x, y))
    return seen

