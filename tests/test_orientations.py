import pytest

from conftest import grid
from models import Orientation, PuzzleInputError
from solver.orientations import (
    decode_mask,
    encode_mask,
    flip_horizontal,
    generate_orientations,
    rotate,
)


def test_rotate_is_clockwise():
    assert rotate(grid("##", "#.")) == grid("##", ".#")
    assert rotate(grid("###")) == grid("#", "#", "#")


def test_flip_horizontal_mirrors_columns():
    assert flip_horizontal(grid("##.", "#..")) == grid(".##", "..#")


def test_encode_mask_sets_bit_per_column():
    orient = encode_mask(grid("#.#", ".#."))
    assert orient == Orientation(rows=(0b101, 0b010), width=3, height=2)
    assert orient.area == 3
    assert decode_mask(orient) == grid("#.#", ".#.")


def test_encode_mask_supports_rows_wider_than_a_machine_word():
    orient = encode_mask(grid("#" * 70))
    assert orient.rows == ((1 << 70) - 1,)
    assert orient.width == 70
    assert orient.area == 70


@pytest.mark.parametrize(
    "rows, expected",
    [
        (("##", "##"), 1),                       # O tetromino
        ((".#.", "###", ".#."), 1),              # plus
        (("###",), 2),                           # straight tromino
        (("###", ".#.", "###"), 2),              # H-like, symmetric on both axes
        (("##", "#."), 4),                       # L tromino
        ((".##", "##."), 4),                     # S tetromino, 180-degree symmetric
        (("###", "#..", "###"), 4),              # C shape
        ((".##", "##.", ".#."), 8),              # F pentomino
        (("###", "##.", ".##"), 8),
    ],
)
def test_orientation_counts(rows, expected):
    orients = generate_orientations(grid(*rows))
    assert len(orients) == expected
    assert len(orients) in (1, 2, 4, 8)
    assert len(set(orients)) == len(orients)


@pytest.mark.parametrize(
    "rows",
    [("#",), ("##", "#."), (".##", "##.", ".#."), ("###", "#..", "###"), ("#...", "####")],
)
def test_every_orientation_keeps_area(rows):
    source = grid(*rows)
    filled = sum(cell for row in source for cell in row)
    for orient in generate_orientations(source):
        assert orient.area == filled
        assert sum(cell for row in decode_mask(orient) for cell in row) == filled


def test_discovery_order_is_rotation_major_reflection_minor():
    orients = generate_orientations(grid("##", "#."))
    assert orients[0] == encode_mask(grid("##", "#."))
    assert orients[1] == encode_mask(grid("##", ".#"))


def test_straight_piece_has_horizontal_and_vertical_orientation():
    orients = generate_orientations(grid("###"))
    dims = sorted((o.width, o.height) for o in orients)
    assert dims == [(1, 3), (3, 1)]


@pytest.mark.parametrize(
    "cells",
    [
        (),
        ((),),
        ((True, False), (True,)),
        ((False, False), (False, False)),
    ],
)
def test_malformed_grids_are_rejected(cells):
    with pytest.raises(PuzzleInputError):
        generate_orientations(cells)
