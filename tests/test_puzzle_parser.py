import pytest

from models import PuzzleInputError, Region
from puzzle_parser import parse_puzzle, parse_puzzle_file, parse_region_line


def test_parses_example_shapes_and_regions(example_shapes_text):
    text = example_shapes_text + "\n4x4: 0 0 0 0 2 0\n12x5: 1 0 1 0 2 2\n12x5: 1 0 1 0 3 2\n"
    puzzle = parse_puzzle(text)

    assert sorted(puzzle.shapes) == [0, 1, 2, 3, 4, 5]
    assert puzzle.shapes[4].cells == (
        (True, True, True),
        (True, False, False),
        (True, True, True),
    )
    assert all(shape.area == 7 for shape in puzzle.shapes.values())

    assert len(puzzle.regions) == 3
    first = puzzle.regions[0]
    assert (first.width, first.height) == (4, 4)
    assert first.quantities == ((0, 0), (1, 0), (2, 0), (3, 0), (4, 2), (5, 0))
    assert first.label == "4x4"
    assert first.line_no == 31


def test_shape_block_may_run_into_next_header_without_blank_line():
    puzzle = parse_puzzle("0:\n#\n1:\n##\n2x2: 1 1\n")
    assert puzzle.shapes[0].cells == ((True,),)
    assert puzzle.shapes[1].cells == ((True, True),)
    assert puzzle.regions[0].quantities == ((0, 1), (1, 1))


def test_region_line_accepts_non_positive_sizes_for_later_reporting():
    region = parse_region_line("0x3: 1", line_no=7)
    assert region == Region(width=0, height=3, quantities=((0, 1),), label="0x3", line_no=7)


@pytest.mark.parametrize(
    "text, fragment",
    [
        ("0:\n##\n#\n", "not rectangular"),
        ("0:\n..\n", "no filled cells"),
        ("0:\n\n", "no grid rows"),
        ("0:\n#\n0:\n#\n", "duplicate shape index"),
        ("0:\n#x\n", "unrecognised line"),
        ("hello\n", "unrecognised line"),
        ("0:\n#\n\n2x2: 1 a\n", "expected an integer"),
        ("0:\n#\n\n2x2: -1\n", "negative quantity"),
        ("0:\n#\n\n2x2: 1\n1:\n#\n", "after region lines"),
    ],
)
def test_malformed_input_is_rejected_with_line_number(text, fragment):
    with pytest.raises(PuzzleInputError) as exc_info:
        parse_puzzle(text)
    message = str(exc_info.value)
    assert fragment in message
    assert message.startswith("line ")


def test_empty_text_gives_empty_puzzle():
    puzzle = parse_puzzle("")
    assert puzzle.shapes == {}
    assert puzzle.regions == []


def test_parse_puzzle_file_reads_utf8(tmp_path, example_shapes_text):
    path = tmp_path / "input.txt"
    path.write_text(example_shapes_text + "\n4x4: 0 0 0 0 2 0\n", encoding="utf-8")
    puzzle = parse_puzzle_file(path)
    assert len(puzzle.shapes) == 6
    assert len(puzzle.regions) == 1
