from __future__ import annotations

import pytest

from sculpture.errors import (
    DanglingReferenceError,
    FieldCountError,
    FieldValueError,
    NudgeFormatError,
    UnknownTokenError,
)
from sculpture.striping import (
    StartSide,
    StripingInstructions,
    calc_nudge,
    is_gap_token,
    parse_signal_paths,
    parse_striping_instructions,
    parse_striping_line,
)

START = {"P": 5, "Q": 7}


@pytest.mark.parametrize(
    ("token", "expected"),
    [("", 0), ("+", 1), ("++", 2), ("-", -1), ("+-", 0), ("--+", -1)],
)
def test_calc_nudge_counts_signs(token: str, expected: int) -> None:
    assert calc_nudge(token) == expected


def test_calc_nudge_rejects_other_characters() -> None:
    with pytest.raises(NudgeFormatError):
        calc_nudge("+x")


def test_gap_tokens() -> None:
    assert is_gap_token("g")
    assert is_gap_token("ggg")
    assert not is_gap_token("")
    assert not is_gap_token("gx")
    assert not is_gap_token("+.+")


def test_worked_example_left_start() -> None:
    parsed = parse_striping_line("P 5 L +.+ gg -.+", START)

    assert parsed is not None
    assert parsed.panel_id == "P"
    assert parsed.starting_vertex == 5
    assert parsed.start_side is StartSide.LEFT
    assert parsed.row_lengths == (7, 6)
    assert parsed.before_nudges == (1, 1)
    assert parsed.gaps == (0, 2)
    assert parsed.universe_lengths is None
    assert parsed.pixel_count == 13
    assert parsed.strand_length == 15


def test_right_start_takes_right_nudge_first() -> None:
    parsed = parse_striping_line("P 4 R ++.- -.+", START)

    assert parsed is not None
    # Row 0 is fed from the right, row 1 from the left.
    assert parsed.before_nudges == (-1, -1)
    assert parsed.row_lengths == (5, 4)


def test_rows_shrink_by_one_without_nudges() -> None:
    parsed = parse_striping_line("Q 3 R . . .", START)

    assert parsed is not None
    assert parsed.row_lengths == (3, 2, 1)
    assert parsed.before_nudges == (0, 0, 0)
    assert parsed.gaps == (0, 0, 0)


def test_trailing_gap_is_dropped() -> None:
    parsed = parse_striping_line("P 2 L . ggg", START)

    assert parsed is not None
    assert parsed.row_lengths == (2,)
    assert parsed.gaps == (0,)


def test_universe_lengths_are_carried() -> None:
    parsed = parse_striping_line("P 5 U170,170,40 L .", START)

    assert parsed is not None
    assert parsed.universe_lengths == (170, 170, 40)
    assert parsed.row_lengths == (5,)


def test_annotations_are_removed() -> None:
    parsed = parse_striping_line("P 5 L +.+ (first row) gg (gap here) -.+", START)

    assert parsed is not None
    assert parsed.row_lengths == (7, 6)


@pytest.mark.parametrize("line", ["", "   ", "P 5", "10.0.0.7#1:0", "10.0.0.7#1:0 P 5 L ."])
def test_lines_without_layout_are_skipped(line: str) -> None:
    assert parse_striping_line(line, START) is None


def test_unknown_side_token() -> None:
    with pytest.raises(UnknownTokenError) as excinfo:
        parse_striping_line("P 5 X +.+", START)
    assert excinfo.value.token == "X"


def test_missing_side_after_universe_list() -> None:
    with pytest.raises(FieldCountError):
        parse_striping_line("P 5 U10,20", START)


def test_bad_nudge_pair() -> None:
    with pytest.raises(NudgeFormatError):
        parse_striping_line("P 5 L +.+.+", START)
    with pytest.raises(NudgeFormatError):
        parse_striping_line("P 5 L ++", START)


def test_non_integer_row_length() -> None:
    with pytest.raises(FieldValueError):
        parse_striping_line("P five L .", START)


def test_panel_without_signal_in_vertex() -> None:
    with pytest.raises(DanglingReferenceError):
        parse_striping_line("Z 5 L .", START)


def test_parse_many_lines_keys_by_panel_and_reports_location() -> None:
    parsed = parse_striping_instructions(
        ["P 5 L +.+ gg -.+", "", "Q 3 R . . ."], START, source="striping.txt"
    )
    assert sorted(parsed) == ["P", "Q"]

    with pytest.raises(NudgeFormatError, match=r"striping\.txt:2: "):
        parse_striping_instructions(["P 5 L .", "Q 3 R +?.+"], START, source="striping.txt")


def test_instructions_reject_mismatched_rows() -> None:
    with pytest.raises(ValueError):
        StripingInstructions(
            panel_id="P",
            starting_vertex=1,
            start_side=StartSide.LEFT,
            row_lengths=(1, 2),
            before_nudges=(0,),
            gaps=(0, 0),
        )


def test_signal_paths_table() -> None:
    table = parse_signal_paths(
        [
            "Panel\ta\tb\tc\td\te\tf\tSignal in vertex",
            "P\t1\t2\t3\t4\t5\t6\t5",
            "",
            "Q 1 2 3 4 5 6 7",
        ]
    )
    assert table == {"P": 5, "Q": 7}


def test_signal_paths_header_is_required() -> None:
    with pytest.raises(FieldValueError):
        parse_signal_paths(["Panel\tSignal out vertex", "P\t1\t2\t3\t4\t5\t6\t5"])
    with pytest.raises(FieldValueError):
        parse_signal_paths([])


def test_signal_paths_rows_need_eight_fields() -> None:
    with pytest.raises(FieldCountError) as excinfo:
        parse_signal_paths(["x Signal in vertex", "P 1 2 3"], source="paths.tsv")
    assert excinfo.value.expected == 8
    assert excinfo.value.found == 4
    assert "paths.tsv:2" in str(excinfo.value)
