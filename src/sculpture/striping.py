"""Panel striping instructions: the per-row LED layout mini-language.

Each line of ``striping-instructions.txt`` describes one panel::

    <id> <baseRowLength> [U<c1>,<c2>,...] <L|R> <token>...

``g`` runs are gaps (dark strand positions) and ``<left>.<right>`` tokens are
nudge pairs, one per physical LED row. Nudge runs are strings of ``+`` and
``-`` characters that widen or narrow the row on that side.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Mapping, TextIO

from .errors import (
    DanglingReferenceError,
    FieldCountError,
    FieldValueError,
    NudgeFormatError,
    UnknownTokenError,
    location,
)

__all__ = [
    "SIGNAL_IN_HEADER",
    "StartSide",
    "StripingInstructions",
    "calc_nudge",
    "is_gap_token",
    "parse_signal_paths",
    "parse_striping_instructions",
    "parse_striping_line",
    "read_signal_paths",
    "read_striping_instructions",
]

logger = logging.getLogger(__name__)

SIGNAL_IN_HEADER = "Signal in vertex"
SIGNAL_PATH_FIELDS = 8

_GAP_PATTERN = re.compile(r"^g+$")
_ANNOTATION_PATTERN = re.compile(r"\s*\(.+?\)\s*")


class StartSide(str, Enum):
    """Side of the panel on which the first row starts."""

    LEFT = "L"
    RIGHT = "R"

    @classmethod
    def parse(cls, token: str, *, where: str = "") -> "StartSide":
        try:
            return cls(token)
        except ValueError:
            raise UnknownTokenError("left/right token", token, where=where) from None


@dataclass(frozen=True, slots=True)
class StripingInstructions:
    """Row-by-row pixel layout for one panel."""

    panel_id: str
    starting_vertex: int
    start_side: StartSide
    row_lengths: tuple[int, ...]
    before_nudges: tuple[int, ...]
    gaps: tuple[int, ...]
    universe_lengths: tuple[int, ...] | None = None

    def __post_init__(self) -> None:
        if not len(self.row_lengths) == len(self.before_nudges) == len(self.gaps):
            raise ValueError(
                f"Striping rows for panel '{self.panel_id}' have mismatched lengths."
            )

    @property
    def row_count(self) -> int:
        return len(self.row_lengths)

    @property
    def pixel_count(self) -> int:
        return sum(self.row_lengths)

    @property
    def strand_length(self) -> int:
        """Number of strand positions, lit pixels plus gaps."""

        return sum(self.row_lengths) + sum(self.gaps)


def calc_nudge(token: str, *, where: str = "") -> int:
    """Return +1 per ``+`` and -1 per ``-`` in *token*."""

    value = 0
    for char in token:
        if char == "+":
            value += 1
        elif char == "-":
            value -= 1
        else:
            raise NudgeFormatError(f"{where}bad nudge character {char!r} in {token!r}")
    return value


def is_gap_token(token: str) -> bool:
    return bool(_GAP_PATTERN.match(token))


def _parse_int(token: str, what: str, *, where: str) -> int:
    try:
        return int(token)
    except ValueError:
        raise FieldValueError(f"{where}{what} {token!r} is not an integer") from None


def parse_striping_line(
    line: str,
    start_vertexes: Mapping[str, int],
    *,
    where: str = "",
) -> StripingInstructions | None:
    """Parse one striping line.

    Returns ``None`` for lines that carry no layout: blank lines, leftover
    controller addresses and lines with fewer than three tokens.
    """

    tokens = _ANNOTATION_PATTERN.sub(" ", line).split()
    if not tokens:
        return None
    if "." in tokens[0]:
        logger.info("Ignoring leftover striping controller address %s", tokens[0])
        return None
    if len(tokens) < 3:
        return None

    panel_id = tokens[0]
    row_length = _parse_int(tokens[1], "base row length", where=where)

    index = 2
    universe_lengths: tuple[int, ...] | None = None
    if tokens[index].startswith("U"):
        universe_lengths = tuple(
            _parse_int(value, "universe length", where=where)
            for value in tokens[index][1:].split(",")
        )
        index += 1
    if index >= len(tokens):
        raise FieldCountError(index + 1, len(tokens), where=where)
    start_side = StartSide.parse(tokens[index], where=where)
    index += 1

    row_lengths: list[int] = []
    before_nudges: list[int] = []
    gaps: list[int] = []
    pending_gap = 0
    phase = 0
    for token in tokens[index:]:
        if is_gap_token(token):
            pending_gap += len(token)
            continue
        sides = token.split(".")
        if len(sides) != 2:
            raise NudgeFormatError(f"{where}bad nudge pair {token!r} in [{line.strip()}]")
        left_nudge = calc_nudge(sides[0], where=where)
        right_nudge = calc_nudge(sides[1], where=where)
        if (start_side is StartSide.LEFT) == (phase == 0):
            before_nudges.append(left_nudge)
        else:
            before_nudges.append(right_nudge)
        row_length += left_nudge + right_nudge
        row_lengths.append(row_length)
        row_length -= 1
        gaps.append(pending_gap)
        pending_gap = 0
        phase = 1 - phase

    if panel_id not in start_vertexes:
        raise DanglingReferenceError(
            f"{where}panel '{panel_id}' has no signal-in vertex in the signal path table"
        )

    return StripingInstructions(
        panel_id=panel_id,
        starting_vertex=start_vertexes[panel_id],
        start_side=start_side,
        row_lengths=tuple(row_lengths),
        before_nudges=tuple(before_nudges),
        gaps=tuple(gaps),
        universe_lengths=universe_lengths,
    )


def parse_striping_instructions(
    lines: Iterable[str],
    start_vertexes: Mapping[str, int],
    *,
    source: Path | str | None = None,
) -> dict[str, StripingInstructions]:
    """Parse every striping line into a mapping keyed by panel id."""

    instructions: dict[str, StripingInstructions] = {}
    for line_number, line in enumerate(lines, start=1):
        parsed = parse_striping_line(
            line, start_vertexes, where=location(source, line_number)
        )
        if parsed is None:
            continue
        instructions[parsed.panel_id] = parsed
        logger.debug(
            "Panel %s has starting vertex %d, universe lengths %s and row lengths %s",
            parsed.panel_id,
            parsed.starting_vertex,
            parsed.universe_lengths,
            parsed.row_lengths,
        )
    return instructions


def parse_signal_paths(
    lines: Iterable[str],
    *,
    source: Path | str | None = None,
) -> dict[str, int]:
    """Map panel id to signal-in vertex id from the signal path table."""

    iterator = iter(lines)
    header = next(iterator, None)
    if header is None or not header.rstrip("\r\n").endswith(SIGNAL_IN_HEADER):
        raise FieldValueError(
            f"{location(source, 1)}signal path header must end with {SIGNAL_IN_HEADER!r}"
        )

    start_vertexes: dict[str, int] = {}
    for line_number, line in enumerate(iterator, start=2):
        if not line.strip():
            continue
        where = location(source, line_number)
        tokens = line.split()
        if len(tokens) != SIGNAL_PATH_FIELDS:
            raise FieldCountError(SIGNAL_PATH_FIELDS, len(tokens), where=where)
        start_vertexes[tokens[0]] = _parse_int(tokens[7], "signal-in vertex", where=where)
    return start_vertexes


def _read(path: Path) -> TextIO:
    if not path.exists():
        raise FileNotFoundError(f"{path.name} not found at {path}")
    return path.open("r", encoding="utf-8")


def read_signal_paths(path: Path) -> dict[str, int]:
    with _read(path) as handle:
        return parse_signal_paths(handle, source=path)


def read_striping_instructions(
    path: Path, start_vertexes: Mapping[str, int]
) -> dict[str, StripingInstructions]:
    with _read(path) as handle:
        return parse_striping_instructions(handle, start_vertexes, source=path)
