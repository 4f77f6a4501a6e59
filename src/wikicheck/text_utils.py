"""Raw offset helpers: line boundaries and whitespace movement.

Every detector that needs to walk characters goes through these helpers so
that off-by-one handling of line ends lives in one place.
"""
from __future__ import annotations

from collections.abc import Iterator

from wikicheck.interval import Interval


def line_end(text: str, offset: int) -> int:
    """Offset of the ``\\n`` ending the line (or ``len(text)``)."""
    pos = text.find("\n", offset)
    return len(text) if pos < 0 else pos


def iter_lines(text: str) -> Iterator[Interval]:
    """Yield each line's range, newline excluded."""
    begin = 0
    while begin < len(text):
        end = line_end(text, begin)
        yield Interval(begin, end)
        begin = end + 1


def move_after_whitespace(text: str, offset: int) -> int:
    while offset < len(text) and text[offset].isspace():
        offset += 1
    return offset


def move_before_whitespace(text: str, offset: int, floor: int = 0) -> int:
    """Move ``offset`` left while the char before it is whitespace."""
    while offset > floor and text[offset - 1].isspace():
        offset -= 1
    return offset


def run_length(text: str, offset: int, char: str) -> int:
    """Number of consecutive ``char`` starting at ``offset``."""
    count = 0
    while offset + count < len(text) and text[offset + count] == char:
        count += 1
    return count


def replace_ranges(text: str, replacements: list[tuple[Interval, str]]) -> str:
    """Apply non-overlapping replacements given in increasing order.

    Raises ValueError when two replacements overlap, since applying them
    would make the second range point at shifted text.
    """
    parts: list[str] = []
    last = 0
    for interval, replacement in replacements:
        if interval.begin < last:
            raise ValueError(
                f"Overlapping replacement at {interval.begin} (previous ended at {last})"
            )
        parts.append(text[last:interval.begin])
        parts.append(replacement)
        last = interval.end
    parts.append(text[last:])
    return "".join(parts)
