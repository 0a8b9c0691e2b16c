"""Translation between (line, column) positions and character offsets.

Lines are delimited by "\\n" only; a "\\r" before it counts as part of the
line. Offsets and columns are string indices. Both functions are total:
out-of-range input is clamped, never rejected.
"""

from .models import Position, Span


def position_to_offset(text: str, line: int, column: int) -> int:
    """Convert a (line, column) position to an offset into text.

    The column is clamped to the line's length. A line past the end of the
    document yields len(text).
    """
    line = max(0, line)
    column = max(0, column)

    offset = 0
    for index, content in enumerate(text.split("\n")):
        if index == line:
            return offset + min(column, len(content))
        # +1 for the newline character
        offset += len(content) + 1
    return len(text)


def offset_to_position(text: str, offset: int) -> Position:
    """Convert an offset into text to a (line, column) position."""
    offset = min(max(0, offset), len(text))
    line = text.count("\n", 0, offset)
    line_start = text.rfind("\n", 0, offset) + 1
    return Position(line=line, character=offset - line_start)


def line_start_offsets(text: str) -> list[int]:
    """Offsets at which each line of text begins."""
    starts = [0]
    index = text.find("\n")
    while index != -1:
        starts.append(index + 1)
        index = text.find("\n", index + 1)
    return starts


def span_from_offsets(text: str, start: int, end: int) -> Span:
    """Build a Span whose positions agree with the given offsets."""
    start = min(max(0, start), len(text))
    end = min(max(start, end), len(text))
    return Span(
        start=offset_to_position(text, start),
        end=offset_to_position(text, end),
        start_offset=start,
        end_offset=end,
    )
