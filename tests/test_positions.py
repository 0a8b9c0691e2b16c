"""Tests for offset <-> (line, column) translation."""

import pytest

from wikinote.models import Position
from wikinote.positions import (
    line_start_offsets,
    offset_to_position,
    position_to_offset,
    span_from_offsets,
)

SAMPLES = [
    "",
    "single line",
    "# Main\n## Sub 1\n### Deep\n## Sub 2",
    "trailing newline\n",
    "\n\nblank lines\n\n",
    "crlf line\r\nnext\r\n",
    "unicode é → [[note]]\nsecond",
]


class TestPositionToOffset:
    def test_first_line(self):
        assert position_to_offset("abc\ndef", 0, 2) == 2

    def test_later_line_adds_previous_lengths(self):
        assert position_to_offset("abc\ndef", 1, 1) == 5

    def test_column_clamped_to_line_length(self):
        assert position_to_offset("abc\ndef", 0, 99) == 3

    def test_line_past_end_returns_end_of_text(self):
        text = "abc\ndef"
        assert position_to_offset(text, 7, 0) == len(text)

    def test_negative_values_clamp_to_zero(self):
        assert position_to_offset("abc\ndef", -1, -5) == 0

    def test_empty_text(self):
        assert position_to_offset("", 0, 3) == 0


class TestOffsetToPosition:
    def test_start_of_second_line(self):
        assert offset_to_position("abc\ndef", 4) == Position(line=1, character=0)

    def test_offset_on_newline_belongs_to_line_before(self):
        assert offset_to_position("abc\ndef", 3) == Position(line=0, character=3)

    def test_out_of_range_offset_is_clamped(self):
        assert offset_to_position("abc", 50) == Position(line=0, character=3)
        assert offset_to_position("abc", -2) == Position(line=0, character=0)


@pytest.mark.parametrize("text", SAMPLES)
def test_roundtrip_every_offset(text):
    """position_to_offset(offset_to_position(o)) == o for every valid offset."""
    for offset in range(len(text) + 1):
        position = offset_to_position(text, offset)
        assert position_to_offset(text, position.line, position.character) == offset


def test_line_start_offsets():
    assert line_start_offsets("ab\n\ncd\n") == [0, 3, 4, 7]


def test_span_positions_agree_with_offsets():
    text = "# Title\nbody [[link]]\n"
    span = span_from_offsets(text, 13, 21)

    assert span.start == Position(line=1, character=5)
    assert span.end == Position(line=1, character=13)
    assert position_to_offset(text, span.start.line, span.start.character) == span.start_offset
    assert position_to_offset(text, span.end.line, span.end.character) == span.end_offset
