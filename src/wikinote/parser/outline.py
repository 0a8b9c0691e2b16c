"""Heading outline extraction.

markdown-it-py turns a document into a flat token stream; headings arrive as
heading_open / inline / heading_close triples with no nesting. This module
reads that stream once, front to back, and folds it into a forest of
OutlineNodes with an explicit stack.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator
from typing import NamedTuple

from markdown_it import MarkdownIt

from ..models import OutlineNode, Span
from ..positions import line_start_offsets, span_from_offsets

# Cached parser (CommonMark preset: ATX and setext headings, fenced code)
_parser: MarkdownIt | None = None

# Inline token types whose content counts as heading text
_TEXT_TOKEN_TYPES = frozenset({"text", "code_inline"})

# Leading YAML metadata block, as read by python-frontmatter
_FRONT_MATTER_RE = re.compile(r"\A---[ \t]*\n(?:.*?\n)?(?:---|\.\.\.)[ \t]*(?:\n|\Z)", re.DOTALL)


def _get_parser() -> MarkdownIt:
    global _parser
    if _parser is None:
        _parser = MarkdownIt("commonmark")
    return _parser


class HeadingEvent(NamedTuple):
    """A heading as seen in the token stream."""

    level: int
    text: str
    span: Span


def _mask_front_matter(source: str) -> str:
    """Blank out a leading front matter block, keeping every newline in place."""
    match = _FRONT_MATTER_RE.match(source)
    if match is None:
        return source
    blanked = re.sub(r"[^\n]", " ", match.group(0))
    return blanked + source[match.end():]


def iter_heading_events(text: str) -> Iterator[HeadingEvent]:
    """Yield one HeadingEvent per heading, in document order.

    Heading text is the concatenation of the heading's inline text runs,
    trimmed. Runs split by emphasis or code are joined without separators.
    """
    # markdown-it treats a lone \r as a line break; the position translator
    # does not. Parse a same-length copy so token line numbers match ours.
    source = text.replace("\r", " ")
    source = _mask_front_matter(source)
    tokens = _get_parser().parse(source)
    starts = line_start_offsets(text)

    level = 0
    parts: list[str] = []
    line_range: list[int] | None = None

    for token in tokens:
        if token.type == "heading_open":
            level = int(token.tag[1:])
            parts = []
            line_range = token.map
        elif token.type == "inline" and level:
            for child in token.children or []:
                if child.type in _TEXT_TOKEN_TYPES:
                    parts.append(child.content)
        elif token.type == "heading_close" and level:
            yield HeadingEvent(level, "".join(parts).strip(), _heading_span(text, starts, line_range))
            level = 0
            line_range = None


def _heading_span(text: str, starts: list[int], line_range: list[int] | None) -> Span:
    if not line_range:
        return span_from_offsets(text, 0, 0)
    first, last = line_range[0], max(line_range[0], line_range[1] - 1)
    start = starts[first] if first < len(starts) else len(text)
    # End of the last heading line, before its newline
    end = starts[last + 1] - 1 if last + 1 < len(starts) else len(text)
    return span_from_offsets(text, start, end)


def build_outline(events: Iterable[HeadingEvent]) -> list[OutlineNode]:
    """Fold a heading stream into a forest of OutlineNodes.

    Each event is pushed and popped exactly once. A node becomes the last
    child of the nearest open node with a lower level; skipped levels do not
    produce intermediate nodes.
    """
    roots: list[OutlineNode] = []
    stack: list[OutlineNode] = []

    def close_top() -> None:
        completed = stack.pop()
        if stack:
            stack[-1].children.append(completed)
        else:
            roots.append(completed)

    for event in events:
        while stack and stack[-1].level >= event.level:
            close_top()
        stack.append(OutlineNode(name=event.text, level=event.level, span=event.span))

    while stack:
        close_top()

    return roots


def outline_from_text(text: str) -> list[OutlineNode]:
    """Outline of a markdown document."""
    return build_outline(iter_heading_events(text))


def iter_outline(nodes: Iterable[OutlineNode]) -> Iterator[OutlineNode]:
    """Walk a forest depth-first in document order."""
    pending = list(reversed(list(nodes)))
    while pending:
        node = pending.pop()
        yield node
        pending.extend(reversed(node.children))
