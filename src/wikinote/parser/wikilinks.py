"""Locating [[target|alias]] links around a cursor.

Searches start at the cursor and move outward instead of scanning the whole
document, so a pair of brackets elsewhere in the file cannot be mistaken
for the link under the cursor. A link never spans lines.
"""

from __future__ import annotations

from ..config import LINK_ALIAS_SEPARATOR, LINK_CLOSE, LINK_OPEN
from ..models import LinkTrigger, WikiLink


def parse_link_body(body: str) -> tuple[str, str | None] | None:
    """Split the text between [[ and ]] into (target, alias).

    Returns None when the target is empty. A blank alias counts as absent.
    """
    if LINK_ALIAS_SEPARATOR in body:
        target, alias = body.split(LINK_ALIAS_SEPARATOR, 1)
        target = target.strip()
        alias = alias.strip() or None
    else:
        target, alias = body.strip(), None

    if not target:
        return None
    return target, alias


def _innermost_open(text: str, start: int) -> int:
    """Move an opening [[ to the last two brackets of a longer run ([[[a]] opens at 1)."""
    while text.startswith("[", start + len(LINK_OPEN)):
        start += 1
    return start


def find_link_at(text: str, offset: int) -> WikiLink | None:
    """Find the wiki-link enclosing offset.

    The cursor may sit anywhere from the opening [[ up to just past the
    closing ]]. Unterminated or malformed links yield None.
    """
    offset = min(max(0, offset), len(text))

    # An opening that starts at the cursor counts (cursor on the first bracket)
    start = text.rfind(LINK_OPEN, 0, offset + len(LINK_OPEN))
    if start == -1:
        return None
    start = _innermost_open(text, start)

    close = text.find(LINK_CLOSE, start + len(LINK_OPEN))
    if close == -1:
        return None

    end = close + len(LINK_CLOSE)
    if offset > end:
        # The nearest link closed before the cursor
        return None

    body = text[start + len(LINK_OPEN):close]
    if LINK_OPEN in body or "\n" in body:
        return None

    parsed = parse_link_body(body)
    if parsed is None:
        return None

    target, alias = parsed
    return WikiLink(start_offset=start, end_offset=end, target=target, alias=alias)


def find_link_trigger(text: str, offset: int) -> LinkTrigger | None:
    """Find the replacement span for a link being typed at offset.

    The cursor must be inside an opening [[ on the same line that has not
    been closed yet. When the editor auto-paired a closing ]] right after the
    cursor, the span covers it so a completion replaces it.
    """
    offset = min(max(0, offset), len(text))
    line_start = text.rfind("\n", 0, offset) + 1

    start = text.rfind(LINK_OPEN, line_start, offset)
    if start == -1:
        return None

    typed = text[start + len(LINK_OPEN):offset]
    if LINK_CLOSE in typed:
        return None

    end = offset
    if text.startswith(LINK_CLOSE, offset):
        end = offset + len(LINK_CLOSE)

    return LinkTrigger(start_offset=start, end_offset=end, typed=typed)


def extract_links(text: str) -> list[WikiLink]:
    """Every well-formed wiki-link in text, in document order."""
    links: list[WikiLink] = []
    position = 0
    while True:
        start = text.find(LINK_OPEN, position)
        if start == -1:
            break
        start = _innermost_open(text, start)
        close = text.find(LINK_CLOSE, start + len(LINK_OPEN))
        if close == -1:
            break

        body = text[start + len(LINK_OPEN):close]
        # A later [[ inside the body means this opening was never closed
        inner = body.rfind(LINK_OPEN)
        if inner != -1:
            position = start + len(LINK_OPEN) + inner
            continue

        if "\n" not in body:
            parsed = parse_link_body(body)
            if parsed is not None:
                target, alias = parsed
                links.append(
                    WikiLink(
                        start_offset=start,
                        end_offset=close + len(LINK_CLOSE),
                        target=target,
                        alias=alias,
                    )
                )
        position = close + len(LINK_CLOSE)
    return links
