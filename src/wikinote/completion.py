"""Link completion after an opening [[."""

from __future__ import annotations

import logging

from .config import LINK_CLOSE, LINK_OPEN, NOTE_SUFFIX
from .fuzzy import fuzzy_filter
from .models import LinkCompletion, LinkTrigger, NoteRecord
from .note_index import normalize_virtual_path
from .parser.wikilinks import find_link_trigger
from .positions import offset_to_position, position_to_offset

log = logging.getLogger(__name__)


def format_link(virtual_path: str, alias: str) -> str:
    """Canonical link text: [[virtual/path.md | Alias]]."""
    return f"{LINK_OPEN}{virtual_path} | {alias}{LINK_CLOSE}"


def build_completions(text: str, trigger: LinkTrigger, records: list[NoteRecord]) -> list[LinkCompletion]:
    """One completion per markdown note, replacing the trigger span.

    When text was already typed after [[, notes are fuzzy-matched on their
    virtual path and display title and ranked by the better score.
    """
    start = offset_to_position(text, trigger.start_offset)
    end = offset_to_position(text, trigger.end_offset)

    notes = [r for r in records if r.virtual_path.endswith(NOTE_SUFFIX)]
    typed = trigger.typed.strip()
    if typed:
        ranked = fuzzy_filter(typed, notes, key=lambda r: (r.virtual_path, r.display_title))
    else:
        ranked = [(0, r) for r in notes]

    completions = []
    for score, record in ranked:
        virtual_path = normalize_virtual_path(record.virtual_path)
        completions.append(
            LinkCompletion(
                label=record.display_title,
                detail=virtual_path,
                virtual_path=virtual_path,
                start=start,
                end=end,
                new_text=format_link(virtual_path, record.display_title),
                score=score,
            )
        )
    return completions


def trigger_at(text: str, line: int, character: int) -> LinkTrigger | None:
    """The link trigger at a cursor position, or None when not inside an opening [[."""
    trigger = find_link_trigger(text, position_to_offset(text, line, character))
    if trigger is not None:
        log.debug("Link trigger at %d-%d, typed %r", trigger.start_offset, trigger.end_offset, trigger.typed)
    return trigger
