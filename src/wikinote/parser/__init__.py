"""Markdown structure parsing: heading outlines and wiki-links."""

from .outline import HeadingEvent, build_outline, iter_heading_events, iter_outline, outline_from_text
from .wikilinks import extract_links, find_link_at, find_link_trigger, parse_link_body

__all__ = [
    "HeadingEvent",
    "build_outline",
    "iter_heading_events",
    "iter_outline",
    "outline_from_text",
    "extract_links",
    "find_link_at",
    "find_link_trigger",
    "parse_link_body",
]
