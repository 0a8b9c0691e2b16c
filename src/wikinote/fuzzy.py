"""Fuzzy subsequence matching for symbol and link ranking."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TypeVar

T = TypeVar("T")


def fuzzy_score(query: str, candidate: str) -> int | None:
    """Score candidate against query, or None if it does not match.

    A candidate matches when every character of query appears in it in
    order, ignoring case. The score is the number of candidate characters
    skipped between consecutive matched characters, minimised over every
    way of aligning the query (lower is a tighter match). An empty query
    matches everything with score 0.

    Examples:
        fuzzy_score("hd", "Heading") -> 2
        fuzzy_score("head", "Heading") -> 0
        fuzzy_score("xz", "Heading") -> None
    """
    needle = query.lower()
    haystack = candidate.lower()

    if not needle:
        return 0
    if len(needle) > len(haystack):
        return None

    # best[i]: lowest score matching the query so far with its last
    # character at haystack[i], or None if impossible
    best: list[int | None] = [0 if ch == needle[0] else None for ch in haystack]

    for query_char in needle[1:]:
        current: list[int | None] = [None] * len(haystack)
        # min over k < i of best[k] - k
        running: int | None = None
        for i, ch in enumerate(haystack):
            if running is not None and ch == query_char:
                current[i] = running + i - 1
            if best[i] is not None:
                value = best[i] - i
                if running is None or value < running:
                    running = value
        best = current

    scores = [score for score in best if score is not None]
    return min(scores) if scores else None


def fuzzy_filter(
    query: str,
    items: Iterable[T],
    key: Callable[[T], str | Iterable[str]],
) -> list[tuple[int, T]]:
    """Keep the items matching query, ranked by ascending score.

    key returns the text (or several texts, best one wins) to match against.
    The sort is stable, so equally scored items keep their input order.
    """
    ranked: list[tuple[int, T]] = []
    for item in items:
        texts = key(item)
        if isinstance(texts, str):
            texts = (texts,)
        scores = [s for s in (fuzzy_score(query, text) for text in texts) if s is not None]
        if scores:
            ranked.append((min(scores), item))
    ranked.sort(key=lambda pair: pair[0])
    return ranked
