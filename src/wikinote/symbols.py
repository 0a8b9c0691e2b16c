"""Workspace-wide heading search.

Every note is read and outlined independently on a worker pool; the
per-file results are collected in submission order and then ranked and
deduplicated in one pass. A file that cannot be read is skipped.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Executor
from pathlib import Path

from .config import NOTE_SUFFIX, WORKSPACE_SYMBOL_LIMIT
from .documents import DocumentStore
from .errors import WikinoteError
from .fuzzy import fuzzy_filter
from .models import NoteRecord, WorkspaceSymbol
from .note_index import NoteIndex
from .parser.outline import iter_outline, outline_from_text

log = logging.getLogger(__name__)


def file_symbols(record: NoteRecord, uri: str, text: str | None = None) -> list[WorkspaceSymbol] | None:
    """Flattened outline of one note, or None if it cannot be read.

    Reads the note from disk unless its text is given (open documents).
    """
    if text is None:
        try:
            text = Path(record.path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            log.debug("Skipping %s during workspace search: %s", record.path, e)
            return None

    container = Path(record.path).name
    return [
        WorkspaceSymbol(
            name=node.name,
            level=node.level,
            uri=uri,
            span=node.span,
            container=container,
        )
        for node in iter_outline(outline_from_text(text))
    ]


def rank_symbols(query: str, symbols: list[WorkspaceSymbol]) -> list[WorkspaceSymbol]:
    """Fuzzy-filter and sort symbols by score, then drop duplicates.

    Duplicates share (name, uri, start line); the first one is kept.
    """
    if query:
        ranked = []
        for score, symbol in fuzzy_filter(query, symbols, key=lambda s: s.name):
            ranked.append(symbol.model_copy(update={"score": score}))
    else:
        ranked = list(symbols)

    seen: set[tuple[str, str, int]] = set()
    unique: list[WorkspaceSymbol] = []
    for symbol in ranked:
        key = (symbol.name, symbol.uri, symbol.span.start.line)
        if key in seen:
            continue
        seen.add(key)
        unique.append(symbol)
    return unique


async def search_workspace_symbols(
    index: NoteIndex,
    query: str,
    store: DocumentStore | None = None,
    executor: Executor | None = None,
    limit: int | None = WORKSPACE_SYMBOL_LIMIT,
) -> list[WorkspaceSymbol]:
    """Search headings across every note in the index.

    Args:
        index: Note index to enumerate.
        query: Fuzzy query; empty keeps every heading.
        store: Open documents, whose in-memory text wins over the disk copy.
        executor: Worker pool for file reads (default loop executor if None).
        limit: Maximum results after ranking, None for no limit.

    Returns:
        Ranked, deduplicated symbols. Ties keep note order, then document order.
    """
    try:
        records = await asyncio.to_thread(index.list_all_notes)
    except WikinoteError as e:
        log.warning("Workspace symbol search could not list notes: %s", e)
        return []

    open_texts = await store.snapshot() if store is not None else {}
    loop = asyncio.get_running_loop()

    futures = []
    for record in records:
        if not record.path.endswith(NOTE_SUFFIX):
            continue
        try:
            uri = index.local_path_to_uri(record.path)
        except WikinoteError as e:
            log.debug("Skipping %s: %s", record.path, e)
            continue
        futures.append(loop.run_in_executor(executor, file_symbols, record, uri, open_texts.get(uri)))

    results = await asyncio.gather(*futures, return_exceptions=True)

    candidates: list[WorkspaceSymbol] = []
    for result in results:
        if isinstance(result, BaseException):
            log.debug("Skipping note after worker failure: %s", result)
            continue
        if result:
            candidates.extend(result)

    ranked = rank_symbols(query, candidates)
    log.debug(
        "Workspace symbols for %r: %d candidates from %d notes, %d ranked",
        query,
        len(candidates),
        len(futures),
        len(ranked),
    )
    if limit is not None:
        ranked = ranked[:limit]
    return ranked
