"""Core business logic for wikinote.

This module composes the document store, the markdown parsers and the note
index into the operations the language server exposes. It knows nothing
about the protocol; server.py only converts params and results.

Design principles:
- All operations are async; parsing and ranking are synchronous and run to
  completion, only note index and file reads are awaited
- Malformed text yields empty results, collaborator failures raise
  WikinoteError subclasses
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from .completion import build_completions, trigger_at
from .config import HOVER_PREVIEW_MAX_CHARS, WORKSPACE_SYMBOL_LIMIT, get_search_workers
from .documents import DocumentStore
from .errors import NoteReadError
from .models import (
    DefinitionLocation,
    HoverPreview,
    LinkCompletion,
    NoteRecord,
    OutlineNode,
    Position,
    WikiLink,
    WorkspaceSymbol,
)
from .note_index import NoteIndex
from .parser.wikilinks import find_link_at
from .positions import position_to_offset
from .symbols import search_workspace_symbols

log = logging.getLogger(__name__)


class WikinoteCore:
    """Document structure and link resolution over an open-document store."""

    def __init__(
        self,
        index: NoteIndex,
        store: DocumentStore | None = None,
        max_workers: int | None = None,
    ) -> None:
        self.index = index
        self.store = store or DocumentStore()
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or get_search_workers(),
            thread_name_prefix="wikinote-search",
        )

    def close(self) -> None:
        """Release the workspace search pool. Queued file reads are dropped."""
        self._executor.shutdown(wait=False, cancel_futures=True)

    # ─────────────────────────────────────────────────────────────────────
    # Document lifecycle
    # ─────────────────────────────────────────────────────────────────────

    async def did_open(self, uri: str, text: str, version: int | None = None) -> None:
        await self.store.open(uri, text, version)

    async def did_change(self, uri: str, text: str, version: int | None = None) -> None:
        await self.store.change(uri, text, version)

    async def did_close(self, uri: str) -> None:
        await self.store.close(uri)

    # ─────────────────────────────────────────────────────────────────────
    # Structure
    # ─────────────────────────────────────────────────────────────────────

    async def document_outline(self, uri: str) -> list[OutlineNode]:
        """Outline of an open document; [] for documents that are not open."""
        return await self.store.outline(uri)

    async def workspace_symbols(self, query: str, limit: int | None = WORKSPACE_SYMBOL_LIMIT) -> list[WorkspaceSymbol]:
        """Headings across the vault, fuzzy-ranked and deduplicated."""
        return await search_workspace_symbols(
            self.index,
            query,
            store=self.store,
            executor=self._executor,
            limit=limit,
        )

    # ─────────────────────────────────────────────────────────────────────
    # Links
    # ─────────────────────────────────────────────────────────────────────

    async def _document_text(self, uri: str) -> str:
        """Text of a document: the open copy, else the file on disk.

        Raises:
            InvalidUriError: If the URI is not a local file.
            NoteReadError: If the file cannot be read.
        """
        text = await self.store.get_text(uri)
        if text is not None:
            return text

        path = self.index.uri_to_local_path(uri)
        try:
            text = await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise NoteReadError(path, str(e)) from e
        log.debug("Read %s from disk (%d chars)", path, len(text))
        return text

    async def _link_at(self, uri: str, position: Position) -> WikiLink | None:
        text = await self._document_text(uri)
        offset = position_to_offset(text, position.line, position.character)
        link = find_link_at(text, offset)
        if link is None:
            log.debug("No wiki-link at %s:%d:%d", uri, position.line, position.character)
        else:
            log.debug("Wiki-link at %s:%d:%d -> %r", uri, position.line, position.character, link.target)
        return link

    async def hover_target(self, uri: str, position: Position) -> WikiLink | None:
        """The wiki-link under the cursor, unresolved."""
        return await self._link_at(uri, position)

    async def definition_target(self, uri: str, position: Position) -> WikiLink | None:
        """The wiki-link under the cursor, unresolved."""
        return await self._link_at(uri, position)

    async def _resolve(self, link: WikiLink) -> NoteRecord | None:
        record = await asyncio.to_thread(self.index.resolve_virtual_path, link.target)
        if record is None:
            log.debug("No note for link target %r", link.target)
        return record

    async def hover(self, uri: str, position: Position) -> HoverPreview | None:
        """Preview of the note linked under the cursor.

        Returns None when there is no link, the target is unknown, or the
        target note cannot be read.
        """
        link = await self.hover_target(uri, position)
        if link is None:
            return None

        record = await self._resolve(link)
        if record is None:
            return None

        try:
            content = await asyncio.to_thread(_read_note, record)
        except NoteReadError as e:
            log.debug("No hover preview: %s", e)
            return None

        truncated = len(content) > HOVER_PREVIEW_MAX_CHARS
        if truncated:
            content = content[:HOVER_PREVIEW_MAX_CHARS]
        return HoverPreview(link=link, record=record, content=content, truncated=truncated)

    async def definition(self, uri: str, position: Position) -> DefinitionLocation | None:
        """Location of the note linked under the cursor (its first character)."""
        link = await self.definition_target(uri, position)
        if link is None:
            return None

        record = await self._resolve(link)
        if record is None:
            return None

        return DefinitionLocation(link=link, record=record, uri=self.index.local_path_to_uri(record.path))

    async def link_completions(self, uri: str, position: Position) -> list[LinkCompletion]:
        """Candidate links for a [[ being typed; [] when not after [[."""
        text = await self.store.get_text(uri)
        if text is None:
            return []

        trigger = trigger_at(text, position.line, position.character)
        if trigger is None:
            return []

        records = await asyncio.to_thread(self.index.list_all_notes)
        return build_completions(text, trigger, records)


def _read_note(record: NoteRecord) -> str:
    path = Path(record.path)
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise NoteReadError(path, str(e)) from e
