"""Open-document cache.

Editors send the full text of a document on open and on every change. The
store keeps the latest text per URI; outlines are derived on demand and
never cached, since the text changes on nearly every keystroke.

The lock guards the dictionary only. Outline computation runs after the
lock is released, on a snapshot of the text.
"""

from __future__ import annotations

import asyncio
import logging

from .models import Document, OutlineNode
from .parser.outline import outline_from_text

log = logging.getLogger(__name__)


class DocumentStore:
    """Latest text of every open document, keyed by URI."""

    def __init__(self) -> None:
        self._documents: dict[str, Document] = {}
        self._lock = asyncio.Lock()

    async def open(self, uri: str, text: str, version: int | None = None) -> None:
        """Insert or replace a document."""
        async with self._lock:
            self._documents[uri] = Document(uri=uri, text=text, version=version)
        log.debug("Opened %s (%d chars)", uri, len(text))

    async def change(self, uri: str, text: str, version: int | None = None) -> None:
        """Replace a document's text wholesale."""
        async with self._lock:
            if uri not in self._documents:
                log.debug("Change for unopened document %s, inserting", uri)
            self._documents[uri] = Document(uri=uri, text=text, version=version)

    async def close(self, uri: str) -> None:
        """Evict a document. Unknown URIs are ignored."""
        async with self._lock:
            self._documents.pop(uri, None)
        log.debug("Closed %s", uri)

    async def get(self, uri: str) -> Document | None:
        async with self._lock:
            return self._documents.get(uri)

    async def get_text(self, uri: str) -> str | None:
        document = await self.get(uri)
        return document.text if document else None

    async def uris(self) -> list[str]:
        async with self._lock:
            return list(self._documents)

    async def snapshot(self) -> dict[str, str]:
        """Copy of uri -> text for every open document."""
        async with self._lock:
            return {uri: doc.text for uri, doc in self._documents.items()}

    async def outline(self, uri: str) -> list[OutlineNode]:
        """Outline of an open document, or [] if it is not open."""
        text = await self.get_text(uri)
        if text is None:
            return []
        return outline_from_text(text)
