"""Pydantic models for the language server core."""

from pathlib import PurePosixPath
from typing import Any

from pydantic import BaseModel, Field


class Position(BaseModel):
    """A zero-based (line, character) position in a document."""

    line: int = Field(ge=0)
    character: int = Field(ge=0)


class Span(BaseModel):
    """A range in a document, as positions and as offsets.

    Both representations always describe the same range of the source text.
    """

    start: Position
    end: Position
    start_offset: int = Field(ge=0)
    end_offset: int = Field(ge=0)


class OutlineNode(BaseModel):
    """One heading and its subtree."""

    name: str  # Trimmed heading text, may be empty
    level: int = Field(ge=1)
    span: Span  # Heading line(s) in the source document
    children: list["OutlineNode"] = Field(default_factory=list)


class WikiLink(BaseModel):
    """A parsed [[target|alias]] occurrence."""

    start_offset: int  # Offset of the opening [[
    end_offset: int  # Offset just past the closing ]]
    target: str  # Never empty
    alias: str | None = None


class LinkTrigger(BaseModel):
    """Replacement span for a link being typed after [[."""

    start_offset: int  # Offset of the opening [[
    end_offset: int  # Cursor, or past an auto-paired ]] right after it
    typed: str = ""  # Text between [[ and the cursor


class NoteRecord(BaseModel):
    """A note known to the note index. Read-only to the core."""

    virtual_path: str  # Vault-relative, forward slashes
    path: str  # Local filesystem path
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def title(self) -> str | None:
        title = self.metadata.get("title")
        if isinstance(title, str) and title.strip():
            return title.strip()
        return None

    @property
    def aliases(self) -> list[str]:
        aliases = self.metadata.get("aliases") or []
        if not isinstance(aliases, list):
            return []
        return [str(a).strip() for a in aliases if a and str(a).strip()]

    @property
    def display_title(self) -> str:
        """Metadata title, falling back to the file name, then the virtual path."""
        if self.title:
            return self.title
        name = PurePosixPath(self.virtual_path).name
        return name or self.virtual_path


class Document(BaseModel):
    """An open editor document (full-text sync)."""

    uri: str
    text: str
    version: int | None = None


class WorkspaceSymbol(BaseModel):
    """A heading found by workspace symbol search."""

    name: str
    level: int
    uri: str
    span: Span
    container: str  # File name of the note holding the heading
    score: int = 0  # Fuzzy score, lower is better


class LinkCompletion(BaseModel):
    """A candidate link offered after [[."""

    label: str  # Display title
    detail: str  # Virtual path
    virtual_path: str
    start: Position  # Replacement range start (the [[)
    end: Position  # Replacement range end
    new_text: str  # [[virtual/path.md | Title]]
    score: int = 0


class HoverPreview(BaseModel):
    """A resolved hover: the link under the cursor and its target's content."""

    link: WikiLink
    record: NoteRecord
    content: str
    truncated: bool = False


class DefinitionLocation(BaseModel):
    """A resolved definition: the start of the linked note."""

    link: WikiLink
    record: NoteRecord
    uri: str
    start: Position = Field(default_factory=lambda: Position(line=0, character=0))
    end: Position = Field(default_factory=lambda: Position(line=0, character=0))
