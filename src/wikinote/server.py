"""Language server for wikinote.

This module provides LSP protocol wrappers around the core business logic.
All actual logic lives in core.py - this file just converts between
lsprotocol types and the core's models, and maps errors to JSON-RPC errors.
"""

from __future__ import annotations

import logging
from pathlib import Path

from lsprotocol import types
from pygls.exceptions import JsonRpcInternalError, JsonRpcInvalidParams
from pygls.lsp.server import LanguageServer

from . import __version__
from .config import find_vault_root
from .core import WikinoteCore
from .errors import InvalidUriError, WikinoteError
from .models import (
    DefinitionLocation,
    HoverPreview,
    LinkCompletion,
    OutlineNode,
    Position,
    WorkspaceSymbol,
)
from .note_index import VaultNoteIndex, uri_to_local_path

log = logging.getLogger(__name__)


# Heading level -> symbol kind shown in the editor outline
_LEVEL_KINDS = {
    1: types.SymbolKind.File,
    2: types.SymbolKind.Module,
    3: types.SymbolKind.Namespace,
}


class WikinoteLanguageServer(LanguageServer):
    """pygls server holding one WikinoteCore per session."""

    def __init__(self) -> None:
        super().__init__(
            name="wikinote",
            version=__version__,
            text_document_sync_kind=types.TextDocumentSyncKind.Full,
        )
        self._core: WikinoteCore | None = None

    def configure(self, workspace_root: Path | None) -> WikinoteCore:
        """Build the core for the vault found from the workspace root."""
        vault = find_vault_root(workspace_root)
        if vault is None:
            vault = Path.cwd()
            log.warning("No vault configured, using current directory %s", vault)
        log.info("Serving vault %s", vault)

        if self._core is not None:
            self._core.close()
        self._core = WikinoteCore(VaultNoteIndex(vault))
        return self._core

    @property
    def core(self) -> WikinoteCore:
        if self._core is None:
            return self.configure(None)
        return self._core


server = WikinoteLanguageServer()


# ─────────────────────────────────────────────────────────────────────────────
# Conversions
# ─────────────────────────────────────────────────────────────────────────────


def to_lsp_position(position: Position) -> types.Position:
    return types.Position(line=position.line, character=position.character)


def from_lsp_position(position: types.Position) -> Position:
    return Position(line=position.line, character=position.character)


def to_lsp_range(start: Position, end: Position) -> types.Range:
    return types.Range(start=to_lsp_position(start), end=to_lsp_position(end))


def symbol_kind(level: int) -> types.SymbolKind:
    return _LEVEL_KINDS.get(level, types.SymbolKind.String)


def to_document_symbols(nodes: list[OutlineNode]) -> list[types.DocumentSymbol]:
    """Nested DocumentSymbols for an outline (depth is bounded by heading levels)."""
    symbols = []
    for node in nodes:
        node_range = to_lsp_range(node.span.start, node.span.end)
        symbols.append(
            types.DocumentSymbol(
                name=node.name,
                detail=f"Heading level {node.level}",
                kind=symbol_kind(node.level),
                range=node_range,
                selection_range=node_range,
                children=to_document_symbols(node.children),
            )
        )
    return symbols


def to_symbol_information(symbol: WorkspaceSymbol) -> types.SymbolInformation:
    return types.SymbolInformation(
        name=symbol.name,
        kind=symbol_kind(symbol.level),
        location=types.Location(uri=symbol.uri, range=to_lsp_range(symbol.span.start, symbol.span.end)),
        container_name=symbol.container,
    )


def to_completion_item(completion: LinkCompletion, rank: int) -> types.CompletionItem:
    return types.CompletionItem(
        label=completion.label,
        kind=types.CompletionItemKind.File,
        detail=completion.detail,
        # Editors filter on the text from the [[ to the cursor
        filter_text=completion.new_text,
        sort_text=f"{rank:05d}",
        text_edit=types.TextEdit(
            range=to_lsp_range(completion.start, completion.end),
            new_text=completion.new_text,
        ),
        insert_text_format=types.InsertTextFormat.PlainText,
    )


def to_hover(preview: HoverPreview) -> types.Hover:
    value = preview.content
    if preview.truncated:
        value += "\n\n…"
    return types.Hover(contents=types.MarkupContent(kind=types.MarkupKind.Markdown, value=value))


def to_location(definition: DefinitionLocation) -> types.Location:
    return types.Location(uri=definition.uri, range=to_lsp_range(definition.start, definition.end))


def protocol_error(error: WikinoteError) -> Exception:
    """JSON-RPC error for a core failure; invalid URIs are the client's fault."""
    if isinstance(error, InvalidUriError):
        return JsonRpcInvalidParams(message=str(error))
    return JsonRpcInternalError(message=str(error))


def _workspace_root(params: types.InitializeParams) -> Path | None:
    uri = None
    if params.workspace_folders:
        uri = params.workspace_folders[0].uri
    elif params.root_uri:
        uri = params.root_uri

    if uri:
        try:
            return uri_to_local_path(uri)
        except InvalidUriError:
            log.warning("Ignoring non-file workspace root %s", uri)
            return None
    if params.root_path:
        return Path(params.root_path)
    return None


# ─────────────────────────────────────────────────────────────────────────────
# Lifecycle
# ─────────────────────────────────────────────────────────────────────────────


@server.feature(types.INITIALIZE)
def initialize(ls: WikinoteLanguageServer, params: types.InitializeParams) -> None:
    ls.configure(_workspace_root(params))


@server.feature(types.SHUTDOWN)
def shutdown(ls: WikinoteLanguageServer, params: None) -> None:
    ls.core.close()


@server.feature(types.TEXT_DOCUMENT_DID_OPEN)
async def did_open(ls: WikinoteLanguageServer, params: types.DidOpenTextDocumentParams) -> None:
    document = params.text_document
    await ls.core.did_open(document.uri, document.text, document.version)


@server.feature(types.TEXT_DOCUMENT_DID_CHANGE)
async def did_change(ls: WikinoteLanguageServer, params: types.DidChangeTextDocumentParams) -> None:
    uri = params.text_document.uri
    whole = [c for c in params.content_changes if isinstance(c, types.TextDocumentContentChangeWholeDocument)]
    if whole and len(whole) == len(params.content_changes):
        text = whole[-1].text
    else:
        # Client sent ranged edits despite full sync; pygls has applied them
        text = ls.workspace.get_text_document(uri).source
    await ls.core.did_change(uri, text, params.text_document.version)


@server.feature(types.TEXT_DOCUMENT_DID_CLOSE)
async def did_close(ls: WikinoteLanguageServer, params: types.DidCloseTextDocumentParams) -> None:
    await ls.core.did_close(params.text_document.uri)


# ─────────────────────────────────────────────────────────────────────────────
# Requests
# ─────────────────────────────────────────────────────────────────────────────


@server.feature(types.TEXT_DOCUMENT_DOCUMENT_SYMBOL)
async def document_symbol(
    ls: WikinoteLanguageServer, params: types.DocumentSymbolParams
) -> list[types.DocumentSymbol] | None:
    outline = await ls.core.document_outline(params.text_document.uri)
    return to_document_symbols(outline)


@server.feature(types.WORKSPACE_SYMBOL)
async def workspace_symbol(
    ls: WikinoteLanguageServer, params: types.WorkspaceSymbolParams
) -> list[types.SymbolInformation]:
    symbols = await ls.core.workspace_symbols(params.query)
    return [to_symbol_information(s) for s in symbols]


@server.feature(types.TEXT_DOCUMENT_HOVER)
async def hover(ls: WikinoteLanguageServer, params: types.HoverParams) -> types.Hover | None:
    try:
        preview = await ls.core.hover(params.text_document.uri, from_lsp_position(params.position))
    except WikinoteError as e:
        raise protocol_error(e) from e
    return to_hover(preview) if preview else None


@server.feature(types.TEXT_DOCUMENT_DEFINITION)
async def definition(ls: WikinoteLanguageServer, params: types.DefinitionParams) -> types.Location | None:
    try:
        found = await ls.core.definition(params.text_document.uri, from_lsp_position(params.position))
    except WikinoteError as e:
        raise protocol_error(e) from e
    return to_location(found) if found else None


@server.feature(types.TEXT_DOCUMENT_COMPLETION, types.CompletionOptions(trigger_characters=["["]))
async def completion(ls: WikinoteLanguageServer, params: types.CompletionParams) -> types.CompletionList | None:
    try:
        completions = await ls.core.link_completions(params.text_document.uri, from_lsp_position(params.position))
    except WikinoteError as e:
        raise protocol_error(e) from e
    if not completions:
        return None
    # Ranking depends on the text typed after [[, so ask again on every keystroke
    return types.CompletionList(
        is_incomplete=True,
        items=[to_completion_item(c, rank) for rank, c in enumerate(completions)],
    )
