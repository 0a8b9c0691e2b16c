#!/usr/bin/env python3
"""
wikinote: language server and inspection tools for markdown notes

Usage:
    wikinote serve                     # Run the language server over stdio
    wikinote outline note.md           # Heading outline of a note
    wikinote symbols "query"           # Fuzzy heading search across the vault
    wikinote link-at note.md 3 12      # Wiki-link under a cursor position
    wikinote notes                     # Notes known to the vault index
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import click

from . import __version__ as WIKINOTE_VERSION


def run_async(coro):
    """Run async function synchronously."""
    return asyncio.run(coro)


def output(data, as_json: bool = False):
    """Output data as JSON or formatted text."""
    if as_json:
        click.echo(json.dumps(data, indent=2, default=str))
    else:
        click.echo(data)


def _vault_index(vault: Path | None):
    from .config import ConfigurationError, get_vault_root
    from .note_index import VaultNoteIndex

    try:
        root = vault or get_vault_root()
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e
    return VaultNoteIndex(root)


def _read_file(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise click.ClickException(f"Failed to read {path}: {e}") from e


def format_outline(nodes: list[Any], depth: int = 0) -> list[str]:
    """Indented text lines for an outline forest."""
    lines = []
    for node in nodes:
        name = node.name or "(untitled)"
        lines.append(f"{'  ' * depth}{'#' * node.level} {name}  [line {node.span.start.line + 1}]")
        lines.extend(format_outline(node.children, depth + 1))
    return lines


# ─────────────────────────────────────────────────────────────────────────────
# Main CLI Group
# ─────────────────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version=WIKINOTE_VERSION, prog_name="wikinote")
@click.option(
    "--log-level",
    envvar="WIKINOTE_LOG_LEVEL",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="INFO",
    help="Log level (logs go to stderr)",
)
def cli(log_level: str):
    """wikinote: language server for markdown notes with [[wiki-links]].

    \b
    Quick start:
      wikinote serve                 # Language server over stdio
      wikinote outline note.md       # Inspect a note's headings
      wikinote symbols "setup"       # Search headings across the vault

    \b
    The vault is found from WIKINOTE_VAULT_ROOT, a .wikinote file
    (vault_path: <dir>) in the current or a parent directory, or --vault.
    """
    from ._logging import configure_logging

    configure_logging(log_level)


# ─────────────────────────────────────────────────────────────────────────────
# Serve Command
# ─────────────────────────────────────────────────────────────────────────────


@cli.command()
@click.option("--tcp", is_flag=True, help="Listen on TCP instead of stdio")
@click.option("--host", default="127.0.0.1", show_default=True, help="TCP host")
@click.option("--port", default=2087, show_default=True, help="TCP port")
def serve(tcp: bool, host: str, port: int):
    """Run the language server.

    \b
    Examples:
      wikinote serve
      wikinote serve --tcp --port 2087
    """
    from .server import server

    if tcp:
        server.start_tcp(host, port)
    else:
        server.start_io()


# ─────────────────────────────────────────────────────────────────────────────
# Inspection Commands
# ─────────────────────────────────────────────────────────────────────────────


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def outline(path: Path, as_json: bool):
    """Show the heading outline of a note.

    \b
    Examples:
      wikinote outline notes/setup.md
      wikinote outline notes/setup.md --json
    """
    from .parser import outline_from_text

    nodes = outline_from_text(_read_file(path))

    if as_json:
        output([node.model_dump() for node in nodes], as_json=True)
    elif nodes:
        click.echo("\n".join(format_outline(nodes)))
    else:
        click.echo("No headings found.")


@cli.command()
@click.argument("query", default="")
@click.option("--vault", type=click.Path(exists=True, file_okay=False, path_type=Path), help="Vault directory")
@click.option("--limit", "-n", default=20, show_default=True, help="Max results")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def symbols(query: str, vault: Path | None, limit: int, as_json: bool):
    """Fuzzy-search headings across every note in the vault.

    \b
    Examples:
      wikinote symbols "instl"
      wikinote symbols setup --vault ~/notes --limit 5
    """
    from .symbols import search_workspace_symbols

    index = _vault_index(vault)
    results = run_async(search_workspace_symbols(index, query, limit=limit))

    if as_json:
        output([s.model_dump() for s in results], as_json=True)
        return

    if not results:
        click.echo("No matching headings.")
        return
    for symbol in results:
        click.echo(f"{symbol.score:>4}  {symbol.name}  ({symbol.container}:{symbol.span.start.line + 1})")


@cli.command("link-at")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("line", type=click.IntRange(min=1))
@click.argument("column", type=click.IntRange(min=1))
@click.option("--vault", type=click.Path(exists=True, file_okay=False, path_type=Path), help="Resolve against this vault")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def link_at(path: Path, line: int, column: int, vault: Path | None, as_json: bool):
    """Show the wiki-link at LINE:COLUMN (1-based) of a note.

    \b
    Examples:
      wikinote link-at notes/index.md 4 12
      wikinote link-at notes/index.md 4 12 --vault notes --json
    """
    from .parser import find_link_at
    from .positions import position_to_offset

    text = _read_file(path)
    link = find_link_at(text, position_to_offset(text, line - 1, column - 1))
    if link is None:
        raise click.ClickException(f"No wiki-link at {path}:{line}:{column}")

    record = None
    if vault is not None:
        record = _vault_index(vault).resolve_virtual_path(link.target)

    if as_json:
        payload = link.model_dump()
        payload["resolved"] = record.model_dump() if record else None
        output(payload, as_json=True)
        return

    click.echo(f"target: {link.target}")
    if link.alias is not None:
        click.echo(f"alias:  {link.alias}")
    if vault is not None:
        click.echo(f"note:   {record.path if record else '(unresolved)'}")


@cli.command()
@click.option("--vault", type=click.Path(exists=True, file_okay=False, path_type=Path), help="Vault directory")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def notes(vault: Path | None, as_json: bool):
    """List the notes in the vault index with their display titles.

    \b
    Examples:
      wikinote notes
      wikinote notes --vault ~/notes --json
    """
    from .errors import NoteIndexError

    index = _vault_index(vault)
    try:
        records = index.list_all_notes()
    except NoteIndexError as e:
        raise click.ClickException(str(e)) from e

    if as_json:
        output([{**r.model_dump(), "display_title": r.display_title} for r in records], as_json=True)
        return

    for record in records:
        click.echo(f"{record.virtual_path}  {record.display_title}")
    click.echo(f"\n{len(records)} notes")


def main():
    """Entry point for `python -m wikinote`."""
    cli()


if __name__ == "__main__":
    main()
