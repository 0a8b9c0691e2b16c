"""Shared test fixtures for wikinote test suite.

Design:
- vault: isolated vault in a temp directory, seeded with a few notes
- core: WikinoteCore over that vault, closed after the test
- Async tests use pytest-asyncio (@pytest.mark.asyncio)
"""

import os
from pathlib import Path
from typing import Generator

import pytest
from click.testing import CliRunner

from wikinote.core import WikinoteCore
from wikinote.note_index import VaultNoteIndex, local_path_to_uri


# ─────────────────────────────────────────────────────────────────────────────
# Helper Functions (for test code, not fixtures)
# ─────────────────────────────────────────────────────────────────────────────


def create_note(vault: Path, path: str, content: str, title: str | None = None, aliases: list[str] | None = None) -> Path:
    """Helper to create a note, with frontmatter when title or aliases are given.

    Usage in tests:
        from conftest import create_note
        note = create_note(vault, "dir/note.md", "# Heading", title="Note")
    """
    note_path = vault / path
    note_path.parent.mkdir(parents=True, exist_ok=True)

    if title or aliases:
        header = ["---"]
        if title:
            header.append(f"title: {title}")
        if aliases:
            header.append("aliases:")
            header.extend(f"  - {alias}" for alias in aliases)
        header.append("---")
        content = "\n".join(header) + "\n\n" + content

    note_path.write_text(content, encoding="utf-8")
    return note_path


def uri_of(path: Path) -> str:
    return local_path_to_uri(path)


# ─────────────────────────────────────────────────────────────────────────────
# Core Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def runner() -> CliRunner:
    """CLI runner with isolated environment."""
    return CliRunner()


@pytest.fixture
def vault(tmp_path: Path, monkeypatch) -> Path:
    """Vault with sample notes.

    Creates:
    - index.md (links to the others)
    - guides/setup.md (title: Setup Guide, alias: install)
    - guides/usage.md (no frontmatter)
    - .obsidian/workspace.md (ignored)
    """
    root = tmp_path / "vault"
    root.mkdir()

    create_note(
        root,
        "index.md",
        "# Index\n\nStart with [[guides/setup.md | Setup Guide]] then [[usage]].\n",
        title="Home",
    )
    create_note(
        root,
        "guides/setup.md",
        "# Setup\n## Install\n### Dependencies\n## Configure\n",
        title="Setup Guide",
        aliases=["install"],
    )
    create_note(root, "guides/usage.md", "# Usage\n## Running\n## Headings and links\n")
    create_note(root, ".obsidian/workspace.md", "# Hidden\n")

    monkeypatch.setenv("WIKINOTE_VAULT_ROOT", str(root))
    return root


@pytest.fixture
def index(vault: Path) -> VaultNoteIndex:
    return VaultNoteIndex(vault)


@pytest.fixture
def core(index: VaultNoteIndex) -> Generator[WikinoteCore, None, None]:
    wikinote = WikinoteCore(index, max_workers=2)
    yield wikinote
    wikinote.close()


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep developer settings out of the tests."""
    for name in ("WIKINOTE_VAULT_ROOT", "WIKINOTE_SEARCH_WORKERS", "WIKINOTE_LOG_LEVEL"):
        if name in os.environ:
            monkeypatch.delenv(name)
