"""Note index: the read-only view of the vault the core queries.

The core only depends on the NoteIndex protocol. VaultNoteIndex implements
it over a directory of markdown notes, reading titles and aliases from YAML
frontmatter.
"""

from __future__ import annotations

import logging
import os
import threading
from collections.abc import Iterator
from pathlib import Path
from typing import Protocol
from urllib.parse import urlparse

import frontmatter
from pygls.uris import from_fs_path, to_fs_path

from .config import IGNORED_DIR_PREFIXES, NOTE_SUFFIX
from .errors import InvalidUriError, NoteIndexError
from .models import NoteRecord

log = logging.getLogger(__name__)


class NoteIndex(Protocol):
    def list_all_notes(self) -> list[NoteRecord]: ...

    def resolve_virtual_path(self, path: str) -> NoteRecord | None: ...

    def local_path_to_uri(self, path: str | Path) -> str: ...

    def uri_to_local_path(self, uri: str) -> Path: ...


def normalize_virtual_path(path: str) -> str:
    """Normalize a link target or virtual path.

    - Strips whitespace
    - Normalizes path separators (forward slashes)
    - Removes leading/trailing slashes
    """
    return path.strip().replace("\\", "/").strip("/")


def local_path_to_uri(path: str | Path) -> str:
    """Convert a local filesystem path to a file:// URI."""
    uri = from_fs_path(str(path))
    if uri is None:
        raise InvalidUriError(str(path))
    return uri


def uri_to_local_path(uri: str) -> Path:
    """Convert a file:// URI to a local path.

    Raises:
        InvalidUriError: If the URI is not a file URI.
    """
    if urlparse(uri).scheme != "file":
        raise InvalidUriError(uri)
    path = to_fs_path(uri)
    if not path:
        raise InvalidUriError(uri)
    return Path(path)


def _read_metadata(path: Path) -> dict:
    try:
        post = frontmatter.load(str(path))
    except Exception as e:
        log.debug("Indexing %s without metadata: %s", path, e)
        return {}
    return dict(post.metadata or {})


class VaultNoteIndex:
    """Note index over a vault directory.

    Records are cached and rebuilt when the vault changes, detected by the
    number of entries and the newest modification time of files and
    directories (deletions touch the parent directory). Directories named
    with an IGNORED_DIR_PREFIXES prefix (.git, .obsidian) are never walked.
    """

    def __init__(self, vault_root: Path) -> None:
        self.vault_root = Path(vault_root).expanduser().resolve()
        self._lock = threading.Lock()
        self._signature: tuple[int, float] | None = None
        self._records: list[NoteRecord] = []
        self._by_virtual_path: dict[str, NoteRecord] = {}
        self._by_title: dict[str, NoteRecord] = {}

    # ─────────────────────────────────────────────────────────────────────
    # Scanning
    # ─────────────────────────────────────────────────────────────────────

    def _walk(self) -> Iterator[tuple[str, list[str], list[str]]]:
        """os.walk over the vault, never entering ignored directories."""
        for dirpath, dirnames, filenames in os.walk(self.vault_root):
            # Pruning in place stops os.walk from descending
            dirnames[:] = sorted(d for d in dirnames if not d.startswith(IGNORED_DIR_PREFIXES))
            yield dirpath, dirnames, filenames

    def _tree_signature(self) -> tuple[int, float]:
        if not self.vault_root.is_dir():
            raise NoteIndexError(f"Vault root is not a directory: {self.vault_root}")

        count = 0
        latest = self.vault_root.stat().st_mtime
        for dirpath, dirnames, filenames in self._walk():
            for name in [*dirnames, *filenames]:
                try:
                    latest = max(latest, os.stat(os.path.join(dirpath, name)).st_mtime)
                except OSError:
                    continue
                count += 1
        return count, latest

    def _scan(self) -> list[NoteRecord]:
        note_files = [
            Path(dirpath, name)
            for dirpath, _, filenames in self._walk()
            for name in filenames
            if name.endswith(NOTE_SUFFIX)
        ]

        records: list[NoteRecord] = []
        for md_file in sorted(note_files):
            if not md_file.is_file():
                continue
            records.append(
                NoteRecord(
                    virtual_path=md_file.relative_to(self.vault_root).as_posix(),
                    path=str(md_file),
                    metadata=_read_metadata(md_file),
                )
            )
        return records

    def _ensure_fresh(self) -> tuple[list[NoteRecord], dict[str, NoteRecord], dict[str, NoteRecord]]:
        """Rebuild if the vault changed, then return (records, by virtual path, by title).

        The three are read under the lock so they always come from one build.
        """
        try:
            signature = self._tree_signature()
        except OSError as e:
            raise NoteIndexError(f"Failed to list vault {self.vault_root}: {e}") from e

        with self._lock:
            if signature != self._signature:
                self._rebuild(signature)
            return self._records, self._by_virtual_path, self._by_title

    def _rebuild(self, signature: tuple[int, float]) -> None:
        try:
            records = self._scan()
        except OSError as e:
            raise NoteIndexError(f"Failed to list vault {self.vault_root}: {e}") from e

        by_title: dict[str, NoteRecord] = {}
        for record in records:
            for key in [record.title, *record.aliases]:
                if key:
                    # First note wins for duplicate titles
                    by_title.setdefault(key.lower(), record)

        self._records = records
        self._by_virtual_path = {r.virtual_path: r for r in records}
        self._by_title = by_title
        self._signature = signature
        log.debug("Indexed %d notes under %s", len(records), self.vault_root)

    # ─────────────────────────────────────────────────────────────────────
    # NoteIndex protocol
    # ─────────────────────────────────────────────────────────────────────

    def list_all_notes(self) -> list[NoteRecord]:
        """All notes in the vault, ordered by virtual path."""
        records, _, _ = self._ensure_fresh()
        return list(records)

    def resolve_virtual_path(self, path: str) -> NoteRecord | None:
        """Resolve a link target to a note.

        Attempts resolution in order:
        1. Exact virtual path
        2. Virtual path with the note suffix added ([[dir/note]])
        3. Title/alias lookup (case-insensitive)
        4. File name match ([[note]] matching "dir/note.md")
        """
        records, by_virtual_path, by_title = self._ensure_fresh()
        normalized = normalize_virtual_path(path)
        if not normalized:
            return None

        if normalized in by_virtual_path:
            return by_virtual_path[normalized]

        with_suffix = normalized if normalized.endswith(NOTE_SUFFIX) else normalized + NOTE_SUFFIX
        if with_suffix in by_virtual_path:
            return by_virtual_path[with_suffix]

        record = by_title.get(normalized.lower())
        if record is not None:
            return record

        for candidate in (with_suffix, with_suffix.lower()):
            for record in records:
                virtual_path = record.virtual_path if candidate == with_suffix else record.virtual_path.lower()
                if virtual_path.endswith(f"/{candidate}"):
                    return record

        return None

    def local_path_to_uri(self, path: str | Path) -> str:
        return local_path_to_uri(path)

    def uri_to_local_path(self, uri: str) -> Path:
        return uri_to_local_path(uri)
