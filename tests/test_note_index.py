"""Tests for the vault note index and URI helpers."""

import os
from pathlib import Path

import pytest

from conftest import create_note, uri_of
from wikinote.config import find_vault_root
from wikinote.errors import InvalidUriError, NoteIndexError
from wikinote.models import NoteRecord
from wikinote.note_index import (
    VaultNoteIndex,
    local_path_to_uri,
    normalize_virtual_path,
    uri_to_local_path,
)


class TestListAllNotes:
    def test_lists_notes_in_path_order(self, index):
        paths = [r.virtual_path for r in index.list_all_notes()]
        assert paths == ["guides/setup.md", "guides/usage.md", "index.md"]

    def test_hidden_directories_are_skipped(self, index):
        assert all(".obsidian" not in r.virtual_path for r in index.list_all_notes())

    def test_metadata_is_read_from_frontmatter(self, index):
        setup = {r.virtual_path: r for r in index.list_all_notes()}["guides/setup.md"]

        assert setup.title == "Setup Guide"
        assert setup.aliases == ["install"]

    def test_non_markdown_files_are_ignored(self, vault, index):
        (vault / "image.png").write_bytes(b"\x89PNG")
        assert "image.png" not in [r.virtual_path for r in index.list_all_notes()]

    def test_new_note_is_picked_up(self, vault, index):
        index.list_all_notes()
        create_note(vault, "later.md", "# Later")

        assert "later.md" in [r.virtual_path for r in index.list_all_notes()]

    def test_deleted_note_is_dropped(self, vault, index):
        index.list_all_notes()
        (vault / "guides" / "usage.md").unlink()

        assert "guides/usage.md" not in [r.virtual_path for r in index.list_all_notes()]

    def test_broken_frontmatter_yields_empty_metadata(self, vault, index):
        create_note(vault, "broken.md", "---\ntitle: [unclosed\n---\n# Body\n")
        broken = {r.virtual_path: r for r in index.list_all_notes()}["broken.md"]

        assert broken.metadata == {}

    def test_missing_root_raises(self, tmp_path):
        with pytest.raises(NoteIndexError):
            VaultNoteIndex(tmp_path / "nope").list_all_notes()


class TestResolveVirtualPath:
    @pytest.mark.parametrize(
        "target,expected",
        [
            ("guides/setup.md", "guides/setup.md"),
            ("guides/setup", "guides/setup.md"),
            ("/guides/setup.md/", "guides/setup.md"),
            ("Setup Guide", "guides/setup.md"),
            ("setup guide", "guides/setup.md"),
            ("install", "guides/setup.md"),
            ("usage", "guides/usage.md"),
            ("Usage.md", "guides/usage.md"),
            ("Home", "index.md"),
        ],
    )
    def test_resolves(self, index, target, expected):
        record = index.resolve_virtual_path(target)

        assert record is not None
        assert record.virtual_path == expected

    @pytest.mark.parametrize("target", ["missing", "", "   ", "workspace"])
    def test_unknown_targets(self, index, target):
        assert index.resolve_virtual_path(target) is None

    def test_first_note_wins_duplicate_titles(self, vault, index):
        create_note(vault, "a.md", "# A", title="Shared")
        create_note(vault, "b.md", "# B", title="Shared")

        assert index.resolve_virtual_path("Shared").virtual_path == "a.md"


class TestNoteRecord:
    def test_display_title_prefers_metadata(self):
        record = NoteRecord(virtual_path="a/b.md", path="/v/a/b.md", metadata={"title": "  Bee  "})
        assert record.display_title == "Bee"

    def test_display_title_falls_back_to_file_name(self):
        record = NoteRecord(virtual_path="a/b.md", path="/v/a/b.md")
        assert record.display_title == "b.md"

    def test_non_list_aliases_are_ignored(self):
        record = NoteRecord(virtual_path="a.md", path="/v/a.md", metadata={"aliases": "one"})
        assert record.aliases == []


class TestUris:
    def test_roundtrip(self, vault):
        path = vault / "guides" / "setup.md"
        uri = local_path_to_uri(path)

        assert uri.startswith("file://")
        assert uri_to_local_path(uri) == path

    def test_conftest_helper_matches(self, vault):
        path = vault / "index.md"
        assert uri_of(path) == local_path_to_uri(path)

    @pytest.mark.parametrize("uri", ["untitled:Untitled-1", "https://example.com/note.md"])
    def test_non_file_uri_raises(self, uri):
        with pytest.raises(InvalidUriError):
            uri_to_local_path(uri)

    def test_index_delegates(self, index, vault):
        path = vault / "index.md"
        assert index.uri_to_local_path(index.local_path_to_uri(path)) == Path(path)


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("  a/b.md  ", "a/b.md"),
        ("a\\b.md", "a/b.md"),
        ("/a/b/", "a/b"),
    ],
)
def test_normalize_virtual_path(raw, expected):
    assert normalize_virtual_path(raw) == expected


class TestRelativeVaultRoot:
    def test_relative_root_is_made_absolute(self, vault, monkeypatch):
        monkeypatch.chdir(vault.parent)
        index = VaultNoteIndex(Path("vault"))

        assert index.vault_root == vault
        uris = [index.local_path_to_uri(r.path) for r in index.list_all_notes()]
        assert uris == [
            uri_of(vault / "guides" / "setup.md"),
            uri_of(vault / "guides" / "usage.md"),
            uri_of(vault / "index.md"),
        ]

    def test_relative_environment_root(self, vault, monkeypatch):
        monkeypatch.chdir(vault.parent)
        monkeypatch.setenv("WIKINOTE_VAULT_ROOT", "vault")

        assert find_vault_root() == vault


class TestFreshness:
    def test_hidden_directories_are_not_walked(self, vault, index):
        objects = vault / ".git" / "objects"
        objects.mkdir(parents=True)
        for i in range(5):
            (objects / f"obj{i}").write_text("blob")
        signature = index._tree_signature()

        (objects / "late").write_text("blob")
        create_note(vault, ".obsidian/more.md", "# Hidden")

        assert index._tree_signature() == signature

    def test_hidden_directory_stats_are_skipped(self, vault, index, monkeypatch):
        (vault / ".git" / "objects").mkdir(parents=True)
        (vault / ".git" / "objects" / "blob").write_text("x")

        stat_calls: list[str] = []
        real_stat = os.stat

        def recording_stat(path, *args, **kwargs):
            stat_calls.append(str(path))
            return real_stat(path, *args, **kwargs)

        monkeypatch.setattr("wikinote.note_index.os.stat", recording_stat)
        index.list_all_notes()

        assert stat_calls
        assert not [p for p in stat_calls if ".git" in Path(p).parts or ".obsidian" in Path(p).parts]

    def test_lookup_maps_come_from_one_build(self, vault, index):
        index.list_all_notes()
        create_note(vault, "fresh.md", "# Fresh", title="Fresh Note")

        records, by_virtual_path, by_title = index._ensure_fresh()

        assert "fresh.md" in [r.virtual_path for r in records]
        assert by_virtual_path["fresh.md"] is by_title["fresh note"]
