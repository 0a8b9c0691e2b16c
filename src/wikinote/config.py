"""Configuration management for wikinote.

This module contains all configurable constants for the language server.
Magic numbers are documented here rather than scattered throughout the codebase.
"""

import logging
import os
from pathlib import Path

import yaml

from .errors import ConfigurationError

log = logging.getLogger(__name__)

__all__ = [
    "ConfigurationError",
    "VAULT_CONFIG_FILENAME",
    "NOTE_SUFFIX",
    "LINK_OPEN",
    "LINK_CLOSE",
    "LINK_ALIAS_SEPARATOR",
    "HOVER_PREVIEW_MAX_CHARS",
    "WORKSPACE_SYMBOL_LIMIT",
    "MAX_CONFIG_SEARCH_DEPTH",
    "IGNORED_DIR_PREFIXES",
    "get_search_workers",
    "get_vault_root",
    "find_vault_root",
]


# =============================================================================
# Vault Discovery
# =============================================================================

# Per-project config file naming the vault directory (YAML, key: vault_path)
VAULT_CONFIG_FILENAME = ".wikinote"

# Maximum directories walked upward looking for VAULT_CONFIG_FILENAME.
# Prevents runaway walks on unusual filesystems.
MAX_CONFIG_SEARCH_DEPTH = 10

# Directories whose names start with one of these are never scanned
# (.git, .obsidian, .trash, ...)
IGNORED_DIR_PREFIXES = (".",)


# =============================================================================
# Link Syntax
# =============================================================================

# Only files with this suffix are treated as notes
NOTE_SUFFIX = ".md"

LINK_OPEN = "[["
LINK_CLOSE = "]]"
LINK_ALIAS_SEPARATOR = "|"


# =============================================================================
# Result Limits
# =============================================================================

# Hover previews show the start of the target note. Whole notes can be large
# and editors render hover markdown eagerly.
HOVER_PREVIEW_MAX_CHARS = 4000

# Maximum workspace symbols returned for a single query (after ranking)
WORKSPACE_SYMBOL_LIMIT = 500


# =============================================================================
# Concurrency
# =============================================================================


def get_search_workers() -> int:
    """Number of worker threads used to read notes during workspace search.

    Uses WIKINOTE_SEARCH_WORKERS when set to a positive integer, otherwise
    the same default as concurrent.futures.ThreadPoolExecutor.
    """
    raw = os.environ.get("WIKINOTE_SEARCH_WORKERS")
    if raw:
        try:
            value = int(raw)
        except ValueError:
            log.warning("Ignoring invalid WIKINOTE_SEARCH_WORKERS=%r", raw)
        else:
            if value > 0:
                return value
    return min(32, (os.cpu_count() or 1) + 4)


def _discover_vault_config(start_dir: Path | None = None, max_depth: int = MAX_CONFIG_SEARCH_DEPTH) -> Path | None:
    """Walk up from start_dir looking for a .wikinote file with vault_path.

    Args:
        start_dir: Directory to start from (defaults to cwd)
        max_depth: Maximum directories to traverse up

    Returns:
        Resolved vault directory if found, None otherwise.
    """
    current = Path(start_dir or os.getcwd()).resolve()

    for _ in range(max_depth):
        config_file = current / VAULT_CONFIG_FILENAME
        if config_file.is_file():
            try:
                data = yaml.safe_load(config_file.read_text(encoding="utf-8")) or {}
            except (OSError, yaml.YAMLError) as e:
                log.debug("Skipping unreadable %s: %s", config_file, e)
                data = {}
            if isinstance(data, dict) and "vault_path" in data:
                vault_path = (current / str(data["vault_path"])).resolve()
                if vault_path.is_dir():
                    return vault_path

        parent = current.parent
        if parent == current:  # Reached filesystem root
            break
        current = parent

    return None


def find_vault_root(workspace_root: Path | None = None) -> Path | None:
    """Find the vault root without raising.

    Discovery order:
    1. WIKINOTE_VAULT_ROOT environment variable (explicit override)
    2. Walk up from workspace_root (or cwd) looking for .wikinote with vault_path
    3. The editor workspace root itself, if given and a directory

    Args:
        workspace_root: Root folder reported by the editor, if any.

    Returns:
        Vault directory, or None when nothing is configured.
    """
    root = os.environ.get("WIKINOTE_VAULT_ROOT")
    if root:
        return Path(root).expanduser().resolve()

    discovered = _discover_vault_config(workspace_root)
    if discovered:
        return discovered

    if workspace_root is not None and workspace_root.is_dir():
        return workspace_root

    return None


def get_vault_root(workspace_root: Path | None = None) -> Path:
    """Get the vault root directory.

    Raises:
        ConfigurationError: If no vault can be found.
    """
    vault = find_vault_root(workspace_root)
    if vault is None:
        raise ConfigurationError(
            "No vault found. Options:\n"
            "  1. Set WIKINOTE_VAULT_ROOT to your notes directory\n"
            f"  2. Add a {VAULT_CONFIG_FILENAME} file with 'vault_path: <dir>'\n"
            "  3. Open the notes directory as the editor workspace"
        )
    return vault
