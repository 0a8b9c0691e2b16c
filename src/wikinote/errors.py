"""Exception hierarchy for wikinote.

Malformed document content never raises: parsing paths return empty results.
These exceptions cover collaborator failures and invalid document identities,
which callers need to tell apart from "nothing found".
"""

from pathlib import Path


class WikinoteError(Exception):
    """Base class for all wikinote errors."""


class ConfigurationError(WikinoteError):
    """Raised when required configuration is missing."""


class InvalidUriError(WikinoteError):
    """Raised when a document URI does not map to a local file path."""

    def __init__(self, uri: str) -> None:
        self.uri = uri
        super().__init__(f"Invalid file URI: {uri}")


class NoteIndexError(WikinoteError):
    """Raised when the note index cannot be read."""


class NoteReadError(WikinoteError):
    """Raised when a note's text cannot be read from disk."""

    def __init__(self, path: Path, message: str) -> None:
        self.path = path
        self.message = message
        super().__init__(f"Failed to read {path}: {message}")
