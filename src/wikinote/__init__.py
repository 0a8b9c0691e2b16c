"""wikinote: language server for markdown notes with [[wiki-links]]."""

__version__ = "0.3.0"
