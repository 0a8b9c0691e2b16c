"""Logging configuration for wikinote.

This module provides consistent logging across the codebase.

Usage in other modules:
    import logging
    log = logging.getLogger(__name__)

    log.debug("Detailed info for debugging")
    log.info("General operational info")
    log.warning("Unexpected but handled situation")
    log.error("Error that prevented operation")

The log level can be configured via the WIKINOTE_LOG_LEVEL environment variable:
    - DEBUG: Per-request tracing (offsets, resolved links, index lookups)
    - INFO: General operational messages (default)
    - WARNING: Unexpected situations that were handled
    - ERROR: Errors that prevented an operation

Output always goes to stderr: when serving over stdio, stdout carries the
language server protocol stream.
"""

import logging
import os
import sys

PACKAGE_LOGGER = "wikinote"


def configure_logging(level_name: str | None = None) -> None:
    """Configure logging for the wikinote package.

    Call this once at application startup (in cli.py).
    Subsequent calls are no-ops.

    Args:
        level_name: Explicit level name. Falls back to WIKINOTE_LOG_LEVEL.
    """
    root_logger = logging.getLogger(PACKAGE_LOGGER)

    # Skip if already configured (has handlers)
    if root_logger.handlers:
        return

    level_name = (level_name or os.environ.get("WIKINOTE_LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    # Use a clean format: [level] logger: message
    formatter = logging.Formatter(
        fmt="[%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)

    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    # Prevent propagation to root logger (avoids duplicate messages)
    root_logger.propagate = False
