"""Root logger setup from LoggingConfig."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from streampack.logging.context import EntryContextFilter
from streampack.logging.handlers import JSONFormatter

if TYPE_CHECKING:
    from streampack.config.models import LoggingConfig

# entry_tag is "[movie:42] " while an entry is processed, else empty
TEXT_FORMAT = "%(asctime)s - %(entry_tag)s%(name)s - %(levelname)s - %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"


def _make_formatter(fmt: str) -> logging.Formatter:
    if fmt.casefold() == "json":
        return JSONFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATE_FORMAT)


def _open_file_handler(config: LoggingConfig) -> logging.Handler | None:
    """Open the rotating log file, or return None if it cannot be opened."""
    assert config.file is not None
    path = Path(config.file).expanduser()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        # Logging is not set up yet, so this is the only way to say it
        sys.stderr.write(f"Warning: Could not open log file {path}: {e}\n")
        return None


def configure_logging(config: LoggingConfig) -> None:
    """Replace the root logger's handlers according to ``config``.

    Logs go to the configured file, to stderr, or both. stderr is used
    whenever there is no usable file. Every handler gets the catalog
    entry filter so records carry the entry being processed.

    Args:
        config: Logging configuration.
    """
    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handlers: list[logging.Handler] = []
    if config.file:
        file_handler = _open_file_handler(config)
        if file_handler is not None:
            handlers.append(file_handler)
    if config.include_stderr or not handlers:
        handlers.append(logging.StreamHandler(sys.stderr))

    formatter = _make_formatter(config.format)
    context_filter = EntryContextFilter()
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)
        root.addHandler(handler)
