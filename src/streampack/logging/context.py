"""Catalog entry context for structured logging.

Uses contextvars so every log record emitted while an entry is being
processed carries the entry's kind, id and input path without threading
them through every call.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_entry_kind: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "entry_kind", default=None
)
_entry_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "entry_id", default=None
)
_input_path: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "input_path", default=None
)


def set_entry_context(
    entry_kind: str,
    entry_id: str | None = None,
    input_path: Path | str | None = None,
) -> None:
    """Set the current entry context.

    Args:
        entry_kind: Kind of catalog entry ("movie", "episode").
        entry_id: Catalog entry identifier.
        input_path: Source file being processed, or None.
    """
    _entry_kind.set(entry_kind)
    _entry_id.set(entry_id)
    _input_path.set(str(input_path) if input_path is not None else None)


def clear_entry_context() -> None:
    """Clear the current entry context."""
    _entry_kind.set(None)
    _entry_id.set(None)
    _input_path.set(None)


@contextmanager
def entry_context(
    entry_kind: str,
    entry_id: str | None = None,
    input_path: Path | str | None = None,
) -> Generator[None, None, None]:
    """Context manager for entry processing context.

    Restores the previous context on exit.

    Example:
        with entry_context("movie", "42", "/media/movie.mkv"):
            logger.info("Packaging")  # Record carries [movie:42]
    """
    old_kind = _entry_kind.get()
    old_id = _entry_id.get()
    old_path = _input_path.get()
    try:
        set_entry_context(entry_kind, entry_id, input_path)
        yield
    finally:
        _entry_kind.set(old_kind)
        _entry_id.set(old_id)
        _input_path.set(old_path)


def get_entry_context() -> tuple[str | None, str | None, str | None]:
    """Get current entry context.

    Returns:
        Tuple of (entry_kind, entry_id, input_path), any may be None.
    """
    return _entry_kind.get(), _entry_id.get(), _input_path.get()


class EntryContextFilter(logging.Filter):
    """Logging filter that injects entry context into log records.

    Adds entry_kind, entry_id and input_path attributes, plus a compact
    entry_tag such as ``[movie:42] `` for the text format.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Inject entry context into log record.

        Args:
            record: The log record to process.

        Returns:
            Always True (does not filter, only enriches).
        """
        entry_kind, entry_id, input_path = get_entry_context()

        record.entry_kind = entry_kind
        record.entry_id = entry_id
        record.input_path = input_path

        if entry_kind:
            if entry_id:
                record.entry_tag = f"[{entry_kind}:{entry_id}] "
            else:
                record.entry_tag = f"[{entry_kind}] "
        else:
            record.entry_tag = ""

        return True
