"""Structured logging module for streampack.

Provides configurable logging with JSON format support and file rotation,
plus catalog entry context injected into every record.
"""

from streampack.logging.config import configure_logging
from streampack.logging.context import (
    EntryContextFilter,
    clear_entry_context,
    entry_context,
    get_entry_context,
    set_entry_context,
)
from streampack.logging.handlers import JSONFormatter

__all__ = [
    "EntryContextFilter",
    "JSONFormatter",
    "clear_entry_context",
    "configure_logging",
    "entry_context",
    "get_entry_context",
    "set_entry_context",
]
