"""JSON log formatting.

One JSON object per line, suitable for log shippers. Values passed with
``extra=`` and the catalog entry being processed end up under
``context``.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

# Attributes every LogRecord has, plus ones set by logging itself
_RECORD_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}

# Set by EntryContextFilter; emitted from the filter's values only
_ENTRY_FIELDS: tuple[str, ...] = ("entry_kind", "entry_id", "input_path")
_FILTER_ATTRS: frozenset[str] = frozenset(_ENTRY_FIELDS) | {"entry_tag"}


class JSONFormatter(logging.Formatter):
    """Format records as ``{"timestamp", "level", "logger", "message", ...}``."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        entry: dict[str, Any] = {
            "timestamp": created.isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
        }
        if record.name and record.name != "root":
            entry["logger"] = record.name

        context = self._context(record)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)

    @staticmethod
    def _context(record: logging.LogRecord) -> dict[str, Any]:
        context = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
            and key not in _FILTER_ATTRS
            and not key.startswith("_")
        }
        for name in _ENTRY_FIELDS:
            value = getattr(record, name, None)
            if value:
                context[name] = value
        return context
