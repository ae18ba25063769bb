"""Progress reporting for batch runs.

Batch runs are unattended, so progress goes to the log rather than to a
terminal progress bar. Encoder progress is throttled to one record per
step so long encodes do not flood the log.
"""

from __future__ import annotations

import logging
from typing import Protocol

from streampack.executor.interface import UnitKind

logger = logging.getLogger(__name__)


class ProgressReporter(Protocol):
    """Protocol for progress reporting during a batch run."""

    def on_start(self, total: int) -> None:
        """Initialize progress tracking with total entry count."""
        ...

    def on_item_start(self, index: int, message: str = "") -> None:
        """Signal that an entry is starting processing.

        Args:
            index: Zero-based index of the entry starting.
            message: Optional description of the entry.
        """
        ...

    def on_item_complete(self, index: int, success: bool, message: str = "") -> None:
        """Signal that an entry has completed processing."""
        ...

    def on_unit_progress(self, kind: UnitKind, name: str, percent: float) -> None:
        """Update progress of the running unit of work (0-100)."""
        ...

    def on_complete(self, success: bool = True) -> None:
        """Signal that all processing is complete."""
        ...


class NullProgressReporter:
    """Progress reporter that discards everything."""

    def on_start(self, total: int) -> None:
        pass

    def on_item_start(self, index: int, message: str = "") -> None:
        pass

    def on_item_complete(self, index: int, success: bool, message: str = "") -> None:
        pass

    def on_unit_progress(self, kind: UnitKind, name: str, percent: float) -> None:
        pass

    def on_complete(self, success: bool = True) -> None:
        pass


class LoggingProgressReporter:
    """Progress reporter that writes log records.

    Args:
        step: Minimum percentage change between unit progress records.
        log: Logger to write to.
    """

    def __init__(self, step: float = 10.0, log: logging.Logger | None = None) -> None:
        self._step = step
        self._log = log or logger
        self._total = 0
        self._current: tuple[UnitKind, str] | None = None
        self._last_percent = 0.0

    def on_start(self, total: int) -> None:
        self._total = total
        self._log.info("Starting batch of %d entries", total)

    def on_item_start(self, index: int, message: str = "") -> None:
        self._log.info("[%d/%d] %s", index + 1, self._total, message)

    def on_item_complete(self, index: int, success: bool, message: str = "") -> None:
        status = "done" if success else "FAILED"
        if message:
            self._log.info("[%d/%d] %s: %s", index + 1, self._total, status, message)
        else:
            self._log.info("[%d/%d] %s", index + 1, self._total, status)

    def on_unit_progress(self, kind: UnitKind, name: str, percent: float) -> None:
        key = (kind, name)
        if key != self._current:
            self._current = key
            self._last_percent = 0.0
        if percent - self._last_percent >= self._step or (
            percent >= 100.0 > self._last_percent
        ):
            self._last_percent = percent
            self._log.info("%s %s: %.0f%%", kind.value, name, percent)

    def on_complete(self, success: bool = True) -> None:
        self._log.info("Batch %s", "complete" if success else "finished with failures")
