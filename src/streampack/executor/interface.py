"""Per-unit result types and the progress callback protocol.

A unit of work is one rendition encode, one audio extraction or one
subtitle extraction. Executors never raise for expected outcomes; they
return a UnitResult the orchestrator can aggregate.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class UnitKind(Enum):
    """Kind of unit of work."""

    RENDITION = "rendition"
    AUDIO = "audio"
    SUBTITLE = "subtitle"


class UnitOutcome(Enum):
    """Terminal outcome of a unit of work."""

    SUCCESS = "success"
    SKIPPED = "skipped"
    """Nothing to do, e.g. the output already exists."""

    FAILED = "failed"


@dataclass(frozen=True)
class UnitResult:
    """Result of a single unit of work."""

    kind: UnitKind
    name: str
    """Rendition name ("720p") or language code ("eng")."""

    outcome: UnitOutcome
    message: str = ""
    """Human-readable message describing the result."""

    stderr_tail: str = ""
    """Last lines of encoder stderr, kept for failed units."""

    encoder: str | None = None
    """Encoder that produced the output (video units only)."""

    @property
    def succeeded(self) -> bool:
        """True if the unit's output exists (newly made or already present)."""
        return self.outcome in (UnitOutcome.SUCCESS, UnitOutcome.SKIPPED)


class UnitProgressCallback(Protocol):
    """Receives progress for a running unit."""

    def __call__(self, kind: UnitKind, name: str, percent: float) -> None: ...
