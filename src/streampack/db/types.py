"""Database record types for the media catalog."""

from dataclasses import dataclass
from enum import Enum


class TranscodeStatus(Enum):
    """Packaging status of a catalog entry or series.

    State transitions for an entry:
        pending/queued/in_progress → in_progress  (runner picks it up)
        in_progress → completed                   (package exists or was built)
        in_progress → failed                      (unresolvable input or fatal error)

    Completed and failed are terminal until reset externally.
    """

    PENDING = "pending"
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


RUNNABLE_STATUSES: frozenset[TranscodeStatus] = frozenset(
    {
        TranscodeStatus.PENDING,
        TranscodeStatus.QUEUED,
        TranscodeStatus.IN_PROGRESS,
    }
)
"""Statuses picked up by a batch run. in_progress is included so entries
interrupted by a crash are retried on the next run."""


class EntryKind(Enum):
    """Kind of catalog entry."""

    MOVIE = "movie"
    EPISODE = "episode"


@dataclass
class CatalogEntry:
    """A movie or episode awaiting (or done with) packaging."""

    id: int
    kind: EntryKind
    title: str
    file_path: str  # Catalog (logical) path of the source file
    status: TranscodeStatus
    play_path: str | None = None  # Catalog path of the master playlist

    # Episode-only fields
    series_id: int | None = None
    series_title: str | None = None
    season_number: int | None = None
    episode_number: int | None = None

    @property
    def is_episode(self) -> bool:
        """True if this entry belongs to a series."""
        return self.kind is EntryKind.EPISODE


@dataclass
class SeriesRecord:
    """Database record for series table.

    A series' status is derived from its episodes after each run.
    """

    id: int
    title: str
    status: TranscodeStatus
