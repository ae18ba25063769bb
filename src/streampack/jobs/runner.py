"""Batch runner that drives catalog entries through their status lifecycle.

Entries are processed one at a time, movies before episodes, and each
entry's whole pipeline finishes before the next one starts. Hardware
encoders are usually a single shared device, so running entries in
parallel would only make them contend.

Status transitions per entry:

    PENDING/QUEUED/IN_PROGRESS -> IN_PROGRESS -> COMPLETED | FAILED

An entry whose source cannot be read goes straight to FAILED. A failed
entry never stops the batch and is never retried automatically; it is
picked up again only after its status is reset.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from itertools import groupby

from streampack.db.types import CatalogEntry, EntryKind, TranscodeStatus
from streampack.exceptions import StreamPackError
from streampack.jobs.progress import NullProgressReporter, ProgressReporter
from streampack.jobs.store import JobStore
from streampack.logging.context import entry_context
from streampack.notify.cache import CacheNotifier
from streampack.paths.resolver import PathResolutionError, PathResolver
from streampack.workflow.processor import PackagingProcessor

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    """Counts of entry outcomes in a batch run."""

    completed: int = 0
    failed: int = 0
    already_packaged: int = 0
    """Completed entries whose package already existed on disk."""

    series_completed: int = 0
    series_failed: int = 0

    @property
    def processed(self) -> int:
        """Entries that reached a terminal status."""
        return self.completed + self.failed

    @property
    def has_failures(self) -> bool:
        """True if any entry or series failed."""
        return self.failed > 0 or self.series_failed > 0

    def describe(self) -> str:
        """One-line human-readable summary."""
        parts = [f"{self.completed} completed", f"{self.failed} failed"]
        if self.already_packaged:
            parts.append(f"{self.already_packaged} already packaged")
        if self.series_completed or self.series_failed:
            parts.append(
                f"series: {self.series_completed} completed, "
                f"{self.series_failed} failed"
            )
        return ", ".join(parts)


class JobRunner:
    """Processes runnable catalog entries sequentially."""

    def __init__(
        self,
        store: JobStore,
        resolver: PathResolver,
        processor: PackagingProcessor,
        reporter: ProgressReporter | None = None,
        notifier: CacheNotifier | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            store: Status persistence.
            resolver: Catalog path resolution.
            processor: Single-file packaging pipeline.
            reporter: Progress reporter.
            notifier: Told to invalidate its cache after a run that
                changed any entry.
        """
        self.store = store
        self.resolver = resolver
        self.processor = processor
        self.reporter = reporter or NullProgressReporter()
        self.notifier = notifier

    def run(self, kind: EntryKind | None = None) -> RunSummary:
        """Process every runnable entry of a kind.

        Args:
            kind: Movies or episodes. None processes movies, then episodes.

        Returns:
            RunSummary of the run.
        """
        movies: list[CatalogEntry] = []
        episodes: list[CatalogEntry] = []
        if kind in (None, EntryKind.MOVIE):
            movies = self.store.list_runnable(EntryKind.MOVIE)
        if kind in (None, EntryKind.EPISODE):
            episodes = self.store.list_runnable(EntryKind.EPISODE)

        summary = RunSummary()
        self.reporter.on_start(len(movies) + len(episodes))
        index = 0

        for movie in movies:
            self._run_entry(movie, index, summary)
            index += 1

        for series_id, group in groupby(episodes, key=lambda e: e.series_id):
            series_episodes = list(group)
            self._run_series(series_id, series_episodes, index, summary)
            index += len(series_episodes)

        self.reporter.on_complete(not summary.has_failures)
        logger.info("Run finished: %s", summary.describe())

        if self.notifier is not None and summary.processed:
            self.notifier.invalidate()
        return summary

    def _run_series(
        self,
        series_id: int | None,
        episodes: list[CatalogEntry],
        start_index: int,
        summary: RunSummary,
    ) -> None:
        title = episodes[0].series_title or f"series {series_id}"
        if series_id is None:
            # Orphaned episodes still run; there is no series to update
            for offset, episode in enumerate(episodes):
                self._run_entry(episode, start_index + offset, summary)
            return

        logger.info("Processing series %s (%d episodes)", title, len(episodes))
        self.store.set_series_status(series_id, TranscodeStatus.IN_PROGRESS)

        for offset, episode in enumerate(episodes):
            self._run_entry(episode, start_index + offset, summary)

        if self.store.all_children_completed(series_id):
            self.store.set_series_status(series_id, TranscodeStatus.COMPLETED)
            summary.series_completed += 1
            logger.info("Series %s completed", title)
        else:
            self.store.set_series_status(series_id, TranscodeStatus.FAILED)
            summary.series_failed += 1
            logger.warning("Series %s has episodes that are not completed", title)

    def _run_entry(self, entry: CatalogEntry, index: int, summary: RunSummary) -> None:
        self.reporter.on_item_start(index, self._describe(entry))
        with entry_context(entry.kind.value, str(entry.id), entry.file_path):
            success, message = self._process_entry(entry, summary)
        if success:
            summary.completed += 1
        else:
            summary.failed += 1
        self.reporter.on_item_complete(index, success, message)

    def _process_entry(
        self, entry: CatalogEntry, summary: RunSummary
    ) -> tuple[bool, str]:
        """Run one entry and persist its terminal status.

        Returns:
            Tuple of (success, message).
        """
        source = self.resolver.resolve(entry.file_path)
        if source is None:
            logger.error("Source file not found or unreadable: %s", entry.file_path)
            self.store.set_status(entry.kind, entry.id, TranscodeStatus.FAILED)
            return False, "source not found"

        try:
            location = self.resolver.output_location(entry, source)
        except PathResolutionError as e:
            logger.error("%s", e)
            self.store.set_status(entry.kind, entry.id, TranscodeStatus.FAILED)
            return False, str(e)

        self.store.set_status(entry.kind, entry.id, TranscodeStatus.IN_PROGRESS)

        try:
            result = self.processor.process(source, location.output_dir)
        except (StreamPackError, OSError, RuntimeError) as e:
            logger.exception("Packaging %s failed: %s", source, e)
            self.store.set_status(entry.kind, entry.id, TranscodeStatus.FAILED)
            return False, str(e)

        if not result.success:
            logger.error(
                "Packaging %s failed: %s%s",
                source,
                result.error,
                f"\n{result.stderr_tail}" if result.stderr_tail else "",
            )
            self.store.set_status(entry.kind, entry.id, TranscodeStatus.FAILED)
            return False, result.error or "failed"

        self.store.set_playback_path(entry.kind, entry.id, location.play_path)
        self.store.set_status(entry.kind, entry.id, TranscodeStatus.COMPLETED)
        if result.already_packaged:
            summary.already_packaged += 1
            return True, "already packaged"
        return True, location.play_path

    @staticmethod
    def _describe(entry: CatalogEntry) -> str:
        if entry.is_episode:
            return (
                f"{entry.series_title} S{entry.season_number or 0:02d}"
                f"E{entry.episode_number or 0:02d} {entry.title}"
            )
        return entry.title
