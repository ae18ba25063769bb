"""Tests for jobs/runner.py - batch processing and status transitions."""

import sqlite3
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from streampack.db.queries import (
    get_entry,
    get_or_create_series,
    get_series,
    insert_episode,
    insert_movie,
)
from streampack.db.types import CatalogEntry, EntryKind, TranscodeStatus
from streampack.jobs.runner import JobRunner, RunSummary
from streampack.jobs.store import SQLiteJobStore
from streampack.paths.resolver import PathResolver
from streampack.workflow.processor import PipelineResult


@pytest.fixture
def media_root(tmp_path: Path) -> Path:
    root = tmp_path / "library"
    root.mkdir()
    return root


@pytest.fixture
def resolver(media_root: Path) -> PathResolver:
    return PathResolver({"/media": str(media_root)})


def _touch(media_root: Path, relative: str) -> str:
    """Create a source file and return its catalog path."""
    path = media_root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"")
    return f"/media/{relative}"


def _processor(fail: set[str] = frozenset(), already: set[str] = frozenset()):
    """Processor double keyed by source file name."""

    def process(input_path: Path, output_dir: Path) -> PipelineResult:
        if input_path.name in fail:
            return PipelineResult(
                input_path, output_dir, success=False, error="no rendition"
            )
        return PipelineResult(
            input_path,
            output_dir,
            success=True,
            already_packaged=input_path.name in already,
            manifest_path=output_dir / "master.m3u8",
        )

    processor = MagicMock()
    processor.process.side_effect = process
    return processor


def _runner(conn, resolver, processor, notifier=None, reporter=None) -> JobRunner:
    return JobRunner(
        SQLiteJobStore(conn),
        resolver,
        processor,
        reporter=reporter,
        notifier=notifier,
    )


class TestRunSummary:
    def test_describe(self) -> None:
        summary = RunSummary(completed=3, failed=1, already_packaged=2)
        assert summary.describe() == "3 completed, 1 failed, 2 already packaged"
        assert summary.processed == 4
        assert summary.has_failures is True

    def test_series_counts(self) -> None:
        summary = RunSummary(completed=2, series_completed=1)
        assert summary.describe() == (
            "2 completed, 0 failed, series: 1 completed, 0 failed"
        )
        assert summary.has_failures is False


class TestMovies:
    """Tests for movie entries."""

    def test_success(
        self, db_conn: sqlite3.Connection, resolver: PathResolver, media_root: Path
    ) -> None:
        movie_id = insert_movie(
            db_conn, "Heat", _touch(media_root, "movies/Heat.mkv")
        )
        processor = _processor()

        summary = _runner(db_conn, resolver, processor).run()

        assert summary.completed == 1
        processor.process.assert_called_once_with(
            media_root / "movies" / "Heat.mkv", media_root / "movies" / "HLS Heat"
        )
        entry = get_entry(db_conn, EntryKind.MOVIE, movie_id)
        assert entry.status is TranscodeStatus.COMPLETED
        assert entry.play_path == "/media/movies/HLS Heat/master.m3u8"

    def test_missing_source_fails_without_processing(
        self, db_conn: sqlite3.Connection, resolver: PathResolver
    ) -> None:
        movie_id = insert_movie(db_conn, "Heat", "/media/movies/gone.mkv")
        processor = _processor()

        summary = _runner(db_conn, resolver, processor).run()

        assert summary.failed == 1
        processor.process.assert_not_called()
        entry = get_entry(db_conn, EntryKind.MOVIE, movie_id)
        assert entry.status is TranscodeStatus.FAILED

    def test_failure_does_not_stop_batch(
        self, db_conn: sqlite3.Connection, resolver: PathResolver, media_root: Path
    ) -> None:
        bad = insert_movie(db_conn, "Bad", _touch(media_root, "movies/bad.mkv"))
        good = insert_movie(db_conn, "Good", _touch(media_root, "movies/good.mkv"))

        summary = _runner(db_conn, resolver, _processor(fail={"bad.mkv"})).run()

        assert (summary.completed, summary.failed) == (1, 1)
        assert get_entry(db_conn, EntryKind.MOVIE, bad).status is TranscodeStatus.FAILED
        assert (
            get_entry(db_conn, EntryKind.MOVIE, good).status
            is TranscodeStatus.COMPLETED
        )

    def test_processor_exception_marks_failed(
        self, db_conn: sqlite3.Connection, resolver: PathResolver, media_root: Path
    ) -> None:
        movie_id = insert_movie(db_conn, "Heat", _touch(media_root, "movies/h.mkv"))
        processor = MagicMock()
        processor.process.side_effect = OSError("disk full")

        summary = _runner(db_conn, resolver, processor).run()

        assert summary.failed == 1
        entry = get_entry(db_conn, EntryKind.MOVIE, movie_id)
        assert entry.status is TranscodeStatus.FAILED

    def test_terminal_entries_not_picked_up(
        self, db_conn: sqlite3.Connection, resolver: PathResolver, media_root: Path
    ) -> None:
        for status in (TranscodeStatus.COMPLETED, TranscodeStatus.FAILED):
            insert_movie(
                db_conn, status.value, _touch(media_root, f"{status.value}.mkv"), status
            )
        processor = _processor()
        summary = _runner(db_conn, resolver, processor).run()
        assert summary.processed == 0
        processor.process.assert_not_called()

    def test_already_packaged_counted(
        self, db_conn: sqlite3.Connection, resolver: PathResolver, media_root: Path
    ) -> None:
        insert_movie(db_conn, "Heat", _touch(media_root, "movies/Heat.mkv"))
        summary = _runner(
            db_conn, resolver, _processor(already={"Heat.mkv"})
        ).run()
        assert summary.completed == 1
        assert summary.already_packaged == 1


class TestSeries:
    """Tests for episode batches and series aggregation."""

    def test_all_episodes_complete(
        self, db_conn: sqlite3.Connection, resolver: PathResolver, media_root: Path
    ) -> None:
        series_id = get_or_create_series(db_conn, "The Wire")
        for n in (1, 2):
            insert_episode(
                db_conn, series_id, f"E{n}", 1, n, _touch(media_root, f"tv/e{n}.mkv")
            )

        summary = _runner(db_conn, resolver, _processor()).run(EntryKind.EPISODE)

        assert summary.completed == 2
        assert summary.series_completed == 1
        assert get_series(db_conn, series_id).status is TranscodeStatus.COMPLETED

    def test_failed_episode_fails_series(
        self, db_conn: sqlite3.Connection, resolver: PathResolver, media_root: Path
    ) -> None:
        series_id = get_or_create_series(db_conn, "The Wire")
        insert_episode(db_conn, series_id, "A", 1, 1, _touch(media_root, "tv/a.mkv"))
        insert_episode(db_conn, series_id, "B", 1, 2, _touch(media_root, "tv/b.mkv"))

        summary = _runner(db_conn, resolver, _processor(fail={"a.mkv"})).run()

        assert summary.series_failed == 1
        assert get_series(db_conn, series_id).status is TranscodeStatus.FAILED

    def test_previously_completed_episode_counts(
        self, db_conn: sqlite3.Connection, resolver: PathResolver, media_root: Path
    ) -> None:
        """Aggregation looks at every episode, not just those run now."""
        series_id = get_or_create_series(db_conn, "The Wire")
        insert_episode(
            db_conn,
            series_id,
            "A",
            1,
            1,
            _touch(media_root, "tv/a.mkv"),
            TranscodeStatus.COMPLETED,
        )
        insert_episode(db_conn, series_id, "B", 1, 2, _touch(media_root, "tv/b.mkv"))

        _runner(db_conn, resolver, _processor()).run()

        assert get_series(db_conn, series_id).status is TranscodeStatus.COMPLETED

    def test_movies_run_before_episodes(
        self, db_conn: sqlite3.Connection, resolver: PathResolver, media_root: Path
    ) -> None:
        series_id = get_or_create_series(db_conn, "The Wire")
        insert_episode(db_conn, series_id, "A", 1, 1, _touch(media_root, "tv/a.mkv"))
        insert_movie(db_conn, "Heat", _touch(media_root, "movies/Heat.mkv"))
        processor = _processor()

        _runner(db_conn, resolver, processor).run()

        names = [c.args[0].name for c in processor.process.call_args_list]
        assert names == ["Heat.mkv", "a.mkv"]

    def test_orphaned_episodes_run(
        self, resolver: PathResolver, media_root: Path
    ) -> None:
        """Episodes without a series are processed with no series update."""
        episode = CatalogEntry(
            id=5,
            kind=EntryKind.EPISODE,
            title="Pilot",
            file_path=_touch(media_root, "tv/pilot.mkv"),
            status=TranscodeStatus.PENDING,
            series_title="Orphans",
            season_number=1,
            episode_number=1,
        )
        store = MagicMock()
        store.list_runnable.side_effect = lambda kind: (
            [episode] if kind is EntryKind.EPISODE else []
        )
        runner = JobRunner(store, resolver, _processor())

        summary = runner.run()

        assert summary.completed == 1
        store.set_series_status.assert_not_called()
        store.set_status.assert_called_with(
            EntryKind.EPISODE, 5, TranscodeStatus.COMPLETED
        )


class TestNotificationsAndProgress:
    """Tests for cache invalidation and progress reporting."""

    def test_notifier_called_after_processing(
        self, db_conn: sqlite3.Connection, resolver: PathResolver, media_root: Path
    ) -> None:
        insert_movie(db_conn, "Heat", _touch(media_root, "movies/Heat.mkv"))
        notifier = MagicMock()
        _runner(db_conn, resolver, _processor(), notifier=notifier).run()
        notifier.invalidate.assert_called_once_with()

    def test_notifier_skipped_when_nothing_ran(
        self, db_conn: sqlite3.Connection, resolver: PathResolver
    ) -> None:
        notifier = MagicMock()
        _runner(db_conn, resolver, _processor(), notifier=notifier).run()
        notifier.invalidate.assert_not_called()

    def test_reporter_events(
        self, db_conn: sqlite3.Connection, resolver: PathResolver, media_root: Path
    ) -> None:
        insert_movie(db_conn, "Heat", _touch(media_root, "movies/Heat.mkv"))
        reporter = MagicMock()

        _runner(db_conn, resolver, _processor(), reporter=reporter).run()

        reporter.on_start.assert_called_once_with(1)
        reporter.on_item_start.assert_called_once_with(0, "Heat")
        reporter.on_item_complete.assert_called_once_with(
            0, True, "/media/movies/HLS Heat/master.m3u8"
        )
        reporter.on_complete.assert_called_once_with(True)
