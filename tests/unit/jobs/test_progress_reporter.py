"""Tests for jobs/progress.py."""

import logging

import pytest

from streampack.executor.interface import UnitKind
from streampack.jobs.progress import LoggingProgressReporter, NullProgressReporter


class TestNullProgressReporter:
    def test_accepts_everything(self) -> None:
        reporter = NullProgressReporter()
        reporter.on_start(2)
        reporter.on_item_start(0, "Heat")
        reporter.on_unit_progress(UnitKind.RENDITION, "720p", 50.0)
        reporter.on_item_complete(0, True)
        reporter.on_complete()


class TestLoggingProgressReporter:
    """Tests for LoggingProgressReporter."""

    @pytest.fixture
    def reporter(self, caplog: pytest.LogCaptureFixture) -> LoggingProgressReporter:
        caplog.set_level(logging.INFO, logger="streampack.jobs.progress")
        reporter = LoggingProgressReporter(step=25.0)
        reporter.on_start(3)
        return reporter

    def test_item_messages(
        self, reporter: LoggingProgressReporter, caplog: pytest.LogCaptureFixture
    ) -> None:
        reporter.on_item_start(0, "Heat")
        reporter.on_item_complete(0, False, "source not found")
        reporter.on_complete(False)
        assert caplog.messages == [
            "Starting batch of 3 entries",
            "[1/3] Heat",
            "[1/3] FAILED: source not found",
            "Batch finished with failures",
        ]

    def test_unit_progress_throttled(
        self, reporter: LoggingProgressReporter, caplog: pytest.LogCaptureFixture
    ) -> None:
        caplog.clear()
        for percent in (5.0, 20.0, 26.0, 40.0, 51.0, 99.0, 100.0):
            reporter.on_unit_progress(UnitKind.RENDITION, "720p", percent)
        assert caplog.messages == [
            "rendition 720p: 26%",
            "rendition 720p: 51%",
            "rendition 720p: 99%",
            "rendition 720p: 100%",
        ]

    def test_new_unit_restarts_throttle(
        self, reporter: LoggingProgressReporter, caplog: pytest.LogCaptureFixture
    ) -> None:
        reporter.on_unit_progress(UnitKind.RENDITION, "720p", 90.0)
        caplog.clear()
        reporter.on_unit_progress(UnitKind.AUDIO, "eng", 30.0)
        assert caplog.messages == ["audio eng: 30%"]
