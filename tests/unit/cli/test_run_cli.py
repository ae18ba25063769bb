"""Tests for the streampack run command."""

from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from streampack.cli import main
from streampack.config import StreamPackConfig
from streampack.db import (
    EntryKind,
    TranscodeStatus,
    get_entry,
    get_or_create_series,
    get_series,
    insert_episode,
    insert_movie,
)
from streampack.policy import PackagingPolicy
from streampack.workflow import PipelineResult


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner, db_conn):
    """Invoke the CLI with a processor that always succeeds."""

    def run(*args: str):
        def process(input_path: Path, output_dir: Path) -> PipelineResult:
            return PipelineResult(
                input_path=input_path,
                output_dir=output_dir,
                success=True,
                manifest_path=output_dir / "master.m3u8",
            )

        obj = {
            "config": StreamPackConfig(),
            "db_conn": db_conn,
            "policy": PackagingPolicy(),
        }
        with patch("streampack.cli.run.PackagingProcessor") as processor_cls:
            processor_cls.return_value.process.side_effect = process
            return runner.invoke(main, ["run", *args], obj=obj)

    return run


class TestRunCommand:
    """Tests for batch runs from the command line."""

    def test_nothing_to_do(self, invoke) -> None:
        result = invoke()
        assert result.exit_code == 0
        assert "0 completed, 0 failed" in result.output

    def test_completes_movie(self, invoke, db_conn, tmp_path: Path) -> None:
        source = tmp_path / "Heat.mkv"
        source.write_bytes(b"\x00")
        movie_id = insert_movie(db_conn, "Heat", str(source))
        db_conn.commit()

        result = invoke()

        assert result.exit_code == 0
        assert "1 completed, 0 failed" in result.output
        entry = get_entry(db_conn, EntryKind.MOVIE, movie_id)
        assert entry.status is TranscodeStatus.COMPLETED
        assert entry.play_path.startswith(tmp_path.as_posix())
        assert entry.play_path.endswith("/master.m3u8")

    def test_missing_source_fails(self, invoke, db_conn, tmp_path: Path) -> None:
        movie_id = insert_movie(db_conn, "Ghost", str(tmp_path / "missing.mkv"))
        db_conn.commit()

        result = invoke()

        assert result.exit_code == 1
        assert "0 completed, 1 failed" in result.output
        assert get_entry(db_conn, EntryKind.MOVIE, movie_id).status is (
            TranscodeStatus.FAILED
        )

    def test_kind_filter(self, invoke, db_conn, tmp_path: Path) -> None:
        source = tmp_path / "e1.mkv"
        source.write_bytes(b"\x00")
        movie_id = insert_movie(db_conn, "Heat", str(tmp_path / "missing.mkv"))
        series_id = get_or_create_series(db_conn, "Dark")
        insert_episode(db_conn, series_id, "Secrets", 1, 1, str(source))
        db_conn.commit()

        result = invoke("--kind", "episodes")

        assert result.exit_code == 0
        assert "series: 1 completed, 0 failed" in result.output
        assert get_series(db_conn, series_id).status is TranscodeStatus.COMPLETED
        assert get_entry(db_conn, EntryKind.MOVIE, movie_id).status is (
            TranscodeStatus.PENDING
        )
