"""Tests for the streampack package and manifest commands."""

from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from streampack.cli import main
from streampack.config import StreamPackConfig
from streampack.executor import UnitKind, UnitOutcome, UnitResult
from streampack.policy import PackagingPolicy
from streampack.workflow import PipelineResult


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def source(tmp_path: Path) -> Path:
    path = tmp_path / "Heat.mkv"
    path.write_bytes(b"\x1a\x45\xdf\xa3")
    return path


def _obj() -> dict:
    return {"config": StreamPackConfig(), "policy": PackagingPolicy()}


class TestPackageCommand:
    """Tests for streampack package."""

    def _invoke(self, runner: CliRunner, source: Path, out: Path, result):
        with patch("streampack.cli.package.PackagingProcessor") as processor_cls:
            processor_cls.return_value.process.return_value = result
            outcome = runner.invoke(
                main, ["package", str(source), str(out)], obj=_obj()
            )
        return outcome, processor_cls

    def test_success(self, runner, source, tmp_path) -> None:
        out = tmp_path / "out"
        result = PipelineResult(
            input_path=source,
            output_dir=out,
            success=True,
            manifest_path=out / "master.m3u8",
            units=(
                UnitResult(UnitKind.RENDITION, "1080p", UnitOutcome.SUCCESS),
                UnitResult(UnitKind.AUDIO, "eng", UnitOutcome.SUCCESS),
            ),
        )

        outcome, processor_cls = self._invoke(runner, source, out, result)

        assert outcome.exit_code == 0
        assert "rendition 1080p" in outcome.output
        assert f"Wrote {out / 'master.m3u8'}" in outcome.output
        processor_cls.return_value.process.assert_called_once_with(source, out)

    def test_already_packaged(self, runner, source, tmp_path) -> None:
        out = tmp_path / "out"
        result = PipelineResult(
            input_path=source,
            output_dir=out,
            success=True,
            already_packaged=True,
            manifest_path=out / "master.m3u8",
        )

        outcome, _ = self._invoke(runner, source, out, result)

        assert outcome.exit_code == 0
        assert "Already packaged" in outcome.output

    def test_failed_track_exits_nonzero(self, runner, source, tmp_path) -> None:
        out = tmp_path / "out"
        result = PipelineResult(
            input_path=source,
            output_dir=out,
            success=True,
            manifest_path=out / "master.m3u8",
            units=(
                UnitResult(UnitKind.RENDITION, "720p", UnitOutcome.SUCCESS),
                UnitResult(
                    UnitKind.SUBTITLE, "hin", UnitOutcome.FAILED, message="bad cue"
                ),
            ),
        )

        outcome, _ = self._invoke(runner, source, out, result)

        assert outcome.exit_code == 1
        assert "(bad cue)" in outcome.output
        assert "Wrote" in outcome.output

    def test_pipeline_failure(self, runner, source, tmp_path) -> None:
        out = tmp_path / "out"
        result = PipelineResult(
            input_path=source,
            output_dir=out,
            success=False,
            error="no rendition could be encoded",
        )

        outcome, _ = self._invoke(runner, source, out, result)

        assert outcome.exit_code == 1
        assert "Failed: no rendition could be encoded" in outcome.output

    def test_missing_input(self, runner, tmp_path) -> None:
        outcome = runner.invoke(
            main, ["package", str(tmp_path / "nope.mkv"), str(tmp_path)], obj=_obj()
        )
        assert outcome.exit_code == 2


class TestManifestCommand:
    """Tests for streampack manifest."""

    def test_writes_master(self, runner, tmp_path, make_package) -> None:
        out = make_package(tmp_path / "pkg", renditions=["720p"], audio=["eng"])

        outcome = runner.invoke(main, ["manifest", str(out)], obj=_obj())

        assert outcome.exit_code == 0
        assert f"Wrote {out / 'master.m3u8'}" in outcome.output
        text = (out / "master.m3u8").read_text()
        assert 'NAME="English",LANGUAGE="en"' in text
        assert "720p/stream.m3u8" in text

    def test_dry_run(self, runner, tmp_path, make_package) -> None:
        out = make_package(tmp_path / "pkg", renditions=["480p"])

        outcome = runner.invoke(main, ["manifest", str(out), "--dry-run"], obj=_obj())

        assert outcome.exit_code == 0
        assert outcome.output.startswith("#EXTM3U\n")
        assert not (out / "master.m3u8").exists()

    def test_no_renditions(self, runner, tmp_path) -> None:
        empty = tmp_path / "empty"
        empty.mkdir()

        outcome = runner.invoke(main, ["manifest", str(empty)], obj=_obj())

        assert outcome.exit_code == 1
        assert "No completed renditions" in outcome.output
