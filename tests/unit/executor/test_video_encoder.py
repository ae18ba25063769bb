"""Tests for executor/video.py - rendition encoding with fallback."""

from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from streampack.executor.interface import UnitKind, UnitOutcome
from streampack.executor.video import VideoEncoder
from streampack.policy.ladder import get_rendition
from streampack.tools.encoders import NvencStrategy, SoftwareStrategy
from streampack.tools.ffmpeg_progress import FFmpegProgress

FFMPEG = Path("/usr/bin/ffmpeg")
SPEC_720 = get_rendition("720p")
PLAYLIST = "#EXTM3U\n#EXTINF:6.0,\nsegment_000.ts\n#EXT-X-ENDLIST\n"


def _fake_ffmpeg(results: list[bool], calls: list[list[str]]):
    """Simulate FFmpeg runs: write a complete playlist when the run succeeds."""
    outcomes = iter(results)

    def run(cmd, description, timeout=None, progress_callback=None):
        calls.append(cmd)
        if next(outcomes):
            Path(cmd[-1]).write_text(PLAYLIST)
            return (True, 0, [])
        return (False, 1, ["[hevc_nvenc @ 0x1] No capable devices found\n"])

    return run


@pytest.fixture
def input_file(tmp_path: Path) -> Path:
    path = tmp_path / "Heat.mkv"
    path.write_bytes(b"")
    return path


class TestBuildCommand:
    """Tests for VideoEncoder.build_command."""

    def test_command_layout(self, tmp_path: Path) -> None:
        """Video only, first video stream, HLS output."""
        encoder = VideoEncoder(ffmpeg_path=FFMPEG, segment_duration=4)
        cmd = encoder.build_command(
            Path("/in.mkv"), SPEC_720, tmp_path / "720p", SoftwareStrategy()
        )
        assert cmd[:3] == [str(FFMPEG), "-y", "-hide_banner"]
        assert cmd[cmd.index("-i") + 1] == "/in.mkv"
        assert cmd[cmd.index("-map") + 1] == "0:v:0"
        assert "-an" in cmd
        assert "-sn" in cmd
        assert cmd[cmd.index("-c:v") + 1] == "libx265"
        assert cmd[cmd.index("-hls_time") + 1] == "4"
        assert cmd[-1] == str(tmp_path / "720p" / "stream.m3u8")

    def test_input_args_before_input(self) -> None:
        """Device arguments precede -i."""
        strategy = MagicMock()
        strategy.input_args.return_value = ["-vaapi_device", "/dev/dri/renderD128"]
        strategy.build_args.return_value = ["-c:v", "hevc_vaapi"]
        cmd = VideoEncoder(ffmpeg_path=FFMPEG).build_command(
            Path("/in.mkv"), SPEC_720, Path("/out/720p"), strategy
        )
        assert cmd.index("-vaapi_device") < cmd.index("-i")


class TestEncodeRendition:
    """Tests for VideoEncoder.encode_rendition."""

    def test_software_success(self, input_file: Path, tmp_path: Path) -> None:
        """A software encode that succeeds produces SUCCESS."""
        out = tmp_path / "pkg"
        calls: list[list[str]] = []
        encoder = VideoEncoder(ffmpeg_path=FFMPEG)
        with patch.object(
            encoder, "_run_ffmpeg_with_timeout", side_effect=_fake_ffmpeg([True], calls)
        ):
            result = encoder.encode_rendition(input_file, SPEC_720, out)

        assert result.kind is UnitKind.RENDITION
        assert result.name == "720p"
        assert result.outcome is UnitOutcome.SUCCESS
        assert result.encoder == "libx265"
        assert len(calls) == 1

    def test_hardware_falls_back_to_software(
        self, input_file: Path, tmp_path: Path
    ) -> None:
        """A failed hardware attempt is retried once in software."""
        out = tmp_path / "pkg"
        calls: list[list[str]] = []
        encoder = VideoEncoder(strategy=NvencStrategy(), ffmpeg_path=FFMPEG)
        with patch.object(
            encoder,
            "_run_ffmpeg_with_timeout",
            side_effect=_fake_ffmpeg([False, True], calls),
        ):
            result = encoder.encode_rendition(input_file, SPEC_720, out)

        assert result.outcome is UnitOutcome.SUCCESS
        assert result.encoder == "libx265"
        assert [c[c.index("-c:v") + 1] for c in calls] == ["hevc_nvenc", "libx265"]

    def test_both_attempts_fail(self, input_file: Path, tmp_path: Path) -> None:
        """FAILED only after hardware and software both fail."""
        out = tmp_path / "pkg"
        calls: list[list[str]] = []
        encoder = VideoEncoder(strategy=NvencStrategy(), ffmpeg_path=FFMPEG)
        with patch.object(
            encoder,
            "_run_ffmpeg_with_timeout",
            side_effect=_fake_ffmpeg([False, False], calls),
        ):
            result = encoder.encode_rendition(input_file, SPEC_720, out)

        assert result.outcome is UnitOutcome.FAILED
        assert len(calls) == 2
        assert "No capable devices" in result.stderr_tail
        assert result.succeeded is False

    def test_no_fallback_when_disabled(self, input_file: Path, tmp_path: Path) -> None:
        """With fallback disabled, a hardware failure is final."""
        calls: list[list[str]] = []
        encoder = VideoEncoder(
            strategy=NvencStrategy(), fallback_to_software=False, ffmpeg_path=FFMPEG
        )
        with patch.object(
            encoder,
            "_run_ffmpeg_with_timeout",
            side_effect=_fake_ffmpeg([False], calls),
        ):
            result = encoder.encode_rendition(input_file, SPEC_720, tmp_path / "pkg")
        assert result.outcome is UnitOutcome.FAILED
        assert len(calls) == 1

    def test_incomplete_playlist_is_failure(
        self, input_file: Path, tmp_path: Path
    ) -> None:
        """Exit code 0 without a finished playlist still fails."""
        encoder = VideoEncoder(ffmpeg_path=FFMPEG)
        with patch.object(
            encoder, "_run_ffmpeg_with_timeout", return_value=(True, 0, [])
        ):
            result = encoder.encode_rendition(input_file, SPEC_720, tmp_path / "pkg")
        assert result.outcome is UnitOutcome.FAILED
        assert "no complete playlist" in result.message

    def test_existing_rendition_skipped(
        self, input_file: Path, tmp_path: Path
    ) -> None:
        """A complete playlist on disk skips the encode."""
        rendition_dir = tmp_path / "pkg" / "720p"
        rendition_dir.mkdir(parents=True)
        (rendition_dir / "stream.m3u8").write_text(PLAYLIST)

        encoder = VideoEncoder(ffmpeg_path=FFMPEG)
        with patch.object(encoder, "_run_ffmpeg_with_timeout") as mock_run:
            result = encoder.encode_rendition(input_file, SPEC_720, tmp_path / "pkg")

        assert result.outcome is UnitOutcome.SKIPPED
        assert result.succeeded is True
        mock_run.assert_not_called()

    def test_partial_output_cleared_before_retry(
        self, input_file: Path, tmp_path: Path
    ) -> None:
        """Leftover segments from an interrupted encode are removed."""
        rendition_dir = tmp_path / "pkg" / "720p"
        rendition_dir.mkdir(parents=True)
        (rendition_dir / "segment_099.ts").write_bytes(b"stale")
        (rendition_dir / "stream.m3u8").write_text("#EXTM3U\n")

        calls: list[list[str]] = []
        encoder = VideoEncoder(ffmpeg_path=FFMPEG)
        with patch.object(
            encoder, "_run_ffmpeg_with_timeout", side_effect=_fake_ffmpeg([True], calls)
        ):
            encoder.encode_rendition(input_file, SPEC_720, tmp_path / "pkg")

        assert not (rendition_dir / "segment_099.ts").exists()

    def test_progress_reported(self, input_file: Path, tmp_path: Path) -> None:
        """Progress reaches the unit callback with kind and name."""
        seen: list[tuple] = []

        def fake_run(cmd, description, timeout=None, progress_callback=None):
            progress_callback(FFmpegProgress(out_time_us=50_000_000))
            Path(cmd[-1]).write_text(PLAYLIST)
            return (True, 0, [])

        encoder = VideoEncoder(
            ffmpeg_path=FFMPEG, progress=lambda *args: seen.append(args)
        )
        with patch.object(encoder, "_run_ffmpeg_with_timeout", side_effect=fake_run):
            encoder.encode_rendition(
                input_file, SPEC_720, tmp_path / "pkg", duration_seconds=100.0
            )

        assert seen == [(UnitKind.RENDITION, "720p", pytest.approx(50.0))]
