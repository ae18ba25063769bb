"""Audio track extraction.

Each selected audio stream is first transcoded to a standalone AAC file,
then segmented into its own HLS playlist. Splitting the two stages keeps
segment boundaries independent of the source container's audio framing.
"""

from __future__ import annotations

import logging
from pathlib import Path

from streampack.executor.exceptions import ExtractionError
from streampack.executor.ffmpeg_base import FFmpegExecutorBase, stderr_tail
from streampack.executor.interface import (
    UnitKind,
    UnitOutcome,
    UnitProgressCallback,
    UnitResult,
)
from streampack.manifest.playlists import is_complete_playlist
from streampack.policy.tracks import AudioTrackSpec

logger = logging.getLogger(__name__)

INTERMEDIATE_NAME = "audio.m4a"


class AudioExtractor(FFmpegExecutorBase):
    """Extracts selected audio streams into ``audio/<code>/`` playlists."""

    def __init__(
        self,
        bitrate: str = "128k",
        sample_rate: int = 48000,
        channels: int = 2,
        segment_duration: int = 6,
        ffmpeg_path: Path | None = None,
        timeout: float | None = None,
        progress: UnitProgressCallback | None = None,
    ) -> None:
        super().__init__(ffmpeg_path=ffmpeg_path, timeout=timeout)
        self.bitrate = bitrate
        self.sample_rate = sample_rate
        self.channels = channels
        self.segment_duration = segment_duration
        self._progress = progress

    def _codec_args(self) -> list[str]:
        return [
            "-c:a",
            "aac",
            "-b:a",
            self.bitrate,
            "-ar",
            str(self.sample_rate),
            "-ac",
            str(self.channels),
        ]

    def build_transcode_command(
        self, input_path: Path, spec: AudioTrackSpec, track_dir: Path
    ) -> list[str]:
        """Stage one: selected stream to a standalone AAC file."""
        return [
            str(self.tool_path),
            "-y",
            "-i",
            str(input_path),
            "-map",
            f"0:{spec.source_index}",
            *self._codec_args(),
            "-profile:a",
            "aac_low",
            str(track_dir / INTERMEDIATE_NAME),
        ]

    def build_segment_command(self, track_dir: Path) -> list[str]:
        """Stage two: AAC file to an HLS playlist with MPEG-TS segments."""
        return [
            str(self.tool_path),
            "-y",
            "-i",
            str(track_dir / INTERMEDIATE_NAME),
            *self._codec_args(),
            "-f",
            "hls",
            "-hls_time",
            str(self.segment_duration),
            "-hls_playlist_type",
            "vod",
            "-hls_segment_type",
            "mpegts",
            "-hls_segment_filename",
            str(track_dir / "segment_%03d.ts"),
            "-hls_flags",
            "independent_segments",
            str(track_dir / "playlist.m3u8"),
        ]

    def _run_stage(
        self,
        cmd: list[str],
        description: str,
        spec: AudioTrackSpec,
        duration_seconds: float | None,
    ) -> None:
        report = None
        if self._progress is not None:
            progress = self._progress

            def report(percent: float) -> None:
                progress(UnitKind.AUDIO, spec.language, percent)

        success, rc, stderr_lines = self._run_ffmpeg_with_timeout(
            cmd,
            description,
            timeout=self._timeout,
            progress_callback=self.percent_callback(duration_seconds, report),
        )
        if not success:
            raise ExtractionError(
                f"{description} failed with exit code {rc}", stderr_tail(stderr_lines)
            )

    def extract_audio(
        self,
        input_path: Path,
        spec: AudioTrackSpec,
        output_dir: Path,
        duration_seconds: float | None = None,
    ) -> UnitResult:
        """Extract one audio track under ``output_dir/audio/<code>/``.

        Args:
            input_path: Source file.
            spec: Selected audio track.
            output_dir: Package directory.
            duration_seconds: Source duration, for progress percentages.

        Returns:
            UnitResult for the track. Failures are reported, not raised.
        """
        track_dir = output_dir / "audio" / spec.language
        playlist = track_dir / "playlist.m3u8"
        if is_complete_playlist(playlist):
            logger.info("Audio track %s already extracted, skipping", spec.language)
            return UnitResult(
                UnitKind.AUDIO, spec.language, UnitOutcome.SKIPPED, "already extracted"
            )

        logger.info(
            "Extracting audio stream %d as %s (%s)",
            spec.source_index,
            spec.language,
            spec.name,
        )
        try:
            self.reset_directory(track_dir)
            self._run_stage(
                self.build_transcode_command(input_path, spec, track_dir),
                f"audio {spec.language} transcode",
                spec,
                duration_seconds,
            )
            self._run_stage(
                self.build_segment_command(track_dir),
                f"audio {spec.language} segment",
                spec,
                duration_seconds,
            )
            if not is_complete_playlist(playlist):
                raise ExtractionError(f"audio {spec.language} produced no playlist")
            (track_dir / INTERMEDIATE_NAME).unlink(missing_ok=True)
        except ExtractionError as e:
            logger.error(
                "Audio track %s failed: %s\n%s", spec.language, e, e.stderr_tail
            )
            return UnitResult(
                UnitKind.AUDIO,
                spec.language,
                UnitOutcome.FAILED,
                message=str(e),
                stderr_tail=e.stderr_tail,
            )
        except OSError as e:
            logger.error("Audio track %s failed: %s", spec.language, e)
            return UnitResult(
                UnitKind.AUDIO, spec.language, UnitOutcome.FAILED, message=str(e)
            )

        logger.info("Audio track %s complete", spec.language)
        return UnitResult(UnitKind.AUDIO, spec.language, UnitOutcome.SUCCESS)
