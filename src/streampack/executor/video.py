"""Video rendition encoding with hardware-then-software fallback."""

from __future__ import annotations

import logging
from pathlib import Path

from streampack.executor.exceptions import EncodeError
from streampack.executor.ffmpeg_base import FFmpegExecutorBase, stderr_tail
from streampack.executor.interface import (
    UnitKind,
    UnitOutcome,
    UnitProgressCallback,
    UnitResult,
)
from streampack.manifest.playlists import is_complete_playlist
from streampack.policy.ladder import RenditionSpec
from streampack.tools.encoders import (
    EncoderStrategy,
    SoftwareStrategy,
    detect_hw_encoder_error,
    hls_output_args,
)

logger = logging.getLogger(__name__)


class VideoEncoder(FFmpegExecutorBase):
    """Encodes one rendition into an HLS segment directory.

    A hardware strategy is tried first. If it fails, the shared software
    strategy is tried once with equivalent quality settings. Only when
    both fail is the rendition reported as failed.
    """

    def __init__(
        self,
        strategy: EncoderStrategy | None = None,
        segment_duration: int = 6,
        fallback_to_software: bool = True,
        ffmpeg_path: Path | None = None,
        timeout: float | None = None,
        progress: UnitProgressCallback | None = None,
    ) -> None:
        """Initialize the encoder.

        Args:
            strategy: Preferred encoder strategy. None uses software only.
            segment_duration: HLS segment length in seconds.
            fallback_to_software: Retry failed hardware encodes in software.
            ffmpeg_path: Explicit ffmpeg path.
            timeout: Per-attempt timeout in seconds.
            progress: Optional progress receiver.
        """
        super().__init__(ffmpeg_path=ffmpeg_path, timeout=timeout)
        self.strategy: EncoderStrategy = strategy or SoftwareStrategy()
        self.software: EncoderStrategy = SoftwareStrategy()
        self.segment_duration = segment_duration
        self.fallback_to_software = fallback_to_software
        self._progress = progress

    def build_command(
        self,
        input_path: Path,
        spec: RenditionSpec,
        rendition_dir: Path,
        strategy: EncoderStrategy,
    ) -> list[str]:
        """Build the FFmpeg command for one rendition attempt."""
        return [
            str(self.tool_path),
            "-y",
            "-hide_banner",
            *strategy.input_args(),
            "-i",
            str(input_path),
            "-map",
            "0:v:0",
            "-an",
            "-sn",
            *strategy.build_args(spec),
            *hls_output_args(rendition_dir, self.segment_duration),
        ]

    def _attempt(
        self,
        input_path: Path,
        spec: RenditionSpec,
        rendition_dir: Path,
        strategy: EncoderStrategy,
        duration_seconds: float | None,
    ) -> None:
        """Run one encode attempt.

        Raises:
            EncodeError: If FFmpeg fails or the playlist is incomplete.
        """
        self.reset_directory(rendition_dir)
        cmd = self.build_command(input_path, spec, rendition_dir, strategy)

        report = None
        if self._progress is not None:
            progress = self._progress

            def report(percent: float) -> None:
                progress(UnitKind.RENDITION, spec.name, percent)

        description = f"{spec.name} ({strategy.name})"
        success, rc, stderr_lines = self._run_ffmpeg_with_timeout(
            cmd,
            description,
            timeout=self._timeout,
            progress_callback=self.percent_callback(duration_seconds, report),
        )
        tail = stderr_tail(stderr_lines)
        if not success:
            raise EncodeError(f"{description} failed with exit code {rc}", tail)
        if not is_complete_playlist(rendition_dir / "stream.m3u8"):
            raise EncodeError(f"{description} produced no complete playlist", tail)

    def encode_rendition(
        self,
        input_path: Path,
        spec: RenditionSpec,
        output_dir: Path,
        duration_seconds: float | None = None,
    ) -> UnitResult:
        """Encode one rendition under ``output_dir/<spec.name>/``.

        Args:
            input_path: Source file.
            spec: Rendition to produce.
            output_dir: Package directory.
            duration_seconds: Source duration, for progress percentages.

        Returns:
            SKIPPED if a complete playlist already exists, SUCCESS if an
            attempt succeeded, FAILED if every attempt failed.
        """
        rendition_dir = output_dir / spec.name
        if is_complete_playlist(rendition_dir / "stream.m3u8"):
            logger.info("Rendition %s already complete, skipping", spec.name)
            return UnitResult(
                UnitKind.RENDITION,
                spec.name,
                UnitOutcome.SKIPPED,
                message="already encoded",
            )

        attempts = [self.strategy]
        if self.strategy.is_hardware and self.fallback_to_software:
            attempts.append(self.software)

        last_error: EncodeError | None = None
        for strategy in attempts:
            logger.info("Encoding %s with %s", spec.name, strategy.encoder)
            try:
                self._attempt(
                    input_path, spec, rendition_dir, strategy, duration_seconds
                )
            except EncodeError as e:
                last_error = e
                if strategy.is_hardware and detect_hw_encoder_error(e.stderr_tail):
                    logger.warning(
                        "Hardware encoder %s failed for %s: %s",
                        strategy.encoder,
                        spec.name,
                        e,
                    )
                else:
                    logger.warning("%s", e)
                continue

            logger.info("Rendition %s complete (%s)", spec.name, strategy.encoder)
            return UnitResult(
                UnitKind.RENDITION,
                spec.name,
                UnitOutcome.SUCCESS,
                message=f"encoded with {strategy.encoder}",
                encoder=strategy.encoder,
            )

        assert last_error is not None
        logger.error(
            "Rendition %s failed: %s\n%s", spec.name, last_error, last_error.stderr_tail
        )
        return UnitResult(
            UnitKind.RENDITION,
            spec.name,
            UnitOutcome.FAILED,
            message=str(last_error),
            stderr_tail=last_error.stderr_tail,
        )
