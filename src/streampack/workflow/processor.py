"""Packaging pipeline for a single source file.

The processor runs probe, plan, video renditions, audio tracks, subtitle
tracks and master playlist synthesis, in that order, for one input. Each
unit of work reports its own result, so one failed rendition or track
never prevents its siblings from being produced.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from streampack.executor import (
    AudioExtractor,
    SubtitleExtractor,
    UnitKind,
    UnitOutcome,
    UnitProgressCallback,
    UnitResult,
    VideoEncoder,
)
from streampack.introspector import FFprobeProber, ProbeError, StreamMetadata
from streampack.introspector.interface import StreamProber
from streampack.language import DEFAULT_LANGUAGE_TABLE, LanguageTable
from streampack.manifest import ManifestError, write_master_playlist
from streampack.paths.naming import MASTER_PLAYLIST
from streampack.policy import (
    AudioTrackSpec,
    PackagingPolicy,
    RenditionSpec,
    SubtitleTrackSpec,
    default_policy,
    discover_external_subtitles,
    is_text_subtitle,
    plan_renditions,
    select_audio,
    select_subtitles,
)
from streampack.tools.encoders import select_strategy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PackagePlan:
    """What would be produced for a source file."""

    metadata: StreamMetadata
    renditions: tuple[RenditionSpec, ...]
    audio: tuple[AudioTrackSpec, ...]
    subtitles: tuple[SubtitleTrackSpec, ...]


@dataclass(frozen=True)
class PipelineResult:
    """Result of packaging one source file."""

    input_path: Path
    output_dir: Path
    success: bool
    already_packaged: bool = False
    """True if the master playlist existed and nothing was run."""

    manifest_path: Path | None = None
    units: tuple[UnitResult, ...] = field(default_factory=tuple)
    error: str | None = None

    def units_of(self, kind: UnitKind) -> list[UnitResult]:
        """Unit results of one kind, in execution order."""
        return [u for u in self.units if u.kind is kind]

    @property
    def failed_units(self) -> list[UnitResult]:
        """Units that failed."""
        return [u for u in self.units if u.outcome is UnitOutcome.FAILED]

    @property
    def stderr_tail(self) -> str:
        """Encoder stderr of the first failed unit, if any."""
        for unit in self.failed_units:
            if unit.stderr_tail:
                return unit.stderr_tail
        return ""


def plan_package(
    input_path: Path,
    prober: StreamProber,
    policy: PackagingPolicy,
    table: LanguageTable = DEFAULT_LANGUAGE_TABLE,
) -> PackagePlan:
    """Probe a source and decide what to produce, without encoding.

    External subtitle files are only looked for when the source has no
    embedded subtitle streams.

    Args:
        input_path: Readable local source file.
        prober: Stream prober.
        policy: Packaging policy.
        table: Language table.

    Returns:
        PackagePlan with the ladder and the selected tracks.

    Raises:
        ProbeError: If the source cannot be probed or has no video.
    """
    metadata = prober.probe(input_path)
    if metadata.video is None:
        raise ProbeError(f"No video stream found in {input_path}")

    renditions = plan_renditions(metadata.video.width, metadata.video.height)
    audio = select_audio(metadata.audio_streams, policy.audio, table)
    external = []
    if not any(is_text_subtitle(s) for s in metadata.subtitle_streams):
        external = discover_external_subtitles(input_path, policy.subtitles, table)
    subtitles = select_subtitles(
        metadata.subtitle_streams, external, policy.subtitles, table
    )
    return PackagePlan(
        metadata=metadata,
        renditions=tuple(renditions),
        audio=tuple(audio),
        subtitles=tuple(subtitles),
    )


class PackagingProcessor:
    """Runs the packaging pipeline for one file at a time."""

    def __init__(
        self,
        policy: PackagingPolicy | None = None,
        prober: StreamProber | None = None,
        video: VideoEncoder | None = None,
        audio: AudioExtractor | None = None,
        subtitles: SubtitleExtractor | None = None,
        table: LanguageTable = DEFAULT_LANGUAGE_TABLE,
        ffmpeg_path: Path | None = None,
        timeout: float | None = None,
        progress: UnitProgressCallback | None = None,
    ) -> None:
        """Initialize the processor.

        Collaborators not given are built from the policy. Building the
        video encoder probes FFmpeg for hardware encoders.

        Args:
            policy: Packaging policy. None uses defaults.
            prober: Stream prober.
            video: Rendition encoder.
            audio: Audio extractor.
            subtitles: Subtitle extractor.
            table: Language table used for track selection and naming.
            ffmpeg_path: Explicit ffmpeg path for built executors.
            timeout: Per-invocation timeout for built executors.
            progress: Progress receiver for built executors.
        """
        self.policy = policy or default_policy()
        self.table = table
        self._prober = prober
        if video is None:
            hardware = self.policy.hardware
            video = VideoEncoder(
                strategy=select_strategy(hardware.mode, hardware.vaapi_device),
                segment_duration=self.policy.segment_duration,
                fallback_to_software=hardware.fallback_to_software,
                ffmpeg_path=ffmpeg_path,
                timeout=timeout,
                progress=progress,
            )
        if audio is None:
            audio_policy = self.policy.audio
            audio = AudioExtractor(
                bitrate=audio_policy.bitrate,
                sample_rate=audio_policy.sample_rate,
                channels=audio_policy.channels,
                segment_duration=self.policy.segment_duration,
                ffmpeg_path=ffmpeg_path,
                timeout=timeout,
                progress=progress,
            )
        if subtitles is None:
            subtitles = SubtitleExtractor(ffmpeg_path=ffmpeg_path, timeout=timeout)
        self.video = video
        self.audio = audio
        self.subtitles = subtitles

    @property
    def prober(self) -> StreamProber:
        """Stream prober, created on first use."""
        if self._prober is None:
            self._prober = FFprobeProber()
        return self._prober

    def plan(self, input_path: Path) -> PackagePlan:
        """Probe a source and decide what to produce, without encoding.

        Raises:
            ProbeError: If the source cannot be probed or has no video.
        """
        return plan_package(input_path, self.prober, self.policy, self.table)

    def process(self, input_path: Path, output_dir: Path) -> PipelineResult:
        """Package one source file into ``output_dir``.

        A package whose master playlist already exists is left untouched.

        Args:
            input_path: Readable local source file.
            output_dir: Package directory.

        Returns:
            PipelineResult. Probe and manifest errors are reported in the
            result, not raised.
        """
        manifest_path = output_dir / MASTER_PLAYLIST
        if manifest_path.exists():
            logger.info("Already packaged: %s", manifest_path)
            return PipelineResult(
                input_path=input_path,
                output_dir=output_dir,
                success=True,
                already_packaged=True,
                manifest_path=manifest_path,
            )

        try:
            plan = self.plan(input_path)
        except ProbeError as e:
            logger.error("Cannot probe %s: %s", input_path, e)
            return PipelineResult(input_path, output_dir, success=False, error=str(e))

        logger.info(
            "Packaging %s: renditions=%s audio=%s subtitles=%s",
            input_path.name,
            [r.name for r in plan.renditions],
            [a.language for a in plan.audio],
            [s.language for s in plan.subtitles],
        )
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return PipelineResult(
                input_path,
                output_dir,
                success=False,
                error=f"Cannot create {output_dir}: {e}",
            )

        duration = plan.metadata.duration_seconds
        units: list[UnitResult] = []

        for spec in plan.renditions:
            units.append(
                self.video.encode_rendition(input_path, spec, output_dir, duration)
            )
        renditions = [u for u in units if u.kind is UnitKind.RENDITION]
        if not any(u.succeeded for u in renditions):
            logger.error("No rendition could be encoded for %s", input_path)
            return PipelineResult(
                input_path,
                output_dir,
                success=False,
                units=tuple(units),
                error="no rendition could be encoded",
            )

        audio_done: list[str] = []
        for track in plan.audio:
            result = self.audio.extract_audio(input_path, track, output_dir, duration)
            units.append(result)
            if result.succeeded:
                audio_done.append(track.language)

        subtitles_done: list[str] = []
        for track in plan.subtitles:
            result = self.subtitles.extract_subtitle(input_path, track, output_dir)
            units.append(result)
            if result.succeeded:
                subtitles_done.append(track.language)

        # The master playlist marks a finished package, so it is only
        # written when the entry will be considered complete.
        failed_renditions = [u.name for u in renditions if not u.succeeded]
        if failed_renditions and self.policy.completion.require_all_renditions:
            logger.error(
                "Not writing manifest for %s: renditions failed: %s",
                input_path.name,
                ", ".join(failed_renditions),
            )
            return PipelineResult(
                input_path,
                output_dir,
                success=False,
                units=tuple(units),
                error=f"renditions failed: {', '.join(failed_renditions)}",
            )
        if failed_renditions:
            logger.warning(
                "Packaging %s without renditions: %s",
                input_path.name,
                ", ".join(failed_renditions),
            )

        try:
            written = write_master_playlist(
                output_dir,
                audio_order=audio_done,
                subtitle_order=subtitles_done,
                subtitle_languages=self.policy.subtitles.languages,
                table=self.table,
            )
        except ManifestError as e:
            logger.error("Manifest for %s failed: %s", input_path, e)
            return PipelineResult(
                input_path, output_dir, success=False, units=tuple(units), error=str(e)
            )

        return PipelineResult(
            input_path,
            output_dir,
            success=True,
            manifest_path=written,
            units=tuple(units),
        )
