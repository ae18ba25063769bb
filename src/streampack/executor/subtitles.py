"""Subtitle extraction and conversion to WebVTT.

Every selected subtitle ends up as ``subs_<code>.vtt`` in the package
directory with a single-segment ``subs_<code>.m3u8`` next to it. The
source may be an embedded stream, an external .srt (optionally shifted
in time first), or a ready-made .vtt that is copied as-is.
"""

from __future__ import annotations

import logging
import re
import shutil
from pathlib import Path

from streampack.executor.exceptions import ExtractionError
from streampack.executor.ffmpeg_base import FFmpegExecutorBase, stderr_tail
from streampack.executor.interface import UnitKind, UnitOutcome, UnitResult
from streampack.manifest.playlists import (
    subtitle_file_name,
    subtitle_playlist_name,
    write_subtitle_playlist,
)
from streampack.policy.discovery import SubtitleOrigin
from streampack.policy.tracks import SubtitleTrackSpec

logger = logging.getLogger(__name__)

WEBVTT_HEADER = "WEBVTT"

_SRT_TIMING = re.compile(
    r"^(\d{2}:\d{2}:\d{2},\d{3})\s*-->\s*(\d{2}:\d{2}:\d{2},\d{3})(.*)$"
)
_SRT_TIMESTAMP = re.compile(r"^(\d{2}):(\d{2}):(\d{2}),(\d{3})$")
_BLOCK_SPLIT = re.compile(r"\r?\n\r?\n")

_MS_PER_DAY = 24 * 3600 * 1000
_BOM = "\ufeff"


def add_delay(timestamp: str, delay_ms: int) -> str:
    """Shift an SRT timestamp (``HH:MM:SS,mmm``) by a number of milliseconds.

    Results before zero clamp to ``00:00:00,000``; results past 24 hours
    wrap around.

    Raises:
        ValueError: If the timestamp is malformed.
    """
    match = _SRT_TIMESTAMP.match(timestamp.strip())
    if not match:
        raise ValueError(f"Invalid SRT timestamp: {timestamp!r}")
    hours, minutes, seconds, millis = (int(g) for g in match.groups())
    total = ((hours * 60 + minutes) * 60 + seconds) * 1000 + millis + delay_ms
    total = max(0, total) % _MS_PER_DAY

    hours, rest = divmod(total, 3600 * 1000)
    minutes, rest = divmod(rest, 60 * 1000)
    seconds, millis = divmod(rest, 1000)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d},{millis:03d}"


def shift_srt_timings(content: str, delay_ms: int) -> str:
    """Shift every cue in SRT text by ``delay_ms``.

    Blank-line separated blocks are kept in order; the first timing line
    of each block is rewritten and all other lines pass through. Empty
    blocks are dropped and line endings are normalized to ``\\n``.
    """
    blocks = [
        b.strip("\r\n") for b in _BLOCK_SPLIT.split(content.lstrip(_BOM)) if b.strip()
    ]
    shifted_blocks = []
    for block in blocks:
        lines = [line.rstrip("\r") for line in block.split("\n")]
        for i, line in enumerate(lines):
            match = _SRT_TIMING.match(line)
            if match:
                start, end, rest = match.groups()
                lines[i] = (
                    f"{add_delay(start, delay_ms)} --> {add_delay(end, delay_ms)}{rest}"
                )
                break
        shifted_blocks.append("\n".join(lines))
    return "\n\n".join(shifted_blocks) + "\n"


def ensure_webvtt_header(content: str) -> str:
    """Prepend the WEBVTT signature if the text lacks it."""
    if content.lstrip(_BOM).startswith(WEBVTT_HEADER):
        return content
    return f"{WEBVTT_HEADER}\n\n{content}"


class SubtitleExtractor(FFmpegExecutorBase):
    """Produces ``subs_<code>.vtt`` and its playlist for one subtitle track."""

    def build_embedded_command(
        self, input_path: Path, stream_index: int, vtt_path: Path
    ) -> list[str]:
        """Convert an embedded subtitle stream to WebVTT."""
        return [
            str(self.tool_path),
            "-y",
            "-i",
            str(input_path),
            "-map",
            f"0:{stream_index}",
            "-c:s",
            "webvtt",
            str(vtt_path),
        ]

    def build_convert_command(
        self, srt_path: Path, vtt_path: Path, language: str
    ) -> list[str]:
        """Convert an external .srt file to WebVTT."""
        return [
            str(self.tool_path),
            "-y",
            "-i",
            str(srt_path),
            "-c:s",
            "webvtt",
            "-metadata:s:s:0",
            f"language={language}",
            str(vtt_path),
        ]

    def _run(self, cmd: list[str], description: str) -> None:
        success, rc, stderr_lines = self._run_ffmpeg_with_timeout(
            cmd, description, timeout=self._timeout
        )
        if not success:
            raise ExtractionError(
                f"{description} failed with exit code {rc}", stderr_tail(stderr_lines)
            )

    def _convert_srt(
        self, spec: SubtitleTrackSpec, vtt_path: Path, output_dir: Path
    ) -> None:
        assert spec.source_path is not None
        if not spec.delay_ms:
            self._run(
                self.build_convert_command(spec.source_path, vtt_path, spec.language),
                f"subtitle {spec.language} conversion",
            )
            return

        logger.info(
            "Shifting %s by %d ms before conversion",
            spec.source_path.name,
            spec.delay_ms,
        )
        content = spec.source_path.read_text(encoding="utf-8", errors="replace")
        shifted_path = output_dir / f".subs_{spec.language}.shifted.srt"
        shifted_path.write_text(
            shift_srt_timings(content, spec.delay_ms), encoding="utf-8"
        )
        try:
            self._run(
                self.build_convert_command(shifted_path, vtt_path, spec.language),
                f"subtitle {spec.language} conversion",
            )
        finally:
            shifted_path.unlink(missing_ok=True)

    def _produce_vtt(
        self,
        input_path: Path,
        spec: SubtitleTrackSpec,
        vtt_path: Path,
        output_dir: Path,
    ) -> None:
        if spec.origin is SubtitleOrigin.EMBEDDED:
            if spec.source_index is None:
                raise ExtractionError(f"subtitle {spec.language} has no stream index")
            self._run(
                self.build_embedded_command(input_path, spec.source_index, vtt_path),
                f"subtitle {spec.language} extraction",
            )
        elif spec.source_path is None:
            raise ExtractionError(f"subtitle {spec.language} has no source file")
        elif spec.source_path.suffix.lower() == ".vtt":
            if spec.source_path.resolve() != vtt_path.resolve():
                shutil.copyfile(spec.source_path, vtt_path)
        else:
            self._convert_srt(spec, vtt_path, output_dir)

    def extract_subtitle(
        self, input_path: Path, spec: SubtitleTrackSpec, output_dir: Path
    ) -> UnitResult:
        """Produce the WebVTT file and playlist for one subtitle track.

        Args:
            input_path: Source file (used for embedded streams).
            spec: Selected subtitle track.
            output_dir: Package directory.

        Returns:
            UnitResult for the track. Failures are reported, not raised.
        """
        vtt_path = output_dir / subtitle_file_name(spec.language)
        playlist_path = output_dir / subtitle_playlist_name(spec.language)
        if vtt_path.is_file() and playlist_path.is_file():
            logger.info("Subtitle %s already extracted, skipping", spec.language)
            return UnitResult(
                UnitKind.SUBTITLE,
                spec.language,
                UnitOutcome.SKIPPED,
                "already extracted",
            )

        logger.info("Extracting %s subtitle (%s)", spec.name, spec.origin.value)
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            self._produce_vtt(input_path, spec, vtt_path, output_dir)
            content = vtt_path.read_text(encoding="utf-8", errors="replace")
            with_header = ensure_webvtt_header(content)
            if with_header is not content:
                vtt_path.write_text(with_header, encoding="utf-8")
            write_subtitle_playlist(output_dir, spec.language)
        except ExtractionError as e:
            logger.error("Subtitle %s failed: %s\n%s", spec.language, e, e.stderr_tail)
            vtt_path.unlink(missing_ok=True)
            return UnitResult(
                UnitKind.SUBTITLE,
                spec.language,
                UnitOutcome.FAILED,
                message=str(e),
                stderr_tail=e.stderr_tail,
            )
        except OSError as e:
            logger.error("Subtitle %s failed: %s", spec.language, e)
            vtt_path.unlink(missing_ok=True)
            return UnitResult(
                UnitKind.SUBTITLE, spec.language, UnitOutcome.FAILED, message=str(e)
            )

        logger.info("Subtitle %s complete", spec.language)
        return UnitResult(UnitKind.SUBTITLE, spec.language, UnitOutcome.SUCCESS)
