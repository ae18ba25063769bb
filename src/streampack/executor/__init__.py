"""Encode executors: one FFmpeg unit of work per rendition or track."""

from streampack.executor.audio import AudioExtractor
from streampack.executor.exceptions import EncodeError, ExtractionError
from streampack.executor.ffmpeg_base import FFmpegExecutorBase, stderr_tail
from streampack.executor.interface import (
    UnitKind,
    UnitOutcome,
    UnitProgressCallback,
    UnitResult,
)
from streampack.executor.subtitles import (
    SubtitleExtractor,
    add_delay,
    ensure_webvtt_header,
    shift_srt_timings,
)
from streampack.executor.video import VideoEncoder

__all__ = [
    "AudioExtractor",
    "EncodeError",
    "ExtractionError",
    "FFmpegExecutorBase",
    "SubtitleExtractor",
    "UnitKind",
    "UnitOutcome",
    "UnitProgressCallback",
    "UnitResult",
    "VideoEncoder",
    "add_delay",
    "ensure_webvtt_header",
    "shift_srt_timings",
    "stderr_tail",
]
