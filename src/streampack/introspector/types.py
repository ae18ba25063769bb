"""Stream metadata types produced by the prober."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class VideoInfo:
    """Dimensions of the primary video stream."""

    width: int
    height: int
    codec: str | None = None


@dataclass(frozen=True)
class StreamInfo:
    """One audio or subtitle stream of a container."""

    index: int
    """Absolute stream index within the container (ffmpeg ``-map 0:<index>``)."""

    language: str | None = None
    """Language tag as written in the container, or None if untagged."""

    codec: str | None = None
    title: str | None = None


@dataclass(frozen=True)
class StreamMetadata:
    """Everything the pipeline needs to know about a source file."""

    video: VideoInfo | None
    audio_streams: tuple[StreamInfo, ...] = field(default_factory=tuple)
    subtitle_streams: tuple[StreamInfo, ...] = field(default_factory=tuple)
    duration_seconds: float | None = None
