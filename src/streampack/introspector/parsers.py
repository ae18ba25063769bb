"""Parsing helpers for ffprobe JSON output."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from streampack.introspector.interface import ProbeError
from streampack.introspector.types import StreamInfo, StreamMetadata, VideoInfo

logger = logging.getLogger(__name__)


def _language_tag(stream: dict[str, Any]) -> str | None:
    """Return the stream's language tag, or None if missing or blank."""
    tags = stream.get("tags") or {}
    language = tags.get("language") or tags.get("LANGUAGE")
    if not language or not str(language).strip():
        return None
    return str(language).strip()


def _title_tag(stream: dict[str, Any]) -> str | None:
    tags = stream.get("tags") or {}
    return tags.get("title") or tags.get("TITLE")


def parse_duration(data: dict[str, Any]) -> float | None:
    """Parse the container duration in seconds, if present."""
    value = (data.get("format") or {}).get("duration")
    if value in (None, "N/A"):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_ffprobe_output(path: Path, data: dict[str, Any]) -> StreamMetadata:
    """Build StreamMetadata from parsed ffprobe JSON.

    The first video stream that is not an attached picture (cover art)
    provides the source dimensions. Audio and subtitle streams keep the
    container's order.

    Args:
        path: Source path (for error messages).
        data: Parsed ffprobe JSON with a ``streams`` list.

    Returns:
        StreamMetadata for the file.

    Raises:
        ProbeError: If the output has no usable video stream.
    """
    video: VideoInfo | None = None
    audio: list[StreamInfo] = []
    subtitles: list[StreamInfo] = []

    for stream in data.get("streams", []):
        codec_type = stream.get("codec_type")
        index = stream.get("index")
        if index is None:
            logger.debug("Skipping stream without index in %s", path)
            continue

        if codec_type == "video":
            disposition = stream.get("disposition") or {}
            if disposition.get("attached_pic"):
                continue
            if video is None:
                width = stream.get("width")
                height = stream.get("height")
                if not width or not height:
                    raise ProbeError(f"Video stream without dimensions in {path}")
                video = VideoInfo(
                    width=int(width),
                    height=int(height),
                    codec=stream.get("codec_name"),
                )
        elif codec_type == "audio":
            audio.append(
                StreamInfo(
                    index=int(index),
                    language=_language_tag(stream),
                    codec=stream.get("codec_name"),
                    title=_title_tag(stream),
                )
            )
        elif codec_type == "subtitle":
            subtitles.append(
                StreamInfo(
                    index=int(index),
                    language=_language_tag(stream),
                    codec=stream.get("codec_name"),
                    title=_title_tag(stream),
                )
            )

    if video is None:
        raise ProbeError(f"No video stream found in {path}")

    return StreamMetadata(
        video=video,
        audio_streams=tuple(audio),
        subtitle_streams=tuple(subtitles),
        duration_seconds=parse_duration(data),
    )
