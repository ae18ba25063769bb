"""Stream probing for source files."""

from streampack.introspector.ffprobe import FFprobeProber
from streampack.introspector.interface import ProbeError, StreamProber
from streampack.introspector.parsers import parse_ffprobe_output
from streampack.introspector.types import StreamInfo, StreamMetadata, VideoInfo

__all__ = [
    "FFprobeProber",
    "ProbeError",
    "StreamInfo",
    "StreamMetadata",
    "StreamProber",
    "VideoInfo",
    "parse_ffprobe_output",
]
