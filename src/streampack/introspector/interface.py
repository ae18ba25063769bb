"""StreamProber interface for source stream discovery."""

from pathlib import Path
from typing import Protocol

from streampack.exceptions import StreamPackError
from streampack.introspector.types import StreamMetadata


class ProbeError(StreamPackError):
    """Raised when a source file cannot be probed.

    A source that fails to probe will not become readable by retrying, so
    callers treat this as fatal for the entry.
    """

    pass


class StreamProber(Protocol):
    """Protocol for stream probing implementations."""

    def probe(self, path: Path) -> StreamMetadata:
        """Extract stream metadata from a video file.

        Args:
            path: Path to the video file.

        Returns:
            StreamMetadata describing the video, audio and subtitle streams.

        Raises:
            ProbeError: If the file cannot be probed.
        """
        ...
