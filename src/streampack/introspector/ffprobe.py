"""FFprobe-based implementation of the StreamProber protocol."""

import json
import logging
import subprocess  # nosec B404 - subprocess is required for ffprobe invocation
from pathlib import Path

from streampack.introspector.interface import ProbeError
from streampack.introspector.parsers import parse_ffprobe_output
from streampack.introspector.types import StreamMetadata
from streampack.tools.registry import get_tool_path

logger = logging.getLogger(__name__)


class FFprobeProber:
    """ffprobe-based implementation of StreamProber protocol."""

    DEFAULT_TIMEOUT: int = 60

    def __init__(
        self, ffprobe_path: Path | None = None, timeout: int | None = None
    ) -> None:
        """Initialize the prober.

        Args:
            ffprobe_path: Optional explicit path to ffprobe. If not provided,
                uses the configured path or system PATH.
            timeout: Seconds before a hung ffprobe is abandoned.

        Raises:
            ProbeError: If ffprobe is not available.
        """
        self._ffprobe_path = ffprobe_path or self._get_configured_path()
        self._timeout = timeout if timeout is not None else self.DEFAULT_TIMEOUT

        if self._ffprobe_path is None:
            raise ProbeError(
                "ffprobe is not installed or not in PATH. "
                "Install ffmpeg, or set STREAMPACK_FFPROBE_PATH."
            )

    @staticmethod
    def _get_configured_path() -> Path | None:
        return get_tool_path("ffprobe")

    def probe(self, path: Path) -> StreamMetadata:
        """Extract stream metadata from a video file.

        Args:
            path: Path to the video file.

        Returns:
            StreamMetadata for the file.

        Raises:
            ProbeError: If the file cannot be probed.
        """
        if not path.exists():
            raise ProbeError(f"File not found: {path}")

        try:
            data = self._run_ffprobe(path)
        except subprocess.TimeoutExpired as e:
            raise ProbeError(f"ffprobe timed out for {path} after {e.timeout}s") from e
        except subprocess.CalledProcessError as e:
            raise ProbeError(f"ffprobe failed for {path}: {e.stderr or e}") from e
        except json.JSONDecodeError as e:
            raise ProbeError(f"Invalid ffprobe output for {path}: {e}") from e
        except OSError as e:
            raise ProbeError(f"Cannot run ffprobe for {path}: {e}") from e

        metadata = parse_ffprobe_output(path, data)
        logger.debug(
            "Probed %s: video=%s, %d audio, %d subtitle",
            path,
            metadata.video,
            len(metadata.audio_streams),
            len(metadata.subtitle_streams),
        )
        return metadata

    def _run_ffprobe(self, path: Path) -> dict:
        """Run ffprobe and return parsed JSON output.

        Raises:
            subprocess.CalledProcessError: If ffprobe returns non-zero.
            json.JSONDecodeError: If output is not valid JSON.
            ProbeError: If output is missing the streams key.
        """
        result = subprocess.run(  # nosec B603 - ffprobe path is validated
            [
                str(self._ffprobe_path),
                "-v",
                "error",
                "-print_format",
                "json",
                "-show_streams",
                "-show_format",
                str(path),
            ],
            capture_output=True,
            text=True,
            errors="replace",
            check=True,
            timeout=self._timeout,
        )
        data = json.loads(result.stdout)

        if not isinstance(data, dict) or "streams" not in data:
            raise ProbeError(
                f"Missing 'streams' in ffprobe output for {path}. "
                "File may be corrupted or not a valid media file."
            )
        return data
