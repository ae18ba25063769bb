"""Base class for FFmpeg-based executors.

Provides lazy tool path resolution and a threaded FFmpeg runner with
timeout and progress support.
"""

import logging
import shutil
import subprocess  # nosec B404 - subprocess is required for FFmpeg invocation
import threading
import time
from abc import ABC
from collections.abc import Callable
from pathlib import Path

from streampack.tools.ffmpeg_progress import FFmpegProgress, parse_stderr_progress
from streampack.tools.registry import require_tool

logger = logging.getLogger(__name__)

STDERR_TAIL_LINES = 20


def stderr_tail(lines: list[str], count: int = STDERR_TAIL_LINES) -> str:
    """Join the last lines of captured stderr, skipping progress chatter."""
    meaningful = [
        line.rstrip() for line in lines if line.strip() and "frame=" not in line
    ]
    return "\n".join(meaningful[-count:])


class FFmpegExecutorBase(ABC):
    """Base class for executors that use FFmpeg.

    Provides shared functionality for FFmpeg-based executors including:
    - Lazy tool path resolution
    - Output directory preparation
    - Threaded stderr reading with timeout
    """

    DEFAULT_TIMEOUT: int | None = None  # No limit; encodes of long films take hours
    STDERR_DRAIN_TIMEOUT: float = 5.0  # Wait for the stderr reader after a kill

    def __init__(
        self, ffmpeg_path: Path | None = None, timeout: float | None = None
    ) -> None:
        """Initialize the executor.

        Args:
            ffmpeg_path: Explicit path to ffmpeg. None resolves it on first use.
            timeout: Per-invocation timeout in seconds. None means no limit.
        """
        self._tool_path = ffmpeg_path
        self._timeout = timeout if timeout is not None else self.DEFAULT_TIMEOUT

    @property
    def tool_path(self) -> Path:
        """Get path to ffmpeg, verifying availability.

        Raises:
            RuntimeError: If ffmpeg is not available.
        """
        if self._tool_path is None:
            self._tool_path = require_tool("ffmpeg")
        return self._tool_path

    @staticmethod
    def reset_directory(path: Path) -> None:
        """Remove a directory's contents left by an earlier attempt and recreate it."""
        if path.exists():
            shutil.rmtree(path)
        path.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def percent_callback(
        duration_seconds: float | None,
        report: Callable[[float], None] | None,
    ) -> Callable[[FFmpegProgress], None] | None:
        """Adapt a percentage reporter to an FFmpegProgress callback."""
        if report is None or not duration_seconds:
            return None

        def on_progress(progress: FFmpegProgress) -> None:
            report(progress.get_percent(duration_seconds))

        return on_progress

    @staticmethod
    def _read_stderr(
        process: subprocess.Popen[str],
        lines: list[str],
        progress_callback: Callable[[FFmpegProgress], None] | None,
    ) -> None:
        """Collect stderr lines until EOF, forwarding status lines."""
        try:
            assert process.stderr is not None
            for line in process.stderr:
                lines.append(line)
                if progress_callback is None:
                    continue
                progress = parse_stderr_progress(line)
                if progress is None:
                    continue
                try:
                    progress_callback(progress)
                except Exception as e:
                    logger.warning("Progress callback error: %s", e)
        except (ValueError, OSError) as e:
            # Pipe closed after a kill
            logger.debug("Stderr reader stopped: %s", e)

    def _run_ffmpeg_with_timeout(
        self,
        cmd: list[str],
        description: str,
        timeout: float | None = None,
        progress_callback: Callable[[FFmpegProgress], None] | None = None,
    ) -> tuple[bool, int, list[str]]:
        """Run FFmpeg, reading stderr on a thread so a timeout can fire.

        Progress callbacks run on the reader thread.

        Args:
            cmd: FFmpeg command arguments.
            description: Description for logging (e.g., "720p (nvenc)").
            timeout: Maximum time in seconds for the operation. None = no limit.
            progress_callback: Optional callback for progress updates.

        Returns:
            Tuple of (success, return_code, stderr_lines). return_code is
            -1 if FFmpeg could not start or timed out.
        """
        logger.debug("Running %s: %s", description, " ".join(cmd))
        try:
            process = subprocess.Popen(  # nosec B603
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except OSError as e:
            logger.error("Could not start FFmpeg for %s: %s", description, e)
            return (False, -1, [str(e)])

        lines: list[str] = []
        reader = threading.Thread(
            target=self._read_stderr,
            args=(process, lines, progress_callback),
            daemon=True,
        )
        reader.start()

        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            remaining = None if deadline is None else deadline - time.monotonic()
            if remaining is not None and remaining <= 0:
                return self._kill(process, reader, description, timeout, lines)
            if not reader.is_alive():
                break
            reader.join(timeout=1.0 if remaining is None else min(remaining, 1.0))

        process.wait()
        return (process.returncode == 0, process.returncode, list(lines))

    def _kill(
        self,
        process: subprocess.Popen[str],
        reader: threading.Thread,
        description: str,
        timeout: float | None,
        lines: list[str],
    ) -> tuple[bool, int, list[str]]:
        logger.warning("%s timed out after %s seconds", description, timeout)
        process.kill()
        if process.stderr is not None:
            try:
                process.stderr.close()
            except OSError:  # nosec B110 - the process is gone either way
                pass
        process.wait()
        reader.join(timeout=self.STDERR_DRAIN_TIMEOUT)
        if reader.is_alive():
            logger.error("Stderr reader for %s is stuck, abandoning it", description)
        return (False, -1, list(lines))
