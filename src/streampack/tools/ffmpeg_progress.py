"""Parsing of FFmpeg status lines.

While encoding, FFmpeg rewrites a status line on stderr:

    frame= 1234 fps= 30 q=28.0 size= 10240kB time=00:01:23.45 bitrate=...

Audio and subtitle runs have no frame counter but still report ``time=``,
which is all a percentage needs.
"""

import re
from dataclasses import dataclass

_FRAME = re.compile(r"\bframe=\s*(\d+)")
_TIME = re.compile(r"\btime=\s*(\d+):(\d{2}):(\d{2})(?:\.(\d+))?")
_SPEED = re.compile(r"\bspeed=\s*([\d.]+)x")


@dataclass
class FFmpegProgress:
    """One parsed status line."""

    frame: int | None = None
    out_time_us: int | None = None
    """Encoded media time so far, in microseconds."""

    speed: float | None = None
    """Encode speed as a multiple of real time (``1.2`` for ``speed=1.2x``)."""

    @property
    def out_time_seconds(self) -> float | None:
        if self.out_time_us is None:
            return None
        return self.out_time_us / 1_000_000

    def get_percent(self, duration_seconds: float | None) -> float:
        """Share of ``duration_seconds`` encoded so far, from 0.0 to 100.0.

        Returns 0.0 when either the duration or the encoded time is unknown.
        """
        out_time = self.out_time_seconds
        if not duration_seconds or duration_seconds < 0 or out_time is None:
            return 0.0
        return min(100.0, out_time * 100 / duration_seconds)


def _time_us(match: re.Match[str]) -> int:
    hours, minutes, seconds, fraction = match.groups()
    whole = int(hours) * 3600 + int(minutes) * 60 + int(seconds)
    # Fraction digits vary with the FFmpeg version ("45" or "450000")
    micros = int((fraction or "0").ljust(6, "0")[:6])
    return whole * 1_000_000 + micros


def parse_stderr_progress(line: str) -> FFmpegProgress | None:
    """Parse one stderr line.

    Returns:
        FFmpegProgress, or None if the line is not a status line.
    """
    frame = _FRAME.search(line)
    time = _TIME.search(line)
    if frame is None and time is None:
        return None

    speed = _SPEED.search(line)
    return FFmpegProgress(
        frame=int(frame.group(1)) if frame else None,
        out_time_us=_time_us(time) if time else None,
        speed=float(speed.group(1)) if speed else None,
    )
