"""Per-track playlist helpers.

FFmpeg writes the rendition and audio playlists itself. Subtitles are a
single WebVTT file per language, which players reach through a one-entry
VOD playlist written here.
"""

import math
import re
from pathlib import Path

ENDLIST_TAG = "#EXT-X-ENDLIST"

# Cue timing line end, "00:01:02.345" or "01:02.345"
_VTT_CUE_END = re.compile(r"-->\s*(?:(\d+):)?(\d{2}):(\d{2})[.,](\d{3})")


def is_complete_playlist(path: Path) -> bool:
    """Check whether a media playlist exists and was fully written.

    FFmpeg appends ``#EXT-X-ENDLIST`` only when a VOD playlist finishes,
    so an interrupted encode leaves a playlist without it.
    """
    try:
        return ENDLIST_TAG in path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return False


def subtitle_playlist_name(code: str) -> str:
    """Playlist file name for a subtitle language."""
    return f"subs_{code}.m3u8"


def subtitle_file_name(code: str) -> str:
    """WebVTT file name for a subtitle language."""
    return f"subs_{code}.vtt"


def vtt_duration(content: str) -> float | None:
    """Return the end time of the last cue in WebVTT text, in seconds."""
    last: float | None = None
    for match in _VTT_CUE_END.finditer(content):
        hours = int(match.group(1) or 0)
        end = (
            hours * 3600
            + int(match.group(2)) * 60
            + int(match.group(3))
            + int(match.group(4)) / 1000
        )
        if last is None or end > last:
            last = end
    return last


def build_subtitle_playlist(vtt_name: str, duration_seconds: float | None) -> str:
    """Build a single-segment VOD playlist for a WebVTT file.

    Args:
        vtt_name: WebVTT file name, relative to the playlist.
        duration_seconds: Length of the subtitle track. None or zero
            produces a one-second segment.

    Returns:
        Playlist text.
    """
    if not duration_seconds or duration_seconds <= 0:
        duration_seconds = 1.0
    target = max(1, math.ceil(duration_seconds))
    return (
        "#EXTM3U\n"
        "#EXT-X-VERSION:3\n"
        f"#EXT-X-TARGETDURATION:{target}\n"
        "#EXT-X-MEDIA-SEQUENCE:0\n"
        "#EXT-X-PLAYLIST-TYPE:VOD\n"
        f"#EXTINF:{duration_seconds:.3f},\n"
        f"{vtt_name}\n"
        f"{ENDLIST_TAG}\n"
    )


def write_subtitle_playlist(output_dir: Path, code: str) -> Path:
    """Write ``subs_<code>.m3u8`` for an existing ``subs_<code>.vtt``.

    Raises:
        OSError: If the WebVTT file cannot be read or the playlist written.
    """
    vtt_path = output_dir / subtitle_file_name(code)
    content = vtt_path.read_text(encoding="utf-8", errors="replace")
    playlist_path = output_dir / subtitle_playlist_name(code)
    playlist_path.write_text(
        build_subtitle_playlist(vtt_path.name, vtt_duration(content)),
        encoding="utf-8",
    )
    return playlist_path
