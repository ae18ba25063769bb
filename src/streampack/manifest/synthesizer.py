"""Master playlist synthesis.

The master playlist is rebuilt from what is actually on disk, not from
what was planned, so a package whose encodes partially failed still
references only playable tracks. Output is deterministic: the same tree
always produces byte-identical text.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path

from streampack.exceptions import StreamPackError
from streampack.language import DEFAULT_LANGUAGE_TABLE, LanguageTable, describe_code
from streampack.manifest.playlists import (
    is_complete_playlist,
    subtitle_file_name,
    subtitle_playlist_name,
    write_subtitle_playlist,
)
from streampack.paths.naming import MASTER_PLAYLIST

logger = logging.getLogger(__name__)

AUDIO_GROUP = "audio"
SUBTITLE_GROUP = "subs"
AUDIO_CODEC = "mp4a.40.2"

_RENDITION_DIR = re.compile(r"^(\d+)p$")
_SUBTITLE_FILE = re.compile(r"^subs_(.+)\.vtt$")


class ManifestError(StreamPackError):
    """Master playlist could not be produced."""


@dataclass(frozen=True)
class VariantInfo:
    """Stream attributes advertised for a rendition."""

    bandwidth: int
    resolution: str
    codecs: str


VARIANT_INFO: dict[str, VariantInfo] = {
    "1080p": VariantInfo(8500000, "1920x1080", "hev1.1.6.L153.B0"),
    "720p": VariantInfo(5500000, "1280x720", "hev1.1.6.L123.B0"),
    "480p": VariantInfo(2500000, "854x480", "hev1.1.6.L93.B0"),
    "360p": VariantInfo(1500000, "640x360", "hev1.1.6.L93.B0"),
}


def variant_info(rendition: str) -> VariantInfo:
    """Get advertised attributes for a rendition directory name."""
    info = VARIANT_INFO.get(rendition)
    if info is not None:
        return info
    height = rendition[:-1] if rendition.endswith("p") else rendition
    return VariantInfo(2500000, f"?x{height}", "hev1.1.6.L123.B0")


@dataclass(frozen=True)
class MediaTrack:
    """An audio or subtitle track found in the package."""

    code: str
    name: str
    manifest_language: str
    uri: str
    is_default: bool = False


def find_renditions(output_dir: Path) -> list[str]:
    """Find completed rendition directories, highest first."""
    found: list[tuple[int, str]] = []
    for child in output_dir.iterdir():
        match = _RENDITION_DIR.match(child.name)
        if not match or not child.is_dir():
            continue
        if is_complete_playlist(child / "stream.m3u8"):
            found.append((int(match.group(1)), child.name))
        else:
            logger.warning("Ignoring incomplete rendition %s", child)
    return [name for _, name in sorted(found, reverse=True)]


def find_audio_codes(output_dir: Path) -> list[str]:
    """Find extracted audio languages, in name order."""
    audio_root = output_dir / "audio"
    if not audio_root.is_dir():
        return []
    return sorted(
        child.name
        for child in audio_root.iterdir()
        if child.is_dir() and is_complete_playlist(child / "playlist.m3u8")
    )


def find_subtitle_codes(
    output_dir: Path, allowed: Iterable[str] | None = None
) -> list[str]:
    """Find extracted subtitle languages, in name order.

    Args:
        output_dir: Package directory.
        allowed: Languages to keep. None keeps every ``subs_<code>.vtt``.
    """
    allowed_set = set(allowed) if allowed is not None else None
    codes = []
    for child in output_dir.iterdir():
        match = _SUBTITLE_FILE.match(child.name)
        if not match or not child.is_file():
            continue
        code = match.group(1)
        if allowed_set is not None and code not in allowed_set:
            logger.debug("Ignoring subtitle %s: not in allowed languages", child.name)
            continue
        codes.append(code)
    return sorted(codes)


def _apply_order(found: Sequence[str], order: Sequence[str] | None) -> list[str]:
    """Put codes named in ``order`` first, then the rest in found order."""
    if not order:
        return list(found)
    head = [code for code in dict.fromkeys(order) if code in found]
    return head + [code for code in found if code not in head]


def _tracks(
    codes: Sequence[str], uri_for: Callable[[str], str], table: LanguageTable
) -> list[MediaTrack]:
    entries = [describe_code(code, table) for code in codes]
    default_pos = next(
        (i for i, entry in enumerate(entries) if entry.is_default_candidate), 0
    )
    return [
        MediaTrack(
            code=code,
            name=entry.name,
            manifest_language=entry.manifest_code,
            uri=uri_for(code),
            is_default=i == default_pos,
        )
        for i, (code, entry) in enumerate(zip(codes, entries, strict=True))
    ]


def _yes_no(flag: bool) -> str:
    return "YES" if flag else "NO"


def render_master_playlist(
    renditions: Sequence[str],
    audio: Sequence[MediaTrack],
    subtitles: Sequence[MediaTrack],
) -> str:
    """Render master playlist text.

    Raises:
        ManifestError: If there are no renditions.
    """
    if not renditions:
        raise ManifestError("No completed renditions to reference")

    lines = ["#EXTM3U", ""]

    if audio:
        lines.append("# Audio tracks")
        for track in audio:
            lines.append(
                f'#EXT-X-MEDIA:TYPE=AUDIO,GROUP-ID="{AUDIO_GROUP}",'
                f'NAME="{track.name}",LANGUAGE="{track.manifest_language}",'
                f'URI="{track.uri}",DEFAULT={_yes_no(track.is_default)}'
            )
        lines.append("")

    if subtitles:
        lines.append("# Subtitle tracks")
        for track in subtitles:
            lines.append(
                f'#EXT-X-MEDIA:TYPE=SUBTITLES,GROUP-ID="{SUBTITLE_GROUP}",'
                f'NAME="{track.name}",LANGUAGE="{track.manifest_language}",'
                f'URI="{track.uri}",DEFAULT={_yes_no(track.is_default)},'
                "AUTOSELECT=YES"
            )
        lines.append("")

    lines.append("# Video streams")
    for rendition in renditions:
        info = variant_info(rendition)
        stream_inf = (
            f"#EXT-X-STREAM-INF:BANDWIDTH={info.bandwidth},"
            f'RESOLUTION={info.resolution},CODECS="{info.codecs},{AUDIO_CODEC}"'
        )
        if audio:
            stream_inf += f',AUDIO="{AUDIO_GROUP}"'
        if subtitles:
            stream_inf += f',SUBTITLES="{SUBTITLE_GROUP}"'
        lines.append(stream_inf)
        lines.append(f"{rendition}/stream.m3u8")
        lines.append("")

    return "\n".join(lines) + "\n"


def synthesize(
    output_dir: Path,
    audio_order: Sequence[str] | None = None,
    subtitle_order: Sequence[str] | None = None,
    subtitle_languages: Iterable[str] | None = None,
    table: LanguageTable = DEFAULT_LANGUAGE_TABLE,
) -> str:
    """Build master playlist text for a package directory.

    Args:
        output_dir: Package directory.
        audio_order: Audio codes to list first, in this order (normally the
            source stream order). Other audio tracks follow in name order.
        subtitle_order: Same, for subtitle codes.
        subtitle_languages: Subtitle allow-list. None keeps all.
        table: Language table for display names and manifest codes.

    Returns:
        Master playlist text.

    Raises:
        ManifestError: If the directory cannot be read or holds no
            completed rendition.
    """
    try:
        renditions = find_renditions(output_dir)
        audio_codes = _apply_order(find_audio_codes(output_dir), audio_order)
        subtitle_codes = _apply_order(
            find_subtitle_codes(output_dir, subtitle_languages), subtitle_order
        )
    except OSError as e:
        raise ManifestError(f"Cannot scan {output_dir}: {e}") from e

    audio = _tracks(audio_codes, lambda c: f"audio/{c}/playlist.m3u8", table)
    subtitles = _tracks(subtitle_codes, subtitle_playlist_name, table)
    return render_master_playlist(renditions, audio, subtitles)


def write_master_playlist(
    output_dir: Path,
    audio_order: Sequence[str] | None = None,
    subtitle_order: Sequence[str] | None = None,
    subtitle_languages: Iterable[str] | None = None,
    table: LanguageTable = DEFAULT_LANGUAGE_TABLE,
) -> Path:
    """Synthesize and write ``master.m3u8``.

    Subtitle playlists missing next to their WebVTT file are written
    first. The master playlist is written to a temporary name and renamed
    so that its presence always means a finished package.

    Returns:
        Path to the master playlist.

    Raises:
        ManifestError: If synthesis or any write fails.
    """
    text = synthesize(
        output_dir,
        audio_order=audio_order,
        subtitle_order=subtitle_order,
        subtitle_languages=subtitle_languages,
        table=table,
    )
    manifest_path = output_dir / MASTER_PLAYLIST
    tmp_path = manifest_path.with_name(f".{MASTER_PLAYLIST}.tmp")
    try:
        for code in find_subtitle_codes(output_dir, subtitle_languages):
            if not (output_dir / subtitle_playlist_name(code)).exists():
                logger.info("Writing missing playlist for %s", subtitle_file_name(code))
                write_subtitle_playlist(output_dir, code)
        tmp_path.write_text(text, encoding="utf-8")
        tmp_path.replace(manifest_path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise ManifestError(f"Cannot write {manifest_path}: {e}") from e

    logger.info("Wrote %s", manifest_path)
    return manifest_path
