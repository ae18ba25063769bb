"""Audio and subtitle track selection.

Selection turns probed streams (and external subtitle candidates) into
the exact list of tracks to extract. Both selectors guarantee that a
non-empty result has exactly one default track.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from streampack.introspector.types import StreamInfo
from streampack.language import (
    DEFAULT_LANGUAGE_TABLE,
    LanguageEntry,
    LanguageTable,
    positional_audio_entry,
)
from streampack.policy.discovery import ExternalSubtitle, SubtitleOrigin
from streampack.policy.models import AudioPolicyModel, SubtitlePolicyModel

logger = logging.getLogger(__name__)

# Image-based subtitle codecs; WebVTT conversion needs text
BITMAP_SUBTITLE_CODECS = frozenset(
    {"hdmv_pgs_subtitle", "dvd_subtitle", "dvb_subtitle", "xsub"}
)


def is_text_subtitle(stream: StreamInfo) -> bool:
    """Whether a subtitle stream can be converted to WebVTT."""
    return (stream.codec or "").casefold() not in BITMAP_SUBTITLE_CODECS


@dataclass(frozen=True)
class AudioTrackSpec:
    """An audio stream selected for extraction."""

    source_index: int
    language: str
    """Canonical code; names the ``audio/<language>/`` directory."""

    manifest_language: str
    name: str
    is_default: bool = False


@dataclass(frozen=True)
class SubtitleTrackSpec:
    """A subtitle track selected for extraction."""

    language: str
    """Canonical code; names ``subs_<language>.vtt``."""

    manifest_language: str
    name: str
    origin: SubtitleOrigin
    is_default: bool = False
    source_index: int | None = None
    """Container stream index for embedded tracks."""

    source_path: Path | None = None
    """File path for external tracks."""

    delay_ms: int = 0


def _audio_entry(
    stream: StreamInfo, position: int, table: LanguageTable
) -> LanguageEntry:
    if stream.language:
        return table.resolve(stream.language)
    return positional_audio_entry(position, table)


def _default_position(entries: Sequence[LanguageEntry]) -> int:
    """Position of the first default candidate, or 0."""
    for i, entry in enumerate(entries):
        if entry.is_default_candidate:
            return i
    return 0


def select_audio(
    streams: Sequence[StreamInfo],
    policy: AudioPolicyModel,
    table: LanguageTable = DEFAULT_LANGUAGE_TABLE,
) -> list[AudioTrackSpec]:
    """Select audio streams for extraction.

    Tagged streams are resolved through the language table; untagged
    streams get a positional language. Streams outside the policy's
    allow-list are dropped, as is any later stream whose language was
    already selected. The default is the first English track, else the
    first selected track.

    Args:
        streams: Audio streams in container order.
        policy: Audio policy with the language allow-list.
        table: Language table.

    Returns:
        Selected tracks in stream order.
    """
    allowed = set(policy.languages) if policy.languages is not None else None
    selected: list[tuple[StreamInfo, LanguageEntry]] = []
    seen: set[str] = set()

    for position, stream in enumerate(streams):
        entry = _audio_entry(stream, position, table)
        if allowed is not None and entry.code not in allowed:
            logger.info(
                "Skipping audio stream %d (%s): not in allowed languages",
                stream.index,
                entry.code,
            )
            continue
        if entry.code in seen:
            logger.info(
                "Skipping audio stream %d: %s already selected",
                stream.index,
                entry.name,
            )
            continue
        seen.add(entry.code)
        selected.append((stream, entry))

    default_pos = _default_position([entry for _, entry in selected])
    return [
        AudioTrackSpec(
            source_index=stream.index,
            language=entry.code,
            manifest_language=entry.manifest_code,
            name=entry.name,
            is_default=i == default_pos,
        )
        for i, (stream, entry) in enumerate(selected)
    ]


def select_subtitles(
    streams: Sequence[StreamInfo],
    external_candidates: Sequence[ExternalSubtitle],
    policy: SubtitlePolicyModel,
    table: LanguageTable = DEFAULT_LANGUAGE_TABLE,
) -> list[SubtitleTrackSpec]:
    """Select subtitle tracks for extraction.

    Embedded text streams are used when the container has any; external
    candidates only otherwise. Image-based streams (PGS, VobSub) cannot
    be converted to WebVTT and count as absent. Only languages in the policy's list are
    retained, the first candidate per language wins, and English is
    forced default when present.

    Args:
        streams: Embedded subtitle streams in container order.
        external_candidates: External files in priority order.
        policy: Subtitle policy with the retained languages.
        table: Language table.

    Returns:
        Selected tracks in stream (or priority) order.
    """
    allowed = set(policy.languages)
    selected: list[tuple[LanguageEntry, SubtitleTrackSpec]] = []
    seen: set[str] = set()

    def accept(language: str | None, describe: str) -> LanguageEntry | None:
        if not language:
            logger.debug("Skipping %s: unknown language", describe)
            return None
        entry = table.resolve(language)
        if entry.code not in allowed:
            logger.debug(
                "Skipping %s (%s): not in allowed languages", describe, entry.code
            )
            return None
        if entry.code in seen:
            logger.debug("Skipping %s: %s already selected", describe, entry.name)
            return None
        seen.add(entry.code)
        return entry

    text_streams = []
    for stream in streams:
        if not is_text_subtitle(stream):
            logger.info(
                "Skipping subtitle stream %d: %s is image-based",
                stream.index,
                stream.codec,
            )
            continue
        text_streams.append(stream)

    if text_streams:
        for stream in text_streams:
            entry = accept(stream.language, f"subtitle stream {stream.index}")
            if entry is None:
                continue
            selected.append(
                (
                    entry,
                    SubtitleTrackSpec(
                        language=entry.code,
                        manifest_language=entry.manifest_code,
                        name=entry.name,
                        origin=SubtitleOrigin.EMBEDDED,
                        source_index=stream.index,
                    ),
                )
            )
    else:
        for candidate in external_candidates:
            entry = accept(candidate.language, str(candidate.path))
            if entry is None:
                continue
            selected.append(
                (
                    entry,
                    SubtitleTrackSpec(
                        language=entry.code,
                        manifest_language=entry.manifest_code,
                        name=entry.name,
                        origin=candidate.origin,
                        source_path=candidate.path,
                        delay_ms=candidate.delay_ms,
                    ),
                )
            )

    default_pos = _default_position([entry for entry, _ in selected])
    return [
        SubtitleTrackSpec(
            language=spec.language,
            manifest_language=spec.manifest_language,
            name=spec.name,
            origin=spec.origin,
            is_default=i == default_pos,
            source_index=spec.source_index,
            source_path=spec.source_path,
            delay_ms=spec.delay_ms,
        )
        for i, (_, spec) in enumerate(selected)
    ]
