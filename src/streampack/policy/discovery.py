"""Discovery of external subtitle files next to a source.

Candidates are returned in priority order:

1. One ``.srt`` file in the source's own folder (the "sidecar"): the one
   named after the source if there is one, else the first by name.
   Its language is taken from policy, not from the file name, and it
   carries the policy's timing delay.
2. ``.srt`` files inside a conventionally named subtitle folder
   (``subs``, ``Subs``, ``subtitles``, ``Subtitles``). English is
   recognized from the file name; other languages from a canonical
   language code token (``Movie.hin.srt``). Files named after the
   source come first, so siblings sharing a folder keep their own.
3. Ready-made ``subs_<code>.vtt`` files next to the source.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from streampack.language import DEFAULT_LANGUAGE_TABLE, LanguageTable
from streampack.policy.models import SubtitlePolicyModel

logger = logging.getLogger(__name__)

_ENGLISH_TOKENS = frozenset({"en", "eng", "english"})
_TOKEN_SPLIT = re.compile(r"[^0-9a-zA-Z]+")


class SubtitleOrigin(Enum):
    """Where a subtitle track comes from."""

    EMBEDDED = "embedded"
    SIDECAR = "sidecar"
    SUBTITLE_DIR = "subtitle_dir"
    PREDEFINED = "predefined"


@dataclass(frozen=True)
class ExternalSubtitle:
    """A subtitle file found outside the container."""

    path: Path
    language: str | None
    """Canonical language code, or None if it could not be determined."""

    origin: SubtitleOrigin
    delay_ms: int = 0


def _srt_files(directory: Path) -> list[Path]:
    """List .srt files in a directory, sorted by name for stable ordering."""
    try:
        files = [
            p
            for p in directory.iterdir()
            if p.is_file() and p.suffix.lower() == ".srt"
        ]
    except OSError as e:
        logger.warning("Cannot list %s: %s", directory, e)
        return []
    return sorted(files, key=lambda p: p.name)


def _name_rank(srt_path: Path, input_stem: str) -> int:
    """0 for ``<stem>.srt``, 1 for ``<stem>.<anything>.srt``, 2 otherwise."""
    stem = srt_path.stem.casefold()
    source = input_stem.casefold()
    if stem == source:
        return 0
    if stem.startswith(source) and not stem[len(source)].isalnum():
        return 1
    return 2


def _by_source_name(files: list[Path], input_stem: str) -> list[Path]:
    # sorted() is stable, so name order is kept within a rank
    return sorted(files, key=lambda p: _name_rank(p, input_stem))


def guess_language_from_name(
    srt_path: Path, input_stem: str, table: LanguageTable = DEFAULT_LANGUAGE_TABLE
) -> str | None:
    """Guess a subtitle file's language from its name.

    A file named like the source, or with an English token in its name,
    is English. Otherwise the last token that is a canonical three-letter
    code in the table wins.

    Args:
        srt_path: Subtitle file.
        input_stem: Source file name without extension.
        table: Language table.

    Returns:
        Canonical code, or None if unknown.
    """
    stem = srt_path.stem
    if stem == input_stem:
        return "eng"
    tokens = [t.casefold() for t in _TOKEN_SPLIT.split(stem) if t]
    if _ENGLISH_TOKENS.intersection(tokens):
        return "eng"
    for token in reversed(tokens):
        entry = table.lookup(token)
        if entry is not None and entry.code == token:
            return entry.code
    return None


def discover_external_subtitles(
    input_path: Path,
    policy: SubtitlePolicyModel,
    table: LanguageTable = DEFAULT_LANGUAGE_TABLE,
) -> list[ExternalSubtitle]:
    """Find external subtitle candidates for a source file.

    Args:
        input_path: Local path of the source file.
        policy: Subtitle policy (sidecar language, delay, folder names).
        table: Language table.

    Returns:
        Candidates in priority order. Unknown-language candidates are
        included; the selector decides what is retained.
    """
    folder = input_path.parent
    candidates: list[ExternalSubtitle] = []

    sidecars = _by_source_name(_srt_files(folder), input_path.stem)
    if sidecars:
        if len(sidecars) > 1:
            logger.info(
                "Found %d .srt files next to %s; using %s",
                len(sidecars),
                input_path.name,
                sidecars[0].name,
            )
        candidates.append(
            ExternalSubtitle(
                path=sidecars[0],
                language=policy.sidecar_language,
                origin=SubtitleOrigin.SIDECAR,
                delay_ms=policy.sidecar_delay_ms,
            )
        )

    seen_dirs: set[Path] = set()
    for name in policy.directories:
        subdir = folder / name
        if not subdir.is_dir():
            continue
        # subs/Subs are the same folder on case-insensitive filesystems
        key = subdir.resolve()
        if key in seen_dirs:
            continue
        seen_dirs.add(key)
        for srt in _by_source_name(_srt_files(subdir), input_path.stem):
            candidates.append(
                ExternalSubtitle(
                    path=srt,
                    language=guess_language_from_name(srt, input_path.stem, table),
                    origin=SubtitleOrigin.SUBTITLE_DIR,
                )
            )

    for code in policy.predefined:
        vtt = folder / f"subs_{code}.vtt"
        if vtt.is_file():
            candidates.append(
                ExternalSubtitle(
                    path=vtt, language=code, origin=SubtitleOrigin.PREDEFINED
                )
            )

    logger.debug("External subtitle candidates for %s: %s", input_path, candidates)
    return candidates
