"""Language code lookup for audio and subtitle tracks.

Container language tags arrive in several forms: ISO 639-1 two-letter
codes ("en"), ISO 639-2 bibliographic or terminological codes ("ger",
"deu") and a few legacy full-word tags written by older muxers
("korean", "chinese"). This module folds all of them into one canonical
entry per language.

The canonical code (ISO 639-2/B) names output directories and files
(``audio/eng/``, ``subs_eng.vtt``). The manifest code (ISO 639-1) is what
goes into the LANGUAGE attribute of the master playlist.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType


@dataclass(frozen=True)
class LanguageEntry:
    """Canonical description of one language."""

    code: str
    """Canonical three-letter code used for directory and file names."""

    manifest_code: str
    """Two-letter code written to the manifest LANGUAGE attribute."""

    name: str
    """Display name shown by players."""

    is_default_candidate: bool = False
    """True if a track in this language should be preferred as default."""


class LanguageTable:
    """Immutable mapping from language tags to canonical entries.

    Tags are matched case-insensitively. The table is built once and
    shared; lookups never mutate it.
    """

    def __init__(self, aliases: Mapping[str, LanguageEntry]) -> None:
        """Initialize the table.

        Args:
            aliases: Mapping of every accepted tag to its entry. Each
                entry's canonical code is registered automatically.
        """
        table: dict[str, LanguageEntry] = {}
        for tag, entry in aliases.items():
            table[tag.casefold()] = entry
            table.setdefault(entry.code.casefold(), entry)
        self._table = MappingProxyType(table)

    def __contains__(self, tag: object) -> bool:
        return isinstance(tag, str) and tag.casefold() in self._table

    def __len__(self) -> int:
        return len(self._table)

    def __iter__(self) -> Iterator[str]:
        return iter(self._table)

    def lookup(self, tag: str | None) -> LanguageEntry | None:
        """Return the entry for a tag, or None if the tag is unknown.

        Args:
            tag: Language tag as found in the container (any case).

        Returns:
            Matching LanguageEntry, or None.
        """
        if not tag:
            return None
        return self._table.get(tag.strip().casefold())

    def resolve(self, tag: str) -> LanguageEntry:
        """Return the entry for a tag, synthesizing one for unknown tags.

        Unknown tags pass through unchanged as the canonical code, with a
        capitalized display name, the first two letters as manifest code,
        and no default preference.

        Args:
            tag: Non-empty language tag.

        Returns:
            LanguageEntry for the tag.
        """
        entry = self.lookup(tag)
        if entry is not None:
            return entry
        normalized = tag.strip().casefold()
        return LanguageEntry(
            code=normalized,
            manifest_code=normalized[:2],
            name=normalized.capitalize(),
            is_default_candidate=False,
        )

    def canonical_code(self, tag: str) -> str:
        """Return the canonical code for a tag (unknown tags pass through)."""
        return self.resolve(tag).code


_ENGLISH = LanguageEntry("eng", "en", "English", is_default_candidate=True)
_HINDI = LanguageEntry("hin", "hi", "Hindi")
_FRENCH = LanguageEntry("fre", "fr", "French")
_SPANISH = LanguageEntry("spa", "es", "Spanish")
_GERMAN = LanguageEntry("ger", "de", "German")
_JAPANESE = LanguageEntry("jpn", "ja", "Japanese")
_KOREAN = LanguageEntry("kor", "ko", "Korean")
_CHINESE = LanguageEntry("chi", "zh", "Chinese")
_TAMIL = LanguageEntry("tam", "ta", "Tamil")
_TELUGU = LanguageEntry("tel", "te", "Telugu")
_MALAYALAM = LanguageEntry("mal", "ml", "Malayalam")
_GUJARATI = LanguageEntry("guj", "gu", "Gujarati")
_KANNADA = LanguageEntry("kan", "kn", "Kannada")
_ORIYA = LanguageEntry("ori", "or", "Oriya")
_PUNJABI = LanguageEntry("pan", "pa", "Punjabi")
_SINHALA = LanguageEntry("sin", "si", "Sinhala")
_NORWEGIAN = LanguageEntry("nor", "no", "Norwegian")
_UNDETERMINED = LanguageEntry("und", "und", "Undetermined")

DEFAULT_LANGUAGE_TABLE = LanguageTable(
    {
        "en": _ENGLISH,
        "eng": _ENGLISH,
        "hi": _HINDI,
        "hin": _HINDI,
        "fr": _FRENCH,
        "fre": _FRENCH,
        "fra": _FRENCH,
        "es": _SPANISH,
        "spa": _SPANISH,
        "de": _GERMAN,
        "ger": _GERMAN,
        "deu": _GERMAN,
        "ja": _JAPANESE,
        "jpn": _JAPANESE,
        "ko": _KOREAN,
        "kor": _KOREAN,
        "korean": _KOREAN,
        "zh": _CHINESE,
        "chi": _CHINESE,
        "zho": _CHINESE,
        "chinese": _CHINESE,
        "ta": _TAMIL,
        "tam": _TAMIL,
        "te": _TELUGU,
        "tel": _TELUGU,
        "ml": _MALAYALAM,
        "mal": _MALAYALAM,
        "gu": _GUJARATI,
        "guj": _GUJARATI,
        "kn": _KANNADA,
        "kan": _KANNADA,
        "kann": _KANNADA,
        "or": _ORIYA,
        "ori": _ORIYA,
        "pa": _PUNJABI,
        "pan": _PUNJABI,
        "si": _SINHALA,
        "sin": _SINHALA,
        "sinh": _SINHALA,
        "no": _NORWEGIAN,
        "nor": _NORWEGIAN,
        "und": _UNDETERMINED,
    }
)
"""Table shared by the track selector and manifest synthesizer."""

_POSITIONAL_CODE = re.compile(r"^audio(\d+)$")


def positional_audio_entry(position: int, table: LanguageTable) -> LanguageEntry:
    """Infer the language of an untagged audio stream from its position.

    Untagged libraries in practice carry the original English mix first
    and a Hindi dub second. Further streams get a generic ``audio<N>``
    code.

    Args:
        position: Zero-based position among the file's audio streams.
        table: Language table for the English and Hindi entries.

    Returns:
        LanguageEntry for the stream.
    """
    if position == 0:
        return table.resolve("eng")
    if position == 1:
        return table.resolve("hin")
    return LanguageEntry(
        code=f"audio{position}",
        manifest_code="und",
        name=f"Audio {position + 1}",
    )


def describe_code(code: str, table: LanguageTable) -> LanguageEntry:
    """Describe a canonical code found on disk (directory or file name).

    Understands the generic ``audio<N>`` codes produced by
    positional_audio_entry as well as table codes.
    """
    match = _POSITIONAL_CODE.match(code)
    if match:
        position = int(match.group(1))
        return LanguageEntry(
            code=code, manifest_code="und", name=f"Audio {position + 1}"
        )
    return table.resolve(code)
