"""Pydantic models for the packaging policy file.

A packaging policy holds the deployment-level knobs of the pipeline:
hardware encoder choice, segment duration, which audio and subtitle
languages are extracted, the sidecar subtitle heuristics, and how
partial rendition failure is judged. Every field has a default, so an
empty policy file is valid.

Example policy:

    hardware:
      mode: auto
    segment_duration: 6
    audio:
      languages: [eng, hin, jpn]
    subtitles:
      languages: [eng, hin]
      sidecar_language: eng
      sidecar_delay_ms: 375
    completion:
      require_all_renditions: false
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from streampack.language import DEFAULT_LANGUAGE_TABLE

HardwareMode = Literal["auto", "nvenc", "qsv", "vaapi", "videotoolbox", "none"]

DEFAULT_AUDIO_LANGUAGES: tuple[str, ...] = ("eng", "hin", "jpn", "kor", "chi", "und")
DEFAULT_SUBTITLE_LANGUAGES: tuple[str, ...] = ("eng", "hin")
DEFAULT_SUBTITLE_DIRS: tuple[str, ...] = ("subs", "Subs", "subtitles", "Subtitles")
DEFAULT_PREDEFINED_SUBTITLES: tuple[str, ...] = (
    "eng",
    "hin",
    "fre",
    "spa",
    "ger",
    "jpn",
    "tam",
    "tel",
    "mal",
    "guj",
    "kan",
)


def _canonical_codes(values: tuple[str, ...]) -> tuple[str, ...]:
    """Fold language tags to canonical codes, keeping first-seen order."""
    result: list[str] = []
    for value in values:
        code = DEFAULT_LANGUAGE_TABLE.canonical_code(value)
        if code not in result:
            result.append(code)
    return tuple(result)


class HardwareConfigModel(BaseModel):
    """Hardware encoder selection."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    mode: HardwareMode = "auto"
    """auto probes nvenc > qsv > vaapi > videotoolbox; none is software only."""

    fallback_to_software: bool = True
    """Retry a failed hardware encode with the software encoder."""

    vaapi_device: str = "/dev/dri/renderD128"


class AudioPolicyModel(BaseModel):
    """Audio extraction settings."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    languages: tuple[str, ...] | None = DEFAULT_AUDIO_LANGUAGES
    """Allow-list of languages to extract. None extracts every stream."""

    bitrate: str = "128k"
    sample_rate: int = Field(default=48000, gt=0)
    channels: int = Field(default=2, ge=1, le=8)

    @field_validator("languages")
    @classmethod
    def normalize_languages(cls, v: tuple[str, ...] | None) -> tuple[str, ...] | None:
        """Store languages as canonical codes."""
        if v is None:
            return None
        return _canonical_codes(v)


class SubtitlePolicyModel(BaseModel):
    """Subtitle selection settings."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    languages: tuple[str, ...] = DEFAULT_SUBTITLE_LANGUAGES
    """Languages retained for the manifest."""

    sidecar_language: str = "eng"
    """Language assumed for a bare .srt next to the source file."""

    sidecar_delay_ms: int = 375
    """Timing shift applied to the bare sidecar .srt (may be negative)."""

    directories: tuple[str, ...] = DEFAULT_SUBTITLE_DIRS
    """Subdirectory names searched for .srt files."""

    predefined: tuple[str, ...] = DEFAULT_PREDEFINED_SUBTITLES
    """Codes checked for ready-made subs_<code>.vtt files next to the source."""

    @field_validator("languages", "predefined")
    @classmethod
    def normalize_languages(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Store languages as canonical codes."""
        return _canonical_codes(v)

    @field_validator("sidecar_language")
    @classmethod
    def normalize_sidecar_language(cls, v: str) -> str:
        """Store the sidecar language as a canonical code."""
        if not v.strip():
            raise ValueError("sidecar_language must not be empty")
        return DEFAULT_LANGUAGE_TABLE.canonical_code(v)


class CompletionPolicyModel(BaseModel):
    """How an entry with some failed renditions is judged."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    require_all_renditions: bool = False
    """False: one successful rendition completes the entry.
    True: any failed rendition fails the entry."""


class PackagingPolicy(BaseModel):
    """Top-level packaging policy."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    hardware: HardwareConfigModel = Field(default_factory=HardwareConfigModel)
    segment_duration: int = Field(default=6, ge=1, le=60)
    audio: AudioPolicyModel = Field(default_factory=AudioPolicyModel)
    subtitles: SubtitlePolicyModel = Field(default_factory=SubtitlePolicyModel)
    completion: CompletionPolicyModel = Field(default_factory=CompletionPolicyModel)
