"""Packaging policy: ladder planning, track selection and policy files."""

from streampack.policy.discovery import (
    ExternalSubtitle,
    SubtitleOrigin,
    discover_external_subtitles,
)
from streampack.policy.ladder import (
    RENDITIONS,
    RenditionSpec,
    get_rendition,
    plan_renditions,
)
from streampack.policy.loader import (
    PolicyValidationError,
    default_policy,
    load_policy,
    load_policy_from_dict,
)
from streampack.policy.models import PackagingPolicy
from streampack.policy.tracks import (
    AudioTrackSpec,
    SubtitleTrackSpec,
    is_text_subtitle,
    select_audio,
    select_subtitles,
)

__all__ = [
    "RENDITIONS",
    "AudioTrackSpec",
    "ExternalSubtitle",
    "PackagingPolicy",
    "PolicyValidationError",
    "RenditionSpec",
    "SubtitleOrigin",
    "SubtitleTrackSpec",
    "default_policy",
    "discover_external_subtitles",
    "get_rendition",
    "is_text_subtitle",
    "load_policy",
    "load_policy_from_dict",
    "plan_renditions",
    "select_audio",
    "select_subtitles",
]
