"""HLS master and per-track playlist generation."""

from streampack.manifest.playlists import (
    build_subtitle_playlist,
    is_complete_playlist,
    subtitle_file_name,
    subtitle_playlist_name,
    vtt_duration,
    write_subtitle_playlist,
)
from streampack.manifest.synthesizer import (
    VARIANT_INFO,
    ManifestError,
    MediaTrack,
    VariantInfo,
    render_master_playlist,
    synthesize,
    variant_info,
    write_master_playlist,
)

__all__ = [
    "VARIANT_INFO",
    "ManifestError",
    "MediaTrack",
    "VariantInfo",
    "build_subtitle_playlist",
    "is_complete_playlist",
    "render_master_playlist",
    "subtitle_file_name",
    "subtitle_playlist_name",
    "synthesize",
    "variant_info",
    "vtt_duration",
    "write_master_playlist",
    "write_subtitle_playlist",
]
