"""Catalog path resolution and output naming."""

from streampack.paths.naming import (
    MASTER_PLAYLIST,
    episode_output_names,
    movie_output_names,
    sanitize_path,
    sanitize_path_component,
    to_unix_path,
    to_windows_path,
)
from streampack.paths.resolver import OutputLocation, PathResolutionError, PathResolver

__all__ = [
    "MASTER_PLAYLIST",
    "OutputLocation",
    "PathResolutionError",
    "PathResolver",
    "episode_output_names",
    "movie_output_names",
    "sanitize_path",
    "sanitize_path_component",
    "to_unix_path",
    "to_windows_path",
]
