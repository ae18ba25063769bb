"""Translate catalog paths into readable local paths and output locations."""

from __future__ import annotations

import logging
import os
import posixpath
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from streampack.db.types import CatalogEntry
from streampack.exceptions import StreamPackError
from streampack.paths.naming import (
    MASTER_PLAYLIST,
    episode_output_names,
    movie_output_names,
    to_unix_path,
    to_windows_path,
)

logger = logging.getLogger(__name__)


class PathResolutionError(StreamPackError):
    """Raised when a catalog entry cannot be mapped to an output location."""

    pass


@dataclass(frozen=True)
class OutputLocation:
    """Where an entry's package lives."""

    output_dir: Path
    """Local directory the package is written to."""

    play_path: str
    """Catalog (POSIX) path of the master playlist, persisted for playback."""

    @property
    def manifest_path(self) -> Path:
        """Local path of the master playlist (the idempotency key)."""
        return self.output_dir / MASTER_PLAYLIST


class PathResolver:
    """Map catalog paths to local paths via configured prefixes.

    Example:
        resolver = PathResolver({"/media/movies": "//nas/Storage/Movies"})
        resolver.map_path("/media/movies/Heat/Heat.mkv")
        # "//nas/Storage/Movies/Heat/Heat.mkv"
    """

    def __init__(
        self, prefixes: Mapping[str, str] | None = None, windows: bool = False
    ) -> None:
        """Initialize the resolver.

        Args:
            prefixes: Map of catalog path prefix to local path prefix. The
                longest matching prefix wins.
            windows: Convert network paths to UNC form after mapping.
        """
        self._prefixes = sorted(
            (prefixes or {}).items(), key=lambda item: len(item[0]), reverse=True
        )
        self._windows = windows

    def map_path(self, logical_path: str) -> str:
        """Apply the prefix map (and UNC conversion) to a catalog path."""
        mapped = logical_path
        for prefix, target in self._prefixes:
            if logical_path.startswith(prefix):
                mapped = target + logical_path[len(prefix) :]
                break
        if self._windows:
            mapped = to_windows_path(mapped)
        return mapped

    def resolve(self, logical_path: str) -> Path | None:
        """Return the readable local path for a catalog path, or None.

        Args:
            logical_path: Path as recorded in the catalog.

        Returns:
            Local Path if the file exists and is readable, else None.
        """
        concrete = Path(self.map_path(logical_path))
        if concrete.is_file() and os.access(concrete, os.R_OK):
            return concrete
        logger.debug("Cannot resolve %s (mapped to %s)", logical_path, concrete)
        return None

    def output_location(
        self, entry: CatalogEntry, source_path: Path | None = None
    ) -> OutputLocation:
        """Compute the deterministic package location for an entry.

        Movies are packaged into ``<source dir>/HLS <title>/``; episodes
        into ``<source dir>/HLS <series>/HLS S<s>E<e> <title>/``.

        Args:
            entry: Catalog entry.
            source_path: Already-resolved local source path. If None, the
                entry's catalog path is mapped without checking existence.

        Returns:
            OutputLocation for the entry.

        Raises:
            PathResolutionError: If an episode lacks its series fields.
        """
        names = self._output_names(entry)
        concrete = source_path or Path(self.map_path(entry.file_path))
        output_dir = concrete.parent.joinpath(*names)

        logical_dir = posixpath.dirname(to_unix_path(entry.file_path))
        play_path = to_unix_path(posixpath.join(logical_dir, *names, MASTER_PLAYLIST))
        return OutputLocation(output_dir=output_dir, play_path=play_path)

    @staticmethod
    def _output_names(entry: CatalogEntry) -> tuple[str, ...]:
        if not entry.is_episode:
            return movie_output_names(entry.title)
        if (
            entry.series_title is None
            or entry.season_number is None
            or entry.episode_number is None
        ):
            raise PathResolutionError(
                f"Episode {entry.id} is missing series, season or episode number"
            )
        return episode_output_names(
            entry.series_title,
            entry.season_number,
            entry.episode_number,
            entry.title,
        )
