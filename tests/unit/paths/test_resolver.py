"""Tests for paths/resolver.py."""

import os
from pathlib import Path

import pytest

from streampack.db.types import CatalogEntry, EntryKind, TranscodeStatus
from streampack.paths.resolver import PathResolutionError, PathResolver


def _movie(file_path: str, title: str = "Heat") -> CatalogEntry:
    return CatalogEntry(1, EntryKind.MOVIE, title, file_path, TranscodeStatus.PENDING)


def _episode(file_path: str, **overrides) -> CatalogEntry:
    fields = dict(
        id=7,
        kind=EntryKind.EPISODE,
        title="The Detail",
        file_path=file_path,
        status=TranscodeStatus.PENDING,
        series_id=3,
        series_title="The Wire",
        season_number=1,
        episode_number=2,
    )
    fields.update(overrides)
    return CatalogEntry(**fields)


class TestMapPath:
    """Tests for PathResolver.map_path."""

    def test_no_prefixes(self) -> None:
        assert PathResolver().map_path("/media/a.mkv") == "/media/a.mkv"

    def test_longest_prefix_wins(self) -> None:
        resolver = PathResolver(
            {"/media": "/mnt/all", "/media/movies": "//nas/Storage/Movies"}
        )
        assert (
            resolver.map_path("/media/movies/Heat.mkv")
            == "//nas/Storage/Movies/Heat.mkv"
        )
        assert resolver.map_path("/media/tv/a.mkv") == "/mnt/all/tv/a.mkv"

    def test_windows_unc(self) -> None:
        resolver = PathResolver({"/media": "//nas/Storage"}, windows=True)
        assert resolver.map_path("/media/Heat.mkv") == r"\\nas\Storage\Heat.mkv"


class TestResolve:
    """Tests for PathResolver.resolve."""

    def test_existing_file(self, tmp_path: Path) -> None:
        source = tmp_path / "movies" / "Heat.mkv"
        source.parent.mkdir()
        source.write_bytes(b"")
        resolver = PathResolver({"/media": str(tmp_path)})
        assert resolver.resolve("/media/movies/Heat.mkv") == source

    def test_missing_file(self, tmp_path: Path) -> None:
        resolver = PathResolver({"/media": str(tmp_path)})
        assert resolver.resolve("/media/movies/Heat.mkv") is None

    def test_directory_is_not_a_source(self, tmp_path: Path) -> None:
        assert PathResolver().resolve(str(tmp_path)) is None

    @pytest.mark.skipif(
        os.name != "posix" or os.geteuid() == 0, reason="needs POSIX non-root"
    )
    def test_unreadable_file(self, tmp_path: Path) -> None:
        source = tmp_path / "Heat.mkv"
        source.write_bytes(b"")
        source.chmod(0o000)
        try:
            assert PathResolver().resolve(str(source)) is None
        finally:
            source.chmod(0o644)


class TestOutputLocation:
    """Tests for PathResolver.output_location."""

    def test_movie(self, tmp_path: Path) -> None:
        resolver = PathResolver({"/media": str(tmp_path)})
        source = tmp_path / "movies" / "Heat.mkv"
        location = resolver.output_location(_movie("/media/movies/Heat.mkv"), source)

        assert location.output_dir == tmp_path / "movies" / "HLS Heat"
        assert location.manifest_path == location.output_dir / "master.m3u8"
        assert location.play_path == "/media/movies/HLS Heat/master.m3u8"

    def test_episode(self) -> None:
        location = PathResolver().output_location(_episode("/tv/wire/s01e02.mkv"))
        assert location.output_dir == Path("/tv/wire/HLS The Wire/HLS S1E2 The Detail")
        assert location.play_path == (
            "/tv/wire/HLS The Wire/HLS S1E2 The Detail/master.m3u8"
        )

    def test_title_sanitized(self) -> None:
        location = PathResolver().output_location(
            _movie("/m/a.mkv", title="Heat: Director's Cut [2000]")
        )
        assert location.output_dir.name == "HLS Heat Director's Cut 2000"

    def test_title_with_separator_stays_in_source_folder(self) -> None:
        """A slash in a title does not create a nested output directory."""
        location = PathResolver().output_location(
            _movie("/media/m/F/F.mkv", title="Fahrenheit 9/11"),
            Path("/media/m/F/F.mkv"),
        )
        assert location.output_dir == Path("/media/m/F/HLS Fahrenheit 9-11")
        assert location.play_path == "/media/m/F/HLS Fahrenheit 9-11/master.m3u8"

    def test_windows_catalog_path(self) -> None:
        """Catalog paths recorded with backslashes persist in POSIX form."""
        location = PathResolver().output_location(
            _movie(r"\\nas\Storage\Movies\Heat.mkv"),
            Path("/mnt/movies/Heat.mkv"),
        )
        assert location.play_path == "//nas/Storage/Movies/HLS Heat/master.m3u8"

    def test_episode_missing_fields(self) -> None:
        with pytest.raises(PathResolutionError, match="missing series"):
            PathResolver().output_location(
                _episode("/tv/a.mkv", season_number=None)
            )
