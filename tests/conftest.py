"""Shared test fixtures for streampack."""

import json
import os
import shutil
import tempfile
from collections.abc import Callable
from pathlib import Path

import pytest

from streampack.db.connection import open_connection
from streampack.db.schema import initialize_database
from streampack.tools.registry import configure_tool_paths

COMPLETE_PLAYLIST = """\
#EXTM3U
#EXT-X-VERSION:3
#EXT-X-TARGETDURATION:6
#EXT-X-MEDIA-SEQUENCE:0
#EXT-X-PLAYLIST-TYPE:VOD
#EXTINF:6.000000,
segment_000.ts
#EXT-X-ENDLIST
"""

SAMPLE_VTT = """\
WEBVTT

00:00:01.000 --> 00:00:04.000
Hello.

00:01:10.500 --> 00:01:12.250
Goodbye.
"""


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test isolation."""
    dir_path = tempfile.mkdtemp()
    yield Path(dir_path)
    shutil.rmtree(dir_path, ignore_errors=True)


@pytest.fixture
def db_conn():
    """In-memory catalog database with the schema applied."""
    conn = open_connection(":memory:")
    initialize_database(conn)
    yield conn
    conn.close()


@pytest.fixture
def ffprobe_fixtures_dir() -> Path:
    """Return the path to the ffprobe fixtures directory."""
    return Path(__file__).parent / "fixtures" / "ffprobe"


@pytest.fixture
def load_ffprobe_fixture(ffprobe_fixtures_dir: Path) -> Callable[[str], dict]:
    """Return a loader for ffprobe JSON fixtures by name (without .json)."""

    def load(name: str) -> dict:
        return json.loads((ffprobe_fixtures_dir / f"{name}.json").read_text())

    return load


@pytest.fixture
def make_package() -> Callable[..., Path]:
    """Return a builder for package directories as encoders leave them.

    Example:
        make_package(tmp_path, renditions=["720p"], audio=["eng"], subs=["eng"])
    """

    def build(
        root: Path,
        renditions: tuple[str, ...] | list[str] = ("720p",),
        audio: tuple[str, ...] | list[str] = (),
        subs: tuple[str, ...] | list[str] = (),
    ) -> Path:
        root.mkdir(parents=True, exist_ok=True)
        for name in renditions:
            rendition_dir = root / name
            rendition_dir.mkdir(parents=True, exist_ok=True)
            (rendition_dir / "stream.m3u8").write_text(COMPLETE_PLAYLIST)
            (rendition_dir / "segment_000.ts").write_bytes(b"\x47")
        for code in audio:
            track_dir = root / "audio" / code
            track_dir.mkdir(parents=True, exist_ok=True)
            (track_dir / "playlist.m3u8").write_text(COMPLETE_PLAYLIST)
        for code in subs:
            (root / f"subs_{code}.vtt").write_text(SAMPLE_VTT)
        return root

    return build


@pytest.fixture(autouse=True)
def streampack_isolated(temp_dir: Path, monkeypatch: pytest.MonkeyPatch):
    """Point streampack at a throwaway data directory for every test.

    Also marks logging as configured so CLI invocations do not replace
    the handlers pytest uses for log capture.
    """
    data_dir = temp_dir / ".streampack"
    data_dir.mkdir(parents=True, exist_ok=True)

    for var in list(os.environ):
        if var.startswith("STREAMPACK_"):
            monkeypatch.delenv(var)
    monkeypatch.setenv("STREAMPACK_DATA_DIR", str(data_dir))
    monkeypatch.setattr("streampack.cli._logging_configured", True)
    configure_tool_paths()
    yield data_dir
