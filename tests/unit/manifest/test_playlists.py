"""Tests for manifest/playlists.py."""

from pathlib import Path

import pytest

from streampack.manifest.playlists import (
    build_subtitle_playlist,
    is_complete_playlist,
    subtitle_file_name,
    subtitle_playlist_name,
    vtt_duration,
    write_subtitle_playlist,
)

COMPLETE_PLAYLIST = "#EXTM3U\n#EXTINF:6.0,\nsegment_000.ts\n#EXT-X-ENDLIST\n"

SAMPLE_VTT = """\
WEBVTT

00:00:01.000 --> 00:00:04.000
Hello.

00:01:10.500 --> 00:01:12.250
Goodbye.
"""


class TestIsCompletePlaylist:
    """Tests for is_complete_playlist."""

    def test_finished(self, tmp_path: Path) -> None:
        path = tmp_path / "stream.m3u8"
        path.write_text(COMPLETE_PLAYLIST)
        assert is_complete_playlist(path) is True

    def test_interrupted(self, tmp_path: Path) -> None:
        """A playlist without ENDLIST was cut short."""
        path = tmp_path / "stream.m3u8"
        path.write_text(COMPLETE_PLAYLIST.replace("#EXT-X-ENDLIST\n", ""))
        assert is_complete_playlist(path) is False

    def test_missing(self, tmp_path: Path) -> None:
        assert is_complete_playlist(tmp_path / "nope.m3u8") is False


class TestNames:
    def test_subtitle_names(self) -> None:
        assert subtitle_file_name("eng") == "subs_eng.vtt"
        assert subtitle_playlist_name("eng") == "subs_eng.m3u8"


class TestVttDuration:
    """Tests for vtt_duration."""

    def test_last_cue_end(self) -> None:
        assert vtt_duration(SAMPLE_VTT) == pytest.approx(72.25)

    def test_hours_and_short_form(self) -> None:
        """Both HH:MM:SS.mmm and MM:SS.mmm timings are read."""
        content = (
            "WEBVTT\n\n00:01.000 --> 00:02.500\nA\n\n"
            "01:00:00.000 --> 01:00:03.000\nB\n"
        )
        assert vtt_duration(content) == pytest.approx(3603.0)

    def test_no_cues(self) -> None:
        assert vtt_duration("WEBVTT\n") is None


class TestBuildSubtitlePlaylist:
    """Tests for build_subtitle_playlist."""

    def test_layout(self) -> None:
        """Single VOD segment with the duration rounded up for the target."""
        assert build_subtitle_playlist("subs_eng.vtt", 72.25) == (
            "#EXTM3U\n"
            "#EXT-X-VERSION:3\n"
            "#EXT-X-TARGETDURATION:73\n"
            "#EXT-X-MEDIA-SEQUENCE:0\n"
            "#EXT-X-PLAYLIST-TYPE:VOD\n"
            "#EXTINF:72.250,\n"
            "subs_eng.vtt\n"
            "#EXT-X-ENDLIST\n"
        )

    @pytest.mark.parametrize("duration", [None, 0.0])
    def test_unknown_duration(self, duration: float | None) -> None:
        text = build_subtitle_playlist("subs_eng.vtt", duration)
        assert "#EXT-X-TARGETDURATION:1\n" in text
        assert "#EXTINF:1.000,\n" in text


class TestWriteSubtitlePlaylist:
    def test_writes_next_to_vtt(self, tmp_path: Path) -> None:
        (tmp_path / "subs_hin.vtt").write_text(SAMPLE_VTT)
        path = write_subtitle_playlist(tmp_path, "hin")
        assert path == tmp_path / "subs_hin.m3u8"
        assert "subs_hin.vtt\n" in path.read_text()
        assert is_complete_playlist(path)

    def test_missing_vtt(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            write_subtitle_playlist(tmp_path, "hin")
