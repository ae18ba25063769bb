"""Tests for policy/loader.py and the policy models."""

from pathlib import Path

import pytest

from streampack.policy.loader import (
    PolicyValidationError,
    load_policy,
    load_policy_from_dict,
)
from streampack.policy.models import PackagingPolicy


class TestLoadPolicy:
    """Tests for load_policy."""

    def test_none_returns_defaults(self) -> None:
        """No path means built-in defaults."""
        policy = load_policy(None)
        assert policy == PackagingPolicy()
        assert policy.hardware.mode == "auto"
        assert policy.segment_duration == 6
        assert policy.completion.require_all_renditions is False

    def test_missing_file(self, tmp_path: Path) -> None:
        """A configured but missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_policy(tmp_path / "missing.yaml")

    def test_empty_file_is_valid(self, tmp_path: Path) -> None:
        """An empty YAML document yields defaults."""
        path = tmp_path / "policy.yaml"
        path.write_text("")
        assert load_policy(path) == PackagingPolicy()

    def test_full_policy(self, tmp_path: Path) -> None:
        """All sections are read and languages are canonicalized."""
        path = tmp_path / "policy.yaml"
        path.write_text(
            """\
hardware:
  mode: vaapi
  vaapi_device: /dev/dri/renderD129
segment_duration: 4
audio:
  languages: [en, deu]
  bitrate: 192k
subtitles:
  languages: [en, hi]
  sidecar_language: hi
  sidecar_delay_ms: -100
completion:
  require_all_renditions: true
"""
        )
        policy = load_policy(path)
        assert policy.hardware.mode == "vaapi"
        assert policy.hardware.vaapi_device == "/dev/dri/renderD129"
        assert policy.segment_duration == 4
        assert policy.audio.languages == ("eng", "ger")
        assert policy.audio.bitrate == "192k"
        assert policy.subtitles.languages == ("eng", "hin")
        assert policy.subtitles.sidecar_language == "hin"
        assert policy.subtitles.sidecar_delay_ms == -100
        assert policy.completion.require_all_renditions is True

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        """YAML syntax errors become PolicyValidationError."""
        path = tmp_path / "policy.yaml"
        path.write_text("hardware: [unclosed\n")
        with pytest.raises(PolicyValidationError, match="Invalid YAML"):
            load_policy(path)

    def test_non_mapping(self, tmp_path: Path) -> None:
        """A top-level list is rejected."""
        path = tmp_path / "policy.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(PolicyValidationError, match="mapping"):
            load_policy(path)


class TestLoadPolicyFromDict:
    """Tests for load_policy_from_dict validation errors."""

    def test_unknown_hardware_mode(self) -> None:
        """Unknown hardware modes are rejected with the field path."""
        with pytest.raises(PolicyValidationError) as exc_info:
            load_policy_from_dict({"hardware": {"mode": "cuda"}})
        assert exc_info.value.field == "hardware.mode"

    def test_unknown_key(self) -> None:
        """Unknown keys are rejected."""
        with pytest.raises(PolicyValidationError):
            load_policy_from_dict({"renditions": ["1080p"]})

    def test_segment_duration_bounds(self) -> None:
        """Segment duration must be positive."""
        with pytest.raises(PolicyValidationError) as exc_info:
            load_policy_from_dict({"segment_duration": 0})
        assert exc_info.value.field == "segment_duration"

    def test_empty_sidecar_language(self) -> None:
        """The sidecar language cannot be blank."""
        with pytest.raises(PolicyValidationError):
            load_policy_from_dict({"subtitles": {"sidecar_language": " "}})

    def test_duplicate_languages_collapse(self) -> None:
        """Aliases of one language collapse to a single code."""
        policy = load_policy_from_dict({"audio": {"languages": ["en", "eng", "EN"]}})
        assert policy.audio.languages == ("eng",)

    def test_null_audio_languages(self) -> None:
        """audio.languages may be null to keep every stream."""
        policy = load_policy_from_dict({"audio": {"languages": None}})
        assert policy.audio.languages is None
