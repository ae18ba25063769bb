"""Hardware encoder strategies and selection.

Every video rendition is encoded to HEVC through one of a small set of
strategies. Each strategy contributes only the encoder-specific part of
the command (input-side device arguments, the video filter chain and the
encoder/rate-control arguments); the surrounding command is shared.

Functions in this module:
- list_encoders: List encoder names compiled into FFmpeg
- check_encoder_available: Check if an encoder is available via FFmpeg
- select_strategy: Select the hardware strategy for a hardware mode
- detect_hw_encoder_error: Detect hardware encoder errors in FFmpeg output
"""

from __future__ import annotations

import functools
import logging
import subprocess  # nosec B404 - subprocess is required for FFmpeg detection
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from streampack.tools.registry import require_tool

if TYPE_CHECKING:
    from streampack.policy.ladder import RenditionSpec

logger = logging.getLogger(__name__)

# Patterns in FFmpeg output that indicate hardware encoder memory/resource errors
HW_ENCODER_ERROR_PATTERNS = (
    "cannot load",
    "not found",
    "not supported",
    "nvenc",
    "cuda",
    "qsv",
    "vaapi",
    "device",
    "memory",
    "resource",
    "initialization failed",
    "encoder not found",
    "could not open",
)

# Priority order for hardware_mode "auto"
AUTO_PRIORITY = ("nvenc", "qsv", "vaapi", "videotoolbox")

DEFAULT_VAAPI_DEVICE = "/dev/dri/renderD128"


def scale_pad_filter(spec: RenditionSpec) -> str:
    """Build the letterboxing filter for a rendition.

    The source is scaled to fit inside the target box preserving its
    aspect ratio, then padded to the exact target size.
    """
    w, h = spec.width, spec.height
    return (
        f"scale={w}:{h}:force_original_aspect_ratio=decrease,"
        f"pad={w}:{h}:(ow-iw)/2:(oh-ih)/2"
    )


def hls_output_args(output_dir: Path, segment_duration: int) -> list[str]:
    """Build HLS muxer arguments for a rendition directory."""
    return [
        "-f",
        "hls",
        "-hls_time",
        str(segment_duration),
        "-hls_playlist_type",
        "vod",
        "-hls_segment_filename",
        str(output_dir / "segment_%03d.ts"),
        str(output_dir / "stream.m3u8"),
    ]


class EncoderStrategy(Protocol):
    """Encoder-specific portion of a rendition encode command."""

    name: str
    """Strategy name (e.g., 'nvenc', 'software')."""

    encoder: str
    """FFmpeg encoder name (e.g., 'hevc_nvenc')."""

    is_hardware: bool

    def input_args(self) -> list[str]:
        """Arguments placed before ``-i``."""
        ...

    def build_args(self, spec: RenditionSpec) -> list[str]:
        """Filter and encoder arguments for one rendition."""
        ...


class NvencStrategy:
    """NVIDIA NVENC."""

    name = "nvenc"
    encoder = "hevc_nvenc"
    is_hardware = True

    def input_args(self) -> list[str]:
        return []

    def build_args(self, spec: RenditionSpec) -> list[str]:
        return [
            "-vf",
            f"{scale_pad_filter(spec)},format=yuv420p",
            "-c:v",
            self.encoder,
            "-preset",
            "p7",
            "-tune",
            "hq",
            "-rc",
            "vbr",
            "-cq",
            str(spec.crf),
            "-maxrate",
            spec.maxrate,
            "-bufsize",
            spec.bufsize,
        ]


class QsvStrategy:
    """Intel Quick Sync Video."""

    name = "qsv"
    encoder = "hevc_qsv"
    is_hardware = True

    def input_args(self) -> list[str]:
        return []

    def build_args(self, spec: RenditionSpec) -> list[str]:
        return [
            "-vf",
            f"{scale_pad_filter(spec)},format=nv12",
            "-c:v",
            self.encoder,
            "-preset",
            "veryslow",
            "-global_quality",
            str(spec.crf),
            "-maxrate",
            spec.maxrate,
            "-bufsize",
            spec.bufsize,
        ]


class VaapiStrategy:
    """VA-API (Linux). Frames are uploaded to the render device after scaling."""

    name = "vaapi"
    encoder = "hevc_vaapi"
    is_hardware = True

    def __init__(self, device: str = DEFAULT_VAAPI_DEVICE) -> None:
        self.device = device

    def input_args(self) -> list[str]:
        return ["-vaapi_device", self.device]

    def build_args(self, spec: RenditionSpec) -> list[str]:
        return [
            "-vf",
            f"{scale_pad_filter(spec)},format=nv12,hwupload",
            "-c:v",
            self.encoder,
            "-qp",
            str(spec.crf),
            "-maxrate",
            spec.maxrate,
            "-bufsize",
            spec.bufsize,
        ]


class VideoToolboxStrategy:
    """Apple VideoToolbox. Has no constant-quality mode, so maxrate is the target."""

    name = "videotoolbox"
    encoder = "hevc_videotoolbox"
    is_hardware = True

    def input_args(self) -> list[str]:
        return []

    def build_args(self, spec: RenditionSpec) -> list[str]:
        return [
            "-vf",
            f"{scale_pad_filter(spec)},format=yuv420p",
            "-c:v",
            self.encoder,
            "-allow_sw",
            "1",
            "-b:v",
            spec.maxrate,
            "-maxrate",
            spec.maxrate,
            "-bufsize",
            spec.bufsize,
            "-profile:v",
            "main",
            "-tag:v",
            "hvc1",
        ]


class SoftwareStrategy:
    """libx265, shared fallback for every hardware strategy."""

    name = "software"
    encoder = "libx265"
    is_hardware = False

    def input_args(self) -> list[str]:
        return []

    def build_args(self, spec: RenditionSpec) -> list[str]:
        return [
            "-vf",
            f"{scale_pad_filter(spec)},format=yuv420p",
            "-c:v",
            self.encoder,
            "-preset",
            "veryslow",
            "-tune",
            "zerolatency",
            "-crf",
            str(spec.crf),
            "-maxrate",
            spec.maxrate,
            "-bufsize",
            spec.bufsize,
        ]


def _make_strategy(hw_type: str, vaapi_device: str) -> EncoderStrategy:
    if hw_type == "nvenc":
        return NvencStrategy()
    if hw_type == "qsv":
        return QsvStrategy()
    if hw_type == "vaapi":
        return VaapiStrategy(vaapi_device)
    if hw_type == "videotoolbox":
        return VideoToolboxStrategy()
    raise ValueError(f"Unknown hardware type: {hw_type}")


@functools.lru_cache(maxsize=8)
def list_encoders(ffmpeg_path: str) -> frozenset[str]:
    """List encoder names compiled into an FFmpeg binary.

    Args:
        ffmpeg_path: Path to ffmpeg.

    Returns:
        Encoder names, empty if FFmpeg could not be queried.
    """
    try:
        result = subprocess.run(  # nosec B603
            [ffmpeg_path, "-hide_banner", "-encoders"],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (subprocess.TimeoutExpired, OSError) as e:
        logger.warning("Could not list FFmpeg encoders: %s", e)
        return frozenset()

    names: set[str] = set()
    in_list = False
    for line in result.stdout.splitlines():
        # The legend above the "------" line uses the same flag layout
        if not in_list:
            in_list = line.strip().startswith("------")
            continue
        # Encoder lines look like " V....D hevc_nvenc  NVIDIA NVENC hevc encoder"
        parts = line.split()
        if len(parts) >= 2 and len(parts[0]) == 6 and parts[0][0] in "VAS":
            names.add(parts[1])
    return frozenset(names)


def check_encoder_available(encoder: str) -> bool:
    """Check if an encoder is available on this system.

    Args:
        encoder: FFmpeg encoder name (e.g., 'hevc_nvenc').

    Returns:
        True if encoder appears to be available.
    """
    try:
        ffmpeg_path = require_tool("ffmpeg")
    except RuntimeError:
        return False
    return encoder in list_encoders(str(ffmpeg_path))


def select_strategy(
    hw_mode: str = "auto",
    vaapi_device: str = DEFAULT_VAAPI_DEVICE,
) -> EncoderStrategy:
    """Select the encoder strategy for a hardware mode.

    Args:
        hw_mode: Hardware acceleration mode:
            - "auto": First available of nvenc > qsv > vaapi > videotoolbox
            - "nvenc", "qsv", "vaapi", "videotoolbox": That strategy if
              its encoder is compiled in
            - "none": Software only
        vaapi_device: Render device for VA-API.

    Returns:
        The chosen strategy. SoftwareStrategy when no hardware encoder is
        available.
    """
    if hw_mode == "none":
        return SoftwareStrategy()

    candidates = AUTO_PRIORITY if hw_mode == "auto" else (hw_mode,)
    for hw_type in candidates:
        strategy = _make_strategy(hw_type, vaapi_device)
        if check_encoder_available(strategy.encoder):
            logger.info("Selected hardware encoder: %s", strategy.encoder)
            return strategy
        if hw_mode != "auto":
            logger.warning(
                "Requested hardware encoder %s not available", strategy.encoder
            )

    logger.info("No hardware HEVC encoder available, using software encoder")
    return SoftwareStrategy()


def detect_hw_encoder_error(stderr_output: str) -> bool:
    """Check if FFmpeg stderr output indicates a hardware encoder error.

    Args:
        stderr_output: FFmpeg stderr output to analyze.

    Returns:
        True if output suggests a hardware encoder failure.
    """
    stderr_lower = stderr_output.lower()
    return any(pattern in stderr_lower for pattern in HW_ENCODER_ERROR_PATTERNS)
