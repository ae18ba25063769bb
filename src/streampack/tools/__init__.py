"""External tool resolution, encoder strategies and FFmpeg output parsing."""

from streampack.tools.encoders import (
    AUTO_PRIORITY,
    HW_ENCODER_ERROR_PATTERNS,
    EncoderStrategy,
    NvencStrategy,
    QsvStrategy,
    SoftwareStrategy,
    VaapiStrategy,
    VideoToolboxStrategy,
    check_encoder_available,
    detect_hw_encoder_error,
    hls_output_args,
    list_encoders,
    scale_pad_filter,
    select_strategy,
)
from streampack.tools.ffmpeg_progress import FFmpegProgress, parse_stderr_progress
from streampack.tools.registry import (
    configure_tool_paths,
    find_tool,
    get_tool_path,
    require_tool,
)

__all__ = [
    "AUTO_PRIORITY",
    "HW_ENCODER_ERROR_PATTERNS",
    "EncoderStrategy",
    "FFmpegProgress",
    "NvencStrategy",
    "QsvStrategy",
    "SoftwareStrategy",
    "VaapiStrategy",
    "VideoToolboxStrategy",
    "check_encoder_available",
    "configure_tool_paths",
    "detect_hw_encoder_error",
    "find_tool",
    "get_tool_path",
    "hls_output_args",
    "list_encoders",
    "parse_stderr_progress",
    "require_tool",
    "scale_pad_filter",
    "select_strategy",
]
