"""External tool path resolution.

Tool paths come from configuration (config file or STREAMPACK_*_PATH
environment variables) and fall back to a PATH lookup.
"""

from __future__ import annotations

import logging
import shutil
import threading
from pathlib import Path

logger = logging.getLogger(__name__)

KNOWN_TOOLS = ("ffmpeg", "ffprobe")

_configured: dict[str, Path | None] = {}
_resolved: dict[str, Path | None] = {}
_lock = threading.Lock()


def find_tool(name: str, configured_path: Path | None = None) -> Path | None:
    """Find a tool executable.

    Args:
        name: Tool name (e.g., "ffmpeg").
        configured_path: Optional configured path override.

    Returns:
        Path to tool executable, or None if not found.
    """
    if configured_path:
        if configured_path.is_file():
            return configured_path
        logger.warning(
            "Configured path for %s is not a file: %s", name, configured_path
        )

    which_result = shutil.which(name)
    if which_result:
        return Path(which_result)
    return None


def configure_tool_paths(
    ffmpeg: Path | None = None, ffprobe: Path | None = None
) -> None:
    """Set configured tool paths and forget previously resolved ones."""
    with _lock:
        _configured["ffmpeg"] = ffmpeg
        _configured["ffprobe"] = ffprobe
        _resolved.clear()


def get_tool_path(tool_name: str) -> Path | None:
    """Get path to a tool, or None if not available.

    Results are cached until configure_tool_paths() is called again.
    """
    with _lock:
        if tool_name not in _resolved:
            _resolved[tool_name] = find_tool(tool_name, _configured.get(tool_name))
        return _resolved[tool_name]


def require_tool(tool_name: str) -> Path:
    """Get path to a required tool, raising an error if not available.

    Args:
        tool_name: Name of the tool to find.

    Returns:
        Path to the tool executable.

    Raises:
        RuntimeError: If the tool is not available.
    """
    path = get_tool_path(tool_name)
    if path is None:
        env_var = f"STREAMPACK_{tool_name.upper()}_PATH"
        raise RuntimeError(
            f"Required tool not available: {tool_name}. "
            f"Install ffmpeg or set {env_var}."
        )
    return path
