"""Configuration data models.

This module defines dataclasses for streampack configuration options.
"""

from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class ToolPathsConfig:
    """Configuration for external tool paths.

    All paths are optional. If not specified, tools are looked up in PATH.
    """

    ffmpeg: Path | None = None
    ffprobe: Path | None = None


@dataclass
class LoggingConfig:
    """Configuration for structured logging."""

    # Log level: debug, info, warning, error
    level: str = "info"

    # Log file path (None = stderr only)
    file: Path | None = None

    # Log format: text or json
    format: str = "text"

    # Also log to stderr when file is set
    include_stderr: bool = False

    # Rotation threshold in bytes (default 10MB)
    max_bytes: int = 10_485_760

    # Number of rotated files to keep
    backup_count: int = 5

    def __post_init__(self) -> None:
        """Validate configuration."""
        valid_levels = {"debug", "info", "warning", "error"}
        if self.level.lower() not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}, got {self.level}")
        valid_formats = {"text", "json"}
        if self.format.lower() not in valid_formats:
            raise ValueError(
                f"format must be one of {valid_formats}, got {self.format}"
            )


@dataclass
class NotifyConfig:
    """Configuration for the media server cache notification."""

    # Base URL of the media server (None = notification disabled)
    base_url: str | None = None

    timeout_seconds: float = 10.0

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.timeout_seconds <= 0:
            raise ValueError(
                f"timeout_seconds must be positive, got {self.timeout_seconds}"
            )


@dataclass
class PathMappingConfig:
    """Configuration for translating catalog paths to mounted locations.

    Catalog paths are recorded in the form the media server sees them.
    The worker that encodes may see the same files under another prefix
    (a network share, a different mount point).
    """

    prefixes: dict[str, str] = field(default_factory=dict)
    """Map of catalog path prefix to local path prefix."""

    windows: bool = False
    """Translate resolved paths to Windows/UNC syntax before use."""


@dataclass
class StreamPackConfig:
    """Main configuration container."""

    tools: ToolPathsConfig = field(default_factory=ToolPathsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    notify: NotifyConfig = field(default_factory=NotifyConfig)
    paths: PathMappingConfig = field(default_factory=PathMappingConfig)

    # Database location (None = <data dir>/catalog.db)
    database_path: Path | None = None

    # Packaging policy file (None = built-in defaults)
    policy_path: Path | None = None

    # Per-invocation encoder timeout in seconds (None = no limit)
    encode_timeout: int | None = None

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.encode_timeout is not None and self.encode_timeout <= 0:
            raise ValueError(
                f"encode_timeout must be positive, got {self.encode_timeout}"
            )
