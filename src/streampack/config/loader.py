"""Configuration loader with precedence handling.

Configuration is loaded with the following precedence (highest to lowest):
1. CLI arguments (passed directly to get_config)
2. Environment variables (STREAMPACK_*)
3. Config file (~/.streampack/config.toml)
4. Default values

Environment variables:
- STREAMPACK_CONFIG_PATH: Path to config file (overrides default location)
- STREAMPACK_DATA_DIR: Path to the data directory (overrides ~/.streampack/)
- STREAMPACK_FFMPEG_PATH: Path to ffmpeg executable
- STREAMPACK_FFPROBE_PATH: Path to ffprobe executable
- STREAMPACK_DATABASE_PATH: Path to catalog database file
- STREAMPACK_POLICY_PATH: Path to packaging policy YAML file
- STREAMPACK_LOG_LEVEL: Log level (debug, info, warning, error)
- STREAMPACK_LOG_FILE: Log file path
- STREAMPACK_BASE_URL: Media server base URL for cache notification
- STREAMPACK_ENCODE_TIMEOUT: Per-invocation encoder timeout in seconds
- STREAMPACK_WINDOWS_PATHS: Convert resolved network paths to UNC form
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from streampack.config.env import EnvReader
from streampack.config.models import (
    LoggingConfig,
    NotifyConfig,
    PathMappingConfig,
    StreamPackConfig,
    ToolPathsConfig,
)
from streampack.exceptions import StreamPackError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".streampack"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"
DEFAULT_DB_NAME = "catalog.db"


class ConfigError(StreamPackError):
    """Raised when the configuration file cannot be parsed or is invalid."""

    pass


def get_default_config_path() -> Path:
    """Get the default config file path.

    Can be overridden by STREAMPACK_CONFIG_PATH environment variable.

    Returns:
        Path to config file.
    """
    env_path = os.environ.get("STREAMPACK_CONFIG_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return get_data_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the streampack data directory.

    Holds the catalog database and the config file. Can be overridden by
    STREAMPACK_DATA_DIR environment variable.

    Returns:
        Path to the data directory (~/.streampack/ by default).
    """
    env_path = os.environ.get("STREAMPACK_DATA_DIR")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_DIR


def load_config_file(path: Path | None = None, *, strict: bool = False) -> dict:
    """Load configuration from a TOML file.

    Args:
        path: Path to config file. If None, uses default location.
        strict: If True, raise ConfigError on parse failures.
                If False (default), log a warning and return an empty dict.

    Returns:
        Parsed configuration dict. Empty dict if file doesn't exist.

    Raises:
        ConfigError: When strict=True and the file cannot be parsed.
    """
    if path is None:
        path = get_default_config_path()

    if not path.exists():
        return {}

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as e:
        if strict:
            raise ConfigError(f"Cannot parse config file {path}: {e}") from e
        logger.warning("Ignoring unparseable config file %s: %s", path, e)
        return {}


def _optional_path(value: Any) -> Path | None:
    if value is None or value == "":
        return None
    return Path(str(value)).expanduser()


def _build_from_file(data: dict) -> StreamPackConfig:
    """Build a StreamPackConfig from parsed TOML data."""
    tools = data.get("tools", {})
    logging_data = data.get("logging", {})
    notify = data.get("notify", {})
    paths = data.get("paths", {})

    try:
        return StreamPackConfig(
            tools=ToolPathsConfig(
                ffmpeg=_optional_path(tools.get("ffmpeg")),
                ffprobe=_optional_path(tools.get("ffprobe")),
            ),
            logging=LoggingConfig(
                level=logging_data.get("level", "info"),
                file=_optional_path(logging_data.get("file")),
                format=logging_data.get("format", "text"),
                include_stderr=bool(logging_data.get("include_stderr", False)),
                max_bytes=int(logging_data.get("max_bytes", 10_485_760)),
                backup_count=int(logging_data.get("backup_count", 5)),
            ),
            notify=NotifyConfig(
                base_url=notify.get("base_url") or None,
                timeout_seconds=float(notify.get("timeout_seconds", 10.0)),
            ),
            paths=PathMappingConfig(
                prefixes={str(k): str(v) for k, v in paths.get("prefixes", {}).items()},
                windows=bool(paths.get("windows", False)),
            ),
            database_path=_optional_path(data.get("database_path")),
            policy_path=_optional_path(data.get("policy_path")),
            encode_timeout=data.get("encode_timeout"),
        )
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def _apply_env(config: StreamPackConfig, reader: EnvReader) -> None:
    """Overlay STREAMPACK_* environment variables onto config in place."""
    config.tools.ffmpeg = reader.get_path(
        "STREAMPACK_FFMPEG_PATH", default=config.tools.ffmpeg
    )
    config.tools.ffprobe = reader.get_path(
        "STREAMPACK_FFPROBE_PATH", default=config.tools.ffprobe
    )
    config.database_path = reader.get_path(
        "STREAMPACK_DATABASE_PATH", default=config.database_path
    )
    config.policy_path = reader.get_path(
        "STREAMPACK_POLICY_PATH", default=config.policy_path
    )
    config.notify.base_url = reader.get_str(
        "STREAMPACK_BASE_URL", default=config.notify.base_url
    )
    config.encode_timeout = reader.get_int(
        "STREAMPACK_ENCODE_TIMEOUT", default=config.encode_timeout
    )
    config.paths.windows = reader.get_bool(
        "STREAMPACK_WINDOWS_PATHS", default=config.paths.windows
    )

    level = reader.get_str("STREAMPACK_LOG_LEVEL")
    log_file = reader.get_path("STREAMPACK_LOG_FILE")
    if level is not None or log_file is not None:
        try:
            config.logging = LoggingConfig(
                level=level or config.logging.level,
                file=log_file or config.logging.file,
                format=config.logging.format,
                include_stderr=config.logging.include_stderr,
                max_bytes=config.logging.max_bytes,
                backup_count=config.logging.backup_count,
            )
        except ValueError as e:
            raise ConfigError(f"Invalid logging environment: {e}") from e


def get_config(
    config_path: Path | None = None,
    # CLI overrides (highest precedence)
    database_path: Path | None = None,
    policy_path: Path | None = None,
    # Optional dependency injection for testing
    env_reader: EnvReader | None = None,
    *,
    strict: bool = False,
) -> StreamPackConfig:
    """Get streampack configuration with full precedence handling.

    Args:
        config_path: Path to config file (overrides STREAMPACK_CONFIG_PATH).
        database_path: CLI override for database path.
        policy_path: CLI override for policy file path.
        env_reader: Optional EnvReader for testing (uses os.environ if None).
        strict: If True, raise ConfigError on config file parse failures.

    Returns:
        StreamPackConfig with merged configuration.

    Raises:
        ConfigError: If the merged configuration is invalid.
    """
    reader = env_reader or EnvReader()

    config = _build_from_file(load_config_file(config_path, strict=strict))
    _apply_env(config, reader)

    if database_path is not None:
        config.database_path = database_path
    if policy_path is not None:
        config.policy_path = policy_path

    if config.database_path is None:
        config.database_path = get_data_dir() / DEFAULT_DB_NAME

    return config
