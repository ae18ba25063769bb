"""Configuration package for streampack."""

from streampack.config.env import EnvReader
from streampack.config.loader import (
    ConfigError,
    get_config,
    get_data_dir,
    get_default_config_path,
    load_config_file,
)
from streampack.config.models import (
    LoggingConfig,
    NotifyConfig,
    PathMappingConfig,
    StreamPackConfig,
    ToolPathsConfig,
)

__all__ = [
    "ConfigError",
    "EnvReader",
    "LoggingConfig",
    "NotifyConfig",
    "PathMappingConfig",
    "StreamPackConfig",
    "ToolPathsConfig",
    "get_config",
    "get_data_dir",
    "get_default_config_path",
    "load_config_file",
]
