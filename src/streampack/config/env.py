"""Typed access to ``STREAMPACK_*`` environment variables.

The environment mapping is injectable so configuration loading can be
tested without touching ``os.environ``.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

logger = logging.getLogger(__name__)

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


class EnvReader:
    """Read environment variables as str, int, bool or Path.

    A variable set to an empty string counts as unset. Values that cannot
    be converted are logged and replaced by the default.

    Example:
        reader = EnvReader(env={"STREAMPACK_ENCODE_TIMEOUT": "600"})
        reader.get_int("STREAMPACK_ENCODE_TIMEOUT")  # 600
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env: Mapping[str, str] = os.environ if env is None else env

    def _raw(self, var: str) -> str | None:
        value = self._env.get(var)
        return value if value else None

    def get_str(self, var: str, default: str | None = None) -> str | None:
        value = self._raw(var)
        return default if value is None else value

    def get_int(self, var: str, default: int | None = None) -> int | None:
        value = self._raw(var)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError:
            logger.warning("Invalid integer value for %s: %s", var, value)
            return default

    def get_bool(self, var: str, default: bool | None = None) -> bool | None:
        """Read a flag. Anything other than 1/true/yes/on is false."""
        value = self._raw(var)
        if value is None:
            return default
        return value.strip().casefold() in _TRUE_VALUES

    def get_path(
        self, var: str, must_exist: bool = False, default: Path | None = None
    ) -> Path | None:
        """Read a path, expanding ``~``.

        Args:
            var: Variable name.
            must_exist: Fall back to ``default`` if the path does not exist.
            default: Value when unset (or missing, with ``must_exist``).
        """
        value = self._raw(var)
        if value is None:
            return default
        path = Path(value).expanduser()
        if must_exist and not path.exists():
            logger.warning("%s points to a missing path: %s", var, path)
            return default
        return path
