"""Exit codes for all CLI commands."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for streampack CLI commands."""

    SUCCESS = 0

    # At least one entry, unit or file failed
    FAILURES = 1

    # Bad arguments, configuration or policy; nothing was processed
    USAGE_ERROR = 2
