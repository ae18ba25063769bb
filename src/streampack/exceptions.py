"""Base exception for streampack.

Component-specific errors (probe, encode, extraction, manifest, path
resolution) live next to the code that raises them and derive from
StreamPackError so callers can catch the whole family at a boundary.
"""


class StreamPackError(Exception):
    """Base class for all streampack errors."""

    pass
