"""Executor exceptions."""

from streampack.exceptions import StreamPackError


class EncodeError(StreamPackError):
    """A video encode attempt failed."""

    def __init__(self, message: str, stderr_tail: str = "") -> None:
        super().__init__(message)
        self.stderr_tail = stderr_tail


class ExtractionError(StreamPackError):
    """An audio or subtitle extraction failed. The track is omitted."""

    def __init__(self, message: str, stderr_tail: str = "") -> None:
        super().__init__(message)
        self.stderr_tail = stderr_tail
