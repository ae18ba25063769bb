"""Batch processing of catalog entries."""

from streampack.jobs.progress import (
    LoggingProgressReporter,
    NullProgressReporter,
    ProgressReporter,
)
from streampack.jobs.runner import JobRunner, RunSummary
from streampack.jobs.store import JobStore, SQLiteJobStore

__all__ = [
    "JobRunner",
    "JobStore",
    "LoggingProgressReporter",
    "NullProgressReporter",
    "ProgressReporter",
    "RunSummary",
    "SQLiteJobStore",
]
