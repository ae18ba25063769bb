"""Job store interface used by the runner, with a SQLite implementation."""

from __future__ import annotations

import logging
import sqlite3
from typing import Protocol

from streampack.db import queries
from streampack.db.connection import handle_database_locked
from streampack.db.types import CatalogEntry, EntryKind, TranscodeStatus

logger = logging.getLogger(__name__)


class JobStore(Protocol):
    """Persistence the job runner needs.

    Every write is durable when the method returns, so a crash between
    entries never loses a status transition.
    """

    def list_runnable(self, kind: EntryKind) -> list[CatalogEntry]:
        """Entries with a runnable status, in processing order."""
        ...

    def set_status(
        self, kind: EntryKind, entry_id: int, status: TranscodeStatus
    ) -> None:
        """Persist an entry's status."""
        ...

    def set_playback_path(self, kind: EntryKind, entry_id: int, path: str) -> None:
        """Persist the catalog path of an entry's master playlist."""
        ...

    def set_series_status(self, series_id: int, status: TranscodeStatus) -> None:
        """Persist a series' status."""
        ...

    def all_children_completed(self, series_id: int) -> bool:
        """True if every episode of the series is completed."""
        ...


class SQLiteJobStore:
    """JobStore over the catalog database.

    Each write is committed immediately.
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def list_runnable(self, kind: EntryKind) -> list[CatalogEntry]:
        return queries.list_runnable(self._conn, kind)

    @handle_database_locked
    def set_status(
        self, kind: EntryKind, entry_id: int, status: TranscodeStatus
    ) -> None:
        if not queries.set_status(self._conn, kind, entry_id, status):
            logger.warning("No %s with id %d to update", kind.value, entry_id)
        self._conn.commit()

    @handle_database_locked
    def set_playback_path(self, kind: EntryKind, entry_id: int, path: str) -> None:
        queries.set_playback_path(self._conn, kind, entry_id, path)
        self._conn.commit()

    @handle_database_locked
    def set_series_status(self, series_id: int, status: TranscodeStatus) -> None:
        queries.set_series_status(self._conn, series_id, status)
        self._conn.commit()

    def all_children_completed(self, series_id: int) -> bool:
        return queries.all_children_completed(self._conn, series_id)
