"""Catalog CRUD operations.

This module contains database query functions for catalog management:
- Movie, series and episode insert operations
- Runnable entry listing and status transitions
- Series aggregation and bulk reset

None of these functions commit. Callers manage transactions.
"""

import sqlite3
from datetime import datetime, timezone

from streampack.db.types import (
    RUNNABLE_STATUSES,
    CatalogEntry,
    EntryKind,
    SeriesRecord,
    TranscodeStatus,
)

# Whitelist of entry tables (table names cannot be bound as parameters)
_ENTRY_TABLES: dict[EntryKind, str] = {
    EntryKind.MOVIE: "movies",
    EntryKind.EPISODE: "episodes",
}

_EPISODE_SELECT = """
    SELECT e.id, e.title, e.file_path, e.status, e.play_path,
           e.series_id, s.title AS series_title,
           e.season_number, e.episode_number
    FROM episodes e
    JOIN series s ON s.id = e.series_id
"""

_MOVIE_SELECT = """
    SELECT id, title, file_path, status, play_path
    FROM movies
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_to_entry(row: sqlite3.Row, kind: EntryKind) -> CatalogEntry:
    """Convert a database row to CatalogEntry using named columns.

    Args:
        row: sqlite3.Row from a movie or episode SELECT.
        kind: Which table the row came from.

    Returns:
        CatalogEntry populated from the row.
    """
    entry = CatalogEntry(
        id=row["id"],
        kind=kind,
        title=row["title"],
        file_path=row["file_path"],
        status=TranscodeStatus(row["status"]),
        play_path=row["play_path"],
    )
    if kind is EntryKind.EPISODE:
        entry.series_id = row["series_id"]
        entry.series_title = row["series_title"]
        entry.season_number = row["season_number"]
        entry.episode_number = row["episode_number"]
    return entry


def insert_movie(
    conn: sqlite3.Connection,
    title: str,
    file_path: str,
    status: TranscodeStatus = TranscodeStatus.PENDING,
) -> int:
    """Insert a movie record.

    Args:
        conn: Database connection.
        title: Movie title, used to name the output directory.
        file_path: Catalog path of the source file.
        status: Initial status.

    Returns:
        The ID of the inserted movie.
    """
    now = _now()
    cursor = conn.execute(
        """
        INSERT INTO movies (title, file_path, status, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?)
        """,
        (title, file_path, status.value, now, now),
    )
    return cursor.lastrowid


def get_or_create_series(conn: sqlite3.Connection, title: str) -> int:
    """Return the ID of the series with this title, creating it if needed."""
    row = conn.execute("SELECT id FROM series WHERE title = ?", (title,)).fetchone()
    if row is not None:
        return row["id"]
    now = _now()
    cursor = conn.execute(
        """
        INSERT INTO series (title, status, created_at, updated_at)
        VALUES (?, ?, ?, ?)
        """,
        (title, TranscodeStatus.PENDING.value, now, now),
    )
    return cursor.lastrowid


def insert_episode(
    conn: sqlite3.Connection,
    series_id: int,
    title: str,
    season_number: int,
    episode_number: int,
    file_path: str,
    status: TranscodeStatus = TranscodeStatus.PENDING,
) -> int:
    """Insert an episode record.

    Args:
        conn: Database connection.
        series_id: Owning series.
        title: Episode title.
        season_number: Season number (1-based).
        episode_number: Episode number within the season.
        file_path: Catalog path of the source file.
        status: Initial status.

    Returns:
        The ID of the inserted episode.
    """
    now = _now()
    cursor = conn.execute(
        """
        INSERT INTO episodes (
            series_id, title, season_number, episode_number,
            file_path, status, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """,
        (
            series_id,
            title,
            season_number,
            episode_number,
            file_path,
            status.value,
            now,
            now,
        ),
    )
    return cursor.lastrowid


def get_entry(
    conn: sqlite3.Connection, kind: EntryKind, entry_id: int
) -> CatalogEntry | None:
    """Get a movie or episode by ID."""
    if kind is EntryKind.EPISODE:
        row = conn.execute(f"{_EPISODE_SELECT} WHERE e.id = ?", (entry_id,)).fetchone()
    else:
        row = conn.execute(f"{_MOVIE_SELECT} WHERE id = ?", (entry_id,)).fetchone()
    return _row_to_entry(row, kind) if row is not None else None


def list_entries(
    conn: sqlite3.Connection,
    kind: EntryKind,
    statuses: frozenset[TranscodeStatus] | None = None,
) -> list[CatalogEntry]:
    """List entries of a kind, optionally filtered by status.

    Movies are ordered by ID. Episodes are ordered by series, then
    (season, episode), which is the order a batch processes them in.

    Args:
        conn: Database connection.
        kind: Movies or episodes.
        statuses: Only return entries with one of these statuses.

    Returns:
        List of CatalogEntry.
    """
    params: list[str] = []
    where = ""
    if statuses:
        ordered = sorted(s.value for s in statuses)
        params.extend(ordered)
        column = "e.status" if kind is EntryKind.EPISODE else "status"
        where = f" WHERE {column} IN ({', '.join('?' for _ in ordered)})"

    if kind is EntryKind.EPISODE:
        sql = (
            f"{_EPISODE_SELECT}{where}"
            " ORDER BY e.series_id, e.season_number, e.episode_number, e.id"
        )
    else:
        sql = f"{_MOVIE_SELECT}{where} ORDER BY id"

    return [_row_to_entry(row, kind) for row in conn.execute(sql, params)]


def list_runnable(conn: sqlite3.Connection, kind: EntryKind) -> list[CatalogEntry]:
    """List entries a batch run should pick up (pending, queued, in progress)."""
    return list_entries(conn, kind, RUNNABLE_STATUSES)


def set_status(
    conn: sqlite3.Connection,
    kind: EntryKind,
    entry_id: int,
    status: TranscodeStatus,
) -> bool:
    """Update an entry's status.

    Returns:
        True if a row was updated.
    """
    table = _ENTRY_TABLES[kind]
    cursor = conn.execute(
        f"UPDATE {table} SET status = ?, updated_at = ? WHERE id = ?",  # nosec B608
        (status.value, _now(), entry_id),
    )
    return cursor.rowcount > 0


def set_playback_path(
    conn: sqlite3.Connection, kind: EntryKind, entry_id: int, play_path: str
) -> bool:
    """Record the catalog path of an entry's master playlist.

    Returns:
        True if a row was updated.
    """
    table = _ENTRY_TABLES[kind]
    cursor = conn.execute(
        f"UPDATE {table} SET play_path = ?, updated_at = ? WHERE id = ?",  # nosec B608
        (play_path, _now(), entry_id),
    )
    return cursor.rowcount > 0


def queue_entry(conn: sqlite3.Connection, kind: EntryKind, entry_id: int) -> bool:
    """Mark a single entry as queued, whatever its current status.

    Returns:
        True if a row was updated.
    """
    return set_status(conn, kind, entry_id, TranscodeStatus.QUEUED)


def get_series(conn: sqlite3.Connection, series_id: int) -> SeriesRecord | None:
    """Get a series by ID."""
    row = conn.execute(
        "SELECT id, title, status FROM series WHERE id = ?", (series_id,)
    ).fetchone()
    if row is None:
        return None
    return SeriesRecord(
        id=row["id"], title=row["title"], status=TranscodeStatus(row["status"])
    )


def set_series_status(
    conn: sqlite3.Connection, series_id: int, status: TranscodeStatus
) -> bool:
    """Update a series' status.

    Returns:
        True if a row was updated.
    """
    cursor = conn.execute(
        "UPDATE series SET status = ?, updated_at = ? WHERE id = ?",
        (status.value, _now(), series_id),
    )
    return cursor.rowcount > 0


def all_children_completed(conn: sqlite3.Connection, series_id: int) -> bool:
    """Check whether every episode of a series is completed.

    A series with no episodes is not considered completed.
    """
    row = conn.execute(
        """
        SELECT COUNT(*) AS total,
               SUM(CASE WHEN status = ? THEN 1 ELSE 0 END) AS completed
        FROM episodes
        WHERE series_id = ?
        """,
        (TranscodeStatus.COMPLETED.value, series_id),
    ).fetchone()
    total = row["total"] or 0
    return total > 0 and row["completed"] == total


def reset_to_pending(
    conn: sqlite3.Connection,
    kind: EntryKind | None = None,
    only_failed: bool = False,
) -> int:
    """Reset entries back to pending so the next run picks them up again.

    Playback paths are kept; a completed package on disk is detected by
    the idempotency check and not rebuilt.

    Args:
        conn: Database connection.
        kind: Limit the reset to movies or episodes. None resets both
            (and all series).
        only_failed: Reset only failed entries.

    Returns:
        Number of entries reset.
    """
    kinds = [kind] if kind is not None else list(EntryKind)
    condition = " WHERE status = ?" if only_failed else ""
    count = 0
    now = _now()
    for k in kinds:
        table = _ENTRY_TABLES[k]
        params: list[str] = [TranscodeStatus.PENDING.value, now]
        if only_failed:
            params.append(TranscodeStatus.FAILED.value)
        cursor = conn.execute(
            f"UPDATE {table} SET status = ?, updated_at = ?{condition}",  # nosec B608
            params,
        )
        count += cursor.rowcount

    if kind is not EntryKind.MOVIE:
        params = [TranscodeStatus.PENDING.value, now]
        if only_failed:
            params.append(TranscodeStatus.FAILED.value)
        conn.execute(f"UPDATE series SET status = ?, updated_at = ?{condition}", params)
    return count
