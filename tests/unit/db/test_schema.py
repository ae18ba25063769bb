"""Tests for database schema creation and connections."""

import sqlite3
from pathlib import Path

import pytest

from streampack.db.connection import (
    DatabaseLockedError,
    get_connection,
    handle_database_locked,
    open_connection,
)
from streampack.db.schema import (
    SCHEMA_VERSION,
    get_schema_version,
    initialize_database,
)


class TestSchema:
    """Tests for initialize_database."""

    def test_creates_tables(self, db_conn: sqlite3.Connection) -> None:
        tables = {
            row["name"]
            for row in db_conn.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table'"
            )
        }
        assert {"_meta", "movies", "series", "episodes"} <= tables

    def test_records_version(self, db_conn: sqlite3.Connection) -> None:
        assert get_schema_version(db_conn) == SCHEMA_VERSION

    def test_version_missing_before_init(self) -> None:
        conn = open_connection(":memory:")
        try:
            assert get_schema_version(conn) is None
        finally:
            conn.close()

    def test_idempotent(self, db_conn: sqlite3.Connection) -> None:
        initialize_database(db_conn)
        assert get_schema_version(db_conn) == SCHEMA_VERSION

    def test_episode_requires_series(self, db_conn: sqlite3.Connection) -> None:
        """Foreign keys are enforced."""
        with pytest.raises(sqlite3.IntegrityError):
            db_conn.execute(
                """
                INSERT INTO episodes (series_id, title, season_number,
                    episode_number, file_path, status, created_at, updated_at)
                VALUES (999, 'Pilot', 1, 1, '/tv/a.mkv', 'pending', 'x', 'x')
                """
            )


class TestConnection:
    """Tests for connection helpers."""

    def test_file_database_creates_directory(self, tmp_path: Path) -> None:
        db_path = tmp_path / "nested" / "catalog.db"
        with get_connection(db_path) as conn:
            initialize_database(conn)
        assert db_path.exists()

    def test_default_path_in_data_dir(self, streampack_isolated: Path) -> None:
        with get_connection() as conn:
            initialize_database(conn)
        assert (streampack_isolated / "catalog.db").exists()

    def test_row_factory(self, db_conn: sqlite3.Connection) -> None:
        row = db_conn.execute("SELECT 1 AS one").fetchone()
        assert row["one"] == 1

    def test_locked_error_converted(self) -> None:
        @handle_database_locked
        def write() -> None:
            raise sqlite3.OperationalError("database is locked")

        with pytest.raises(DatabaseLockedError):
            write()

    def test_other_operational_errors_propagate(self) -> None:
        @handle_database_locked
        def write() -> None:
            raise sqlite3.OperationalError("no such table: movies")

        with pytest.raises(sqlite3.OperationalError, match="no such table"):
            write()
