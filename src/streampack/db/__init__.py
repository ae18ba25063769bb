"""Catalog database for streampack.

Usage:
    from streampack.db import get_connection, initialize_database
    from streampack.db import list_runnable, set_status
"""

from streampack.db.connection import (
    DatabaseLockedError,
    ensure_db_directory,
    get_connection,
    get_default_db_path,
    handle_database_locked,
    open_connection,
)
from streampack.db.queries import (
    all_children_completed,
    get_entry,
    get_or_create_series,
    get_series,
    insert_episode,
    insert_movie,
    list_entries,
    list_runnable,
    queue_entry,
    reset_to_pending,
    set_playback_path,
    set_series_status,
    set_status,
)
from streampack.db.schema import (
    SCHEMA_VERSION,
    create_schema,
    get_schema_version,
    initialize_database,
)
from streampack.db.types import (
    RUNNABLE_STATUSES,
    CatalogEntry,
    EntryKind,
    SeriesRecord,
    TranscodeStatus,
)

__all__ = [
    "RUNNABLE_STATUSES",
    "SCHEMA_VERSION",
    "CatalogEntry",
    "DatabaseLockedError",
    "EntryKind",
    "SeriesRecord",
    "TranscodeStatus",
    "all_children_completed",
    "create_schema",
    "ensure_db_directory",
    "get_connection",
    "get_default_db_path",
    "get_entry",
    "get_or_create_series",
    "get_schema_version",
    "get_series",
    "handle_database_locked",
    "initialize_database",
    "insert_episode",
    "insert_movie",
    "list_entries",
    "list_runnable",
    "open_connection",
    "queue_entry",
    "reset_to_pending",
    "set_playback_path",
    "set_series_status",
    "set_status",
]
