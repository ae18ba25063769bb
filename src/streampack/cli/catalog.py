"""CLI commands for managing catalog entries."""

import json

import click

from streampack.cli.context import fail, get_db_connection
from streampack.db import (
    CatalogEntry,
    EntryKind,
    TranscodeStatus,
    get_entry,
    get_or_create_series,
    insert_episode,
    insert_movie,
    list_entries,
    queue_entry,
    reset_to_pending,
)

_KIND_CHOICES = {
    "movies": EntryKind.MOVIE,
    "episodes": EntryKind.EPISODE,
}

_ENTRY_KIND = click.Choice(["movie", "episode"], case_sensitive=False)


def _kinds(kind: str | None) -> list[EntryKind]:
    if kind is None:
        return list(EntryKind)
    return [_KIND_CHOICES[kind.lower()]]


def _entry_to_dict(entry: CatalogEntry) -> dict:
    data = {
        "id": entry.id,
        "kind": entry.kind.value,
        "title": entry.title,
        "file_path": entry.file_path,
        "status": entry.status.value,
        "play_path": entry.play_path,
    }
    if entry.is_episode:
        data.update(
            series_id=entry.series_id,
            series_title=entry.series_title,
            season_number=entry.season_number,
            episode_number=entry.episode_number,
        )
    return data


def _format_entry(entry: CatalogEntry) -> str:
    if entry.is_episode:
        label = (
            f"{entry.series_title} S{entry.season_number or 0:02d}"
            f"E{entry.episode_number or 0:02d} {entry.title}"
        )
    else:
        label = entry.title
    return f"{entry.kind.value:<7} {entry.id:>5}  {entry.status.value:<11} {label}"


@click.group("catalog")
def catalog_group() -> None:
    """Manage movies and episodes in the catalog."""


@catalog_group.command("add-movie")
@click.argument("title")
@click.argument("file_path")
@click.pass_context
def add_movie_command(ctx: click.Context, title: str, file_path: str) -> None:
    """Add a movie with catalog path FILE_PATH."""
    conn = get_db_connection(ctx)
    movie_id = insert_movie(conn, title, file_path)
    conn.commit()
    click.echo(f"Added movie {movie_id}: {title}")


@catalog_group.command("add-series")
@click.argument("title")
@click.pass_context
def add_series_command(ctx: click.Context, title: str) -> None:
    """Add a series (no-op if it already exists)."""
    conn = get_db_connection(ctx)
    series_id = get_or_create_series(conn, title)
    conn.commit()
    click.echo(f"Series {series_id}: {title}")


@catalog_group.command("add-episode")
@click.argument("series_title")
@click.argument("season", type=click.IntRange(min=0))
@click.argument("episode", type=click.IntRange(min=0))
@click.argument("title")
@click.argument("file_path")
@click.pass_context
def add_episode_command(
    ctx: click.Context,
    series_title: str,
    season: int,
    episode: int,
    title: str,
    file_path: str,
) -> None:
    """Add an episode, creating its series if needed."""
    conn = get_db_connection(ctx)
    series_id = get_or_create_series(conn, series_title)
    episode_id = insert_episode(conn, series_id, title, season, episode, file_path)
    conn.commit()
    label = f"{series_title} S{season:02d}E{episode:02d}"
    click.echo(f"Added episode {episode_id}: {label}")


@catalog_group.command("list")
@click.option(
    "--kind",
    type=click.Choice(list(_KIND_CHOICES), case_sensitive=False),
    default=None,
    help="Only list movies or episodes.",
)
@click.option(
    "--status",
    type=click.Choice([s.value for s in TranscodeStatus], case_sensitive=False),
    default=None,
    help="Only list entries with this status.",
)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_command(
    ctx: click.Context, kind: str | None, status: str | None, as_json: bool
) -> None:
    """List catalog entries."""
    conn = get_db_connection(ctx)
    statuses = frozenset({TranscodeStatus(status.lower())}) if status else None
    entries: list[CatalogEntry] = []
    for k in _kinds(kind):
        entries.extend(list_entries(conn, k, statuses))

    if as_json:
        click.echo(json.dumps([_entry_to_dict(e) for e in entries], indent=2))
        return
    if not entries:
        click.echo("No entries.")
        return
    for entry in entries:
        click.echo(_format_entry(entry))


@catalog_group.command("reset")
@click.option(
    "--kind",
    type=click.Choice(list(_KIND_CHOICES), case_sensitive=False),
    default=None,
    help="Only reset movies or episodes.",
)
@click.option(
    "--failed-only", is_flag=True, help="Only reset entries that failed."
)
@click.pass_context
def reset_command(ctx: click.Context, kind: str | None, failed_only: bool) -> None:
    """Set entries back to pending so the next run retries them."""
    conn = get_db_connection(ctx)
    entry_kind = _KIND_CHOICES[kind.lower()] if kind else None
    count = reset_to_pending(conn, entry_kind, only_failed=failed_only)
    conn.commit()
    click.echo(f"Reset {count} entries to pending")


@catalog_group.command("queue")
@click.argument("kind", type=_ENTRY_KIND)
@click.argument("entry_id", type=int)
@click.pass_context
def queue_command(ctx: click.Context, kind: str, entry_id: int) -> None:
    """Queue a single movie or episode by ID."""
    conn = get_db_connection(ctx)
    entry_kind = EntryKind(kind.lower())
    if get_entry(conn, entry_kind, entry_id) is None:
        fail(f"No {entry_kind.value} with ID {entry_id}")
    queue_entry(conn, entry_kind, entry_id)
    conn.commit()
    click.echo(f"Queued {entry_kind.value} {entry_id}")
