"""CLI command for batch processing runnable catalog entries."""

import logging
import sys

import click

from streampack.cli.context import (
    get_config,
    get_db_connection,
    get_policy,
    get_resolver,
)
from streampack.cli.exit_codes import ExitCode
from streampack.db.types import EntryKind
from streampack.jobs import JobRunner, LoggingProgressReporter, SQLiteJobStore
from streampack.notify import CacheNotifier
from streampack.workflow import PackagingProcessor

logger = logging.getLogger(__name__)

_KINDS = {
    "movies": EntryKind.MOVIE,
    "episodes": EntryKind.EPISODE,
    "all": None,
}


@click.command("run")
@click.option(
    "--kind",
    type=click.Choice(list(_KINDS), case_sensitive=False),
    default="all",
    show_default=True,
    help="Which entries to process.",
)
@click.pass_context
def run_command(ctx: click.Context, kind: str) -> None:
    """Package every pending, queued or interrupted catalog entry.

    Entries run one at a time. A failed entry is marked FAILED and the
    batch continues. Exits with 1 if any entry or series failed.
    """
    config = get_config(ctx)
    conn = get_db_connection(ctx)
    policy = get_policy(ctx)

    reporter = LoggingProgressReporter()
    processor = PackagingProcessor(
        policy,
        ffmpeg_path=config.tools.ffmpeg,
        timeout=config.encode_timeout,
        progress=reporter.on_unit_progress,
    )
    notifier = CacheNotifier(config.notify)
    runner = JobRunner(
        SQLiteJobStore(conn),
        get_resolver(ctx),
        processor,
        reporter=reporter,
        notifier=notifier,
    )
    try:
        summary = runner.run(_KINDS[kind.lower()])
    finally:
        notifier.close()

    click.echo(summary.describe())
    sys.exit(ExitCode.FAILURES if summary.has_failures else ExitCode.SUCCESS)
