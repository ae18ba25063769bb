"""CLI command for rebuilding a package's master playlist."""

import sys
from pathlib import Path

import click

from streampack.cli.context import get_policy
from streampack.cli.exit_codes import ExitCode
from streampack.manifest import ManifestError, synthesize, write_master_playlist


@click.command("manifest")
@click.argument(
    "output_dir", type=click.Path(exists=True, file_okay=False, path_type=Path)
)
@click.option(
    "--dry-run", is_flag=True, help="Print the master playlist instead of writing it."
)
@click.pass_context
def manifest_command(ctx: click.Context, output_dir: Path, dry_run: bool) -> None:
    """Rebuild master.m3u8 from the tracks present in OUTPUT_DIR."""
    languages = get_policy(ctx).subtitles.languages
    try:
        if dry_run:
            click.echo(synthesize(output_dir, subtitle_languages=languages), nl=False)
            return
        path = write_master_playlist(output_dir, subtitle_languages=languages)
    except ManifestError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCode.FAILURES)
    click.echo(f"Wrote {path}")
