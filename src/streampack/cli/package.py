"""CLI command for packaging a single file outside the catalog."""

import sys
from pathlib import Path

import click

from streampack.cli.context import get_config, get_policy
from streampack.cli.exit_codes import ExitCode
from streampack.executor import UnitOutcome
from streampack.jobs import LoggingProgressReporter
from streampack.workflow import PackagingProcessor


@click.command("package")
@click.argument(
    "input_path",
    type=click.Path(exists=True, dir_okay=False, readable=True, path_type=Path),
)
@click.argument("output_dir", type=click.Path(file_okay=False, path_type=Path))
@click.pass_context
def package_command(ctx: click.Context, input_path: Path, output_dir: Path) -> None:
    """Package INPUT_PATH as HLS into OUTPUT_DIR.

    Does nothing if OUTPUT_DIR already holds a master.m3u8.
    """
    config = get_config(ctx)
    reporter = LoggingProgressReporter()
    processor = PackagingProcessor(
        get_policy(ctx),
        ffmpeg_path=config.tools.ffmpeg,
        timeout=config.encode_timeout,
        progress=reporter.on_unit_progress,
    )
    result = processor.process(input_path, output_dir)

    if result.already_packaged:
        click.echo(f"Already packaged: {result.manifest_path}")
        sys.exit(ExitCode.SUCCESS)

    for unit in result.units:
        line = f"  {unit.kind.value:<9} {unit.name:<8} {unit.outcome.value}"
        if unit.outcome is UnitOutcome.FAILED and unit.message:
            line += f" ({unit.message})"
        click.echo(line)

    if not result.success:
        click.echo(f"Failed: {result.error}", err=True)
        sys.exit(ExitCode.FAILURES)

    click.echo(f"Wrote {result.manifest_path}")
    sys.exit(ExitCode.FAILURES if result.failed_units else ExitCode.SUCCESS)
