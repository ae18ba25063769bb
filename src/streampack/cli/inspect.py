"""CLI commands for inspecting a source file without encoding."""

import json
import sys
from dataclasses import asdict
from pathlib import Path

import click

from streampack.cli.context import fail, get_policy
from streampack.cli.exit_codes import ExitCode
from streampack.introspector import FFprobeProber, ProbeError, StreamMetadata
from streampack.workflow import PackagePlan, plan_package

_SOURCE = click.Path(exists=True, dir_okay=False, readable=True, path_type=Path)


def _make_prober() -> FFprobeProber:
    try:
        return FFprobeProber()
    except ProbeError as e:
        fail(str(e))


def format_metadata(path: Path, metadata: StreamMetadata) -> str:
    """Format probed metadata for human-readable output."""
    lines = [f"File: {path}"]
    if metadata.duration_seconds is not None:
        lines.append(f"Duration: {metadata.duration_seconds:.1f}s")
    if metadata.video is not None:
        lines.append(
            f"Video: {metadata.video.width}x{metadata.video.height}"
            f" ({metadata.video.codec or 'unknown'})"
        )
    lines.append(f"Audio streams: {len(metadata.audio_streams)}")
    for stream in metadata.audio_streams:
        lines.append(
            f"  #{stream.index} {stream.language or '-'} {stream.codec or ''}".rstrip()
        )
    lines.append(f"Subtitle streams: {len(metadata.subtitle_streams)}")
    for stream in metadata.subtitle_streams:
        lines.append(
            f"  #{stream.index} {stream.language or '-'} {stream.codec or ''}".rstrip()
        )
    return "\n".join(lines)


def format_plan(plan: PackagePlan) -> str:
    """Format a package plan for human-readable output."""
    lines = ["Renditions:"]
    for spec in plan.renditions:
        lines.append(
            f"  {spec.name}: {spec.width}x{spec.height} crf={spec.crf}"
            f" maxrate={spec.maxrate}"
        )
    lines.append("Audio:")
    if not plan.audio:
        lines.append("  (none)")
    for track in plan.audio:
        default = " [default]" if track.is_default else ""
        lines.append(
            f"  #{track.source_index} -> audio/{track.language} {track.name}{default}"
        )
    lines.append("Subtitles:")
    if not plan.subtitles:
        lines.append("  (none)")
    for sub in plan.subtitles:
        default = " [default]" if sub.is_default else ""
        source = (
            f"#{sub.source_index}" if sub.source_index is not None else sub.source_path
        )
        lines.append(
            f"  {source} -> subs_{sub.language}.vtt {sub.name}"
            f" ({sub.origin.value}){default}"
        )
    return "\n".join(lines)


@click.command("probe")
@click.argument("file", type=_SOURCE)
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
def probe_command(file: Path, as_json: bool) -> None:
    """Show the streams of FILE."""
    prober = _make_prober()
    try:
        metadata = prober.probe(file)
    except ProbeError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCode.FAILURES)

    if as_json:
        click.echo(json.dumps(asdict(metadata), indent=2, default=str))
    else:
        click.echo(format_metadata(file, metadata))


@click.command("plan")
@click.argument("file", type=_SOURCE)
@click.pass_context
def plan_command(ctx: click.Context, file: Path) -> None:
    """Show the renditions and tracks FILE would be packaged with."""
    policy = get_policy(ctx)
    prober = _make_prober()
    try:
        plan = plan_package(file, prober, policy)
    except ProbeError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCode.FAILURES)
    click.echo(format_plan(plan))
