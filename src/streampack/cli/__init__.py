"""CLI module for streampack."""

import dataclasses
import logging
from pathlib import Path

import click

from streampack.cli.context import fail
from streampack.config import ConfigError, LoggingConfig, get_config
from streampack.logging import configure_logging
from streampack.tools.registry import configure_tool_paths

_logging_configured: bool = False

logger = logging.getLogger(__name__)


def _configure_logging(
    config_logging: LoggingConfig,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """Configure logging from config and CLI overrides (once per process)."""
    global _logging_configured
    if _logging_configured:
        return

    overrides: dict[str, object] = {}
    if log_level:
        overrides["level"] = log_level
    if log_file:
        overrides["file"] = log_file
    if log_json:
        overrides["format"] = "json"
    configure_logging(dataclasses.replace(config_logging, **overrides))
    _logging_configured = True


@click.group()
@click.version_option(package_name="streampack")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Config file (default: ~/.streampack/config.toml).",
)
@click.option(
    "--db",
    "db_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Catalog database path.",
)
@click.option(
    "--policy",
    "policy_path",
    type=click.Path(path_type=Path),
    default=None,
    help="Packaging policy YAML file.",
)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: info).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Path | None,
    db_path: Path | None,
    policy_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """streampack - Package video files as multi-track HLS."""
    ctx.ensure_object(dict)

    # Preserve a config passed in by tests
    if "config" not in ctx.obj:
        try:
            ctx.obj["config"] = get_config(
                config_path=config_path,
                database_path=db_path,
                policy_path=policy_path,
                strict=config_path is not None,
            )
        except (ConfigError, ValueError) as e:
            fail(f"Invalid configuration: {e}")

    config = ctx.obj["config"]
    _configure_logging(config.logging, log_level, log_file, log_json)
    configure_tool_paths(ffmpeg=config.tools.ffmpeg, ffprobe=config.tools.ffprobe)
    logger.debug("Database: %s, policy: %s", config.database_path, config.policy_path)


# Defer import to avoid circular dependency
def _register_commands():
    from streampack.cli.catalog import catalog_group
    from streampack.cli.inspect import plan_command, probe_command
    from streampack.cli.manifest import manifest_command
    from streampack.cli.package import package_command
    from streampack.cli.run import run_command

    main.add_command(run_command)
    main.add_command(package_command)
    main.add_command(probe_command)
    main.add_command(plan_command)
    main.add_command(manifest_command)
    main.add_command(catalog_group)


_register_commands()
