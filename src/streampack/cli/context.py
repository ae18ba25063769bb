"""Shared helpers for CLI commands.

Commands read their configuration, database connection and packaging
policy from the click context object set up by the ``main`` group.
Tests may pre-populate ``ctx.obj`` with any of them.
"""

from __future__ import annotations

import atexit
import sqlite3
import sys
from typing import NoReturn

import click

from streampack.cli.exit_codes import ExitCode
from streampack.config import StreamPackConfig
from streampack.db.connection import open_connection
from streampack.db.schema import initialize_database
from streampack.paths import PathResolver
from streampack.policy import PackagingPolicy, PolicyValidationError, load_policy


def fail(message: str, code: ExitCode = ExitCode.USAGE_ERROR) -> NoReturn:
    """Print an error and exit."""
    click.echo(f"Error: {message}", err=True)
    sys.exit(code)


def get_config(ctx: click.Context) -> StreamPackConfig:
    """Get the effective configuration."""
    return ctx.obj["config"]


def get_db_connection(ctx: click.Context) -> sqlite3.Connection:
    """Get the catalog database connection, opening it on first use.

    The connection lives for the whole process and is closed at exit.
    """
    conn = ctx.obj.get("db_conn")
    if conn is not None:
        return conn

    db_path = get_config(ctx).database_path
    assert db_path is not None
    try:
        conn = open_connection(db_path)
        initialize_database(conn)
    except (sqlite3.Error, OSError) as e:
        fail(f"Cannot open database {db_path}: {e}")

    atexit.register(conn.close)
    ctx.obj["db_conn"] = conn
    return conn


def get_policy(ctx: click.Context) -> PackagingPolicy:
    """Load the packaging policy, exiting on an invalid policy file."""
    policy = ctx.obj.get("policy")
    if policy is not None:
        return policy

    policy_path = get_config(ctx).policy_path
    try:
        policy = load_policy(policy_path)
    except FileNotFoundError as e:
        fail(str(e))
    except PolicyValidationError as e:
        fail(f"Invalid policy {policy_path}: {e.message}")

    ctx.obj["policy"] = policy
    return policy


def get_resolver(ctx: click.Context) -> PathResolver:
    """Build the catalog path resolver from configuration."""
    paths = get_config(ctx).paths
    return PathResolver(paths.prefixes, windows=paths.windows)
