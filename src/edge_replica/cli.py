# SPDX-License-Identifier: MIT
"""Command-line interface for edge-replica."""

import asyncio
import functools
import json
import sys
import traceback
from collections.abc import Callable
from typing import Any, TypeVar

import click

from . import __version__
from .config import get_config_manager
from .exceptions import FlushError, ReplicaError
from .logging_config import get_status_logger, setup_logging
from .models import DatabaseOptions, QueryResult
from .registry import get_runtime


F = TypeVar("F", bound=Callable[..., Any])


def handle_cli_errors(func: F) -> F:
    """Decorator to handle common CLI error patterns.

    Logs the failure on the status logger (with a traceback when
    ``--verbose`` is set) and exits with status code 1.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        status_logger = get_status_logger()
        verbose = kwargs.get("verbose", False)

        try:
            return func(*args, **kwargs)
        except (ReplicaError, ValueError, OSError) as e:
            if verbose:
                status_logger.error(f"Error in {func.__name__}: {e}")
                traceback.print_exc()
            else:
                status_logger.error(f"Error: {e}")
            sys.exit(1)

    return wrapper  # type: ignore


def print_version(ctx: click.Context, param: click.Parameter, value: bool) -> None:
    """Print version and exit if requested."""
    if value:
        click.echo(f"edge-replica version {__version__}")
        ctx.exit(0)


def parse_params(
    ctx: click.Context, param: click.Parameter, value: str | None
) -> list[Any]:
    """Parse ``--params`` as a JSON array of positional parameters."""
    if not value:
        return []
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError as e:
        raise click.BadParameter(f"not valid JSON: {e}") from e
    if not isinstance(parsed, list):
        raise click.BadParameter("must be a JSON array")
    return parsed


params_option = click.option(
    "--params",
    callback=parse_params,
    help='Positional parameters as a JSON array, e.g. \'[1, "a"]\'',
)
verbose_option = click.option(
    "--verbose", "-v", is_flag=True, help="Show tracebacks on errors"
)


@click.group()
@click.option(
    "--version",
    is_flag=True,
    callback=print_version,
    expose_value=False,
    is_eager=True,
    help="Show version information and exit",
)
def main() -> None:
    """edge-replica - Query and write synced database replicas."""
    detail_logger, _ = setup_logging()
    detail_logger.debug("CLI initialized")


@main.command()
@click.argument("name")
@click.argument("sql")
@params_option
@click.option(
    "--partial-sync/--full-sync",
    default=None,
    help="Bootstrap lazily or in full (default: replica.partial_sync)",
)
@verbose_option
@handle_cli_errors
def query(
    name: str, sql: str, params: list[Any], partial_sync: bool | None, verbose: bool
) -> None:
    """Run a read against database NAME and print the result as JSON."""
    result = asyncio.run(_async_query(name, sql, params, partial_sync))
    click.echo(json.dumps(result.model_dump(), indent=2, default=str))


async def _async_query(
    name: str, sql: str, params: list[Any], partial_sync: bool | None
) -> QueryResult:
    runtime = get_runtime()
    try:
        db = await runtime.acquire(name, DatabaseOptions(partial_sync=partial_sync))
        return await db.query(sql, params)
    finally:
        await runtime.aclose()


@main.command()
@click.argument("name")
@click.argument("sql")
@params_option
@verbose_option
@handle_cli_errors
def execute(name: str, sql: str, params: list[Any], verbose: bool) -> None:
    """Run a write against database NAME and wait for it to be pushed."""
    asyncio.run(_async_execute(name, sql, params))
    get_status_logger().info(f"Write to {name} pushed")


async def _async_execute(name: str, sql: str, params: list[Any]) -> None:
    runtime = get_runtime()
    try:
        db = await runtime.acquire(name)
        await db.execute(sql, params)
        await runtime.flush()
        if db.is_dirty():
            raise FlushError(f"Write to {name} was not pushed", database_name=name)
    finally:
        await runtime.aclose()


@main.command()
@click.argument("name")
@verbose_option
@handle_cli_errors
def pull(name: str, verbose: bool) -> None:
    """Fetch the latest remote state of database NAME into its replica."""
    asyncio.run(_async_pull(name))
    get_status_logger().info(f"Pulled {name}")


async def _async_pull(name: str) -> None:
    runtime = get_runtime()
    try:
        db = await runtime.acquire(name)
        await db.pull()
    finally:
        await runtime.aclose()


@main.command()
@verbose_option
@handle_cli_errors
def config(verbose: bool) -> None:
    """Show the effective configuration (API token masked)."""
    click.echo(get_config_manager().show_config())


if __name__ == "__main__":
    main()
