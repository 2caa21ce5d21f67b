"""CLI entry point for appwrite-sync.

Provides push and pull commands that synchronize a local project
manifest with a remote project.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

import click

from appwrite_sync import __version__

if TYPE_CHECKING:
    from appwrite_sync.config.models import Config
    from appwrite_sync.manifest.store import ManifestStore
    from appwrite_sync.models.results import PushResult
    from appwrite_sync.services.pull import Pull
    from appwrite_sync.services.push import Push

T = TypeVar("T")


@dataclass
class CliState:
    """Global options shared by every command."""

    config_path: Path | None = None
    manifest_path: Path | None = None
    force: bool = False
    all: bool = False
    verbose: bool = False


pass_state = click.make_pass_decorator(CliState)


def _load(state: CliState) -> tuple["Config", "ManifestStore"]:
    from appwrite_sync.config.loader import load_config
    from appwrite_sync.errors import SyncError
    from appwrite_sync.manifest.store import ManifestStore
    from appwrite_sync.utils.logging import configure_logging

    try:
        cfg = load_config(state.config_path)
        configure_logging(cfg.logging, verbose=state.verbose)
        store = ManifestStore.load(state.manifest_path or cfg.manifest_path)
    except (FileNotFoundError, ValueError, SyncError) as e:
        raise click.ClickException(str(e)) from e

    if not cfg.client.project_id and store.project_id:
        cfg.client.project_id = store.project_id
    return cfg, store


def _run(main: Callable[[], Awaitable[T]]) -> T:
    from loguru import logger

    from appwrite_sync.errors import SyncError

    try:
        return asyncio.run(main())
    except SyncError as e:
        logger.opt(exception=e).debug("Command failed")
        raise click.ClickException(str(e)) from e


def run_push(state: CliState, operation: Callable[["Push"], Awaitable["PushResult"]]) -> None:
    """Build a Push session, run one operation and exit non-zero on errors."""
    from rich.console import Console

    from appwrite_sync.gateway.factory import create_gateways
    from appwrite_sync.services.confirmation import Confirmer
    from appwrite_sync.services.poller import RemoteWaiter
    from appwrite_sync.services.progress import Reporter
    from appwrite_sync.services.push import Push

    cfg, store = _load(state)
    console = Console()
    reporter = Reporter(console)

    async def main() -> "PushResult":
        async with create_gateways(cfg.client) as gateways:
            waiter = RemoteWaiter.from_config(cfg.polling, notice=reporter.log)
            push = Push(gateways, store, Confirmer(force=state.force, console=console), waiter, reporter)
            return await operation(push)

    result = _run(main)
    if result.errors or result.failed_deployments:
        click.get_current_context().exit(1)


def run_pull(state: CliState, operation: Callable[["Pull"], Awaitable[Any]]) -> None:
    """Build a Pull session and run one operation."""
    from rich.console import Console

    from appwrite_sync.gateway.factory import create_gateways
    from appwrite_sync.services.progress import Reporter
    from appwrite_sync.services.pull import Pull

    cfg, store = _load(state)
    reporter = Reporter(Console())

    async def main() -> Any:
        async with create_gateways(cfg.client) as gateways:
            return await operation(Pull(gateways, store, reporter))

    _run(main)


@click.group()
@click.version_option(version=__version__)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "--manifest",
    "-m",
    "manifest_path",
    type=click.Path(path_type=Path),
    help="Path to the project manifest (default: appwrite.json)",
)
@click.option("--force", "-f", is_flag=True, help="Apply changes without asking for confirmation")
@click.option("--all", "all_", is_flag=True, help="Run every resource kind when no kind is given")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Path | None,
    manifest_path: Path | None,
    force: bool,
    all_: bool,
    verbose: bool,
) -> None:
    """Synchronize a local project manifest with a remote project.

    `push` converges the remote project to the manifest; `pull` copies
    remote resources into the manifest.
    """
    ctx.obj = CliState(config_path, manifest_path, force, all_, verbose)


# Push


@cli.group(invoke_without_command=True)
@click.pass_context
def push(ctx: click.Context) -> None:
    """Push manifest resources to the remote project."""
    if ctx.invoked_subcommand is not None:
        return
    state = ctx.find_object(CliState)
    if state is not None and state.all:
        run_push(state, lambda p: p.push_resources())
        return
    click.echo(ctx.get_help())


@push.command("all")
@click.option("--attempts", type=click.IntRange(min=1), help="Poll attempts for attributes and indexes")
@click.option("--async", "async_deploy", is_flag=True, help="Do not wait for function builds")
@click.option("--no-code", is_flag=True, help="Push function definitions without deploying code")
@click.option("--with-variables", is_flag=True, help="Replace remote function variables")
@pass_state
def push_all(state: CliState, attempts: int | None, async_deploy: bool, no_code: bool, with_variables: bool) -> None:
    """Push every resource kind in the manifest."""
    run_push(
        state,
        lambda p: p.push_resources(
            attempts=attempts, async_deploy=async_deploy, code=not no_code, with_variables=with_variables
        ),
    )


@push.command("settings")
@pass_state
def push_settings(state: CliState) -> None:
    """Push project name, services and auth settings."""
    run_push(state, lambda p: p.push_settings())


@push.command("functions")
@click.option("--function-id", "function_ids", multiple=True, help="Function to push (repeatable)")
@click.option("--async", "async_deploy", is_flag=True, help="Do not wait for builds")
@click.option("--no-code", is_flag=True, help="Push definitions without deploying code")
@click.option("--with-variables", is_flag=True, help="Replace remote variables with local ones")
@pass_state
def push_functions(
    state: CliState,
    function_ids: tuple[str, ...],
    async_deploy: bool,
    no_code: bool,
    with_variables: bool,
) -> None:
    """Push functions and deploy their code."""
    run_push(
        state,
        lambda p: p.push_functions(list(function_ids) or None, async_deploy, not no_code, with_variables),
    )


@push.command("collections")
@click.option("--attempts", type=click.IntRange(min=1), help="Poll attempts for attributes and indexes")
@pass_state
def push_collections(state: CliState, attempts: int | None) -> None:
    """Push collections with their attributes and indexes."""
    run_push(state, lambda p: p.push_collections(attempts=attempts))


@push.command("tables")
@click.option("--attempts", type=click.IntRange(min=1), help="Poll attempts for columns and indexes")
@pass_state
def push_tables(state: CliState, attempts: int | None) -> None:
    """Push databases and tables with their columns and indexes."""
    run_push(state, lambda p: p.push_tables(attempts=attempts))


@push.command("buckets")
@pass_state
def push_buckets(state: CliState) -> None:
    """Push storage buckets."""
    run_push(state, lambda p: p.push_buckets())


@push.command("teams")
@pass_state
def push_teams(state: CliState) -> None:
    """Push teams."""
    run_push(state, lambda p: p.push_teams())


@push.command("topics")
@pass_state
def push_topics(state: CliState) -> None:
    """Push messaging topics."""
    run_push(state, lambda p: p.push_topics())


# Pull


@cli.group(invoke_without_command=True)
@click.pass_context
def pull(ctx: click.Context) -> None:
    """Pull remote resources into the manifest."""
    if ctx.invoked_subcommand is not None:
        return
    state = ctx.find_object(CliState)
    if state is not None and state.all:
        run_pull(state, lambda p: p.pull_resources())
        return
    click.echo(ctx.get_help())


@pull.command("all")
@click.option("--no-code", is_flag=True, help="Do not download function code")
@click.option("--with-variables", is_flag=True, help="Write function variables to .env files")
@pass_state
def pull_all(state: CliState, no_code: bool, with_variables: bool) -> None:
    """Pull every resource kind."""
    run_pull(state, lambda p: p.pull_resources(code=not no_code, with_variables=with_variables))


@pull.command("settings")
@pass_state
def pull_settings(state: CliState) -> None:
    """Pull project name, services and auth settings."""
    run_pull(state, lambda p: p.pull_settings())


@pull.command("functions")
@click.option("--function-id", "function_ids", multiple=True, help="Function to pull (repeatable)")
@click.option("--no-code", is_flag=True, help="Do not download function code")
@click.option("--with-variables", is_flag=True, help="Write function variables to .env files")
@pass_state
def pull_functions(state: CliState, function_ids: tuple[str, ...], no_code: bool, with_variables: bool) -> None:
    """Pull functions, their code and variables."""
    run_pull(state, lambda p: p.pull_functions(not no_code, with_variables, list(function_ids) or None))


@pull.command("collections")
@pass_state
def pull_collections(state: CliState) -> None:
    """Pull databases and collections."""
    run_pull(state, lambda p: p.pull_collections())


@pull.command("tables")
@pass_state
def pull_tables(state: CliState) -> None:
    """Pull databases and tables."""
    run_pull(state, lambda p: p.pull_tables())


@pull.command("buckets")
@pass_state
def pull_buckets(state: CliState) -> None:
    """Pull storage buckets."""
    run_pull(state, lambda p: p.pull_buckets())


@pull.command("teams")
@pass_state
def pull_teams(state: CliState) -> None:
    """Pull teams."""
    run_pull(state, lambda p: p.pull_teams())


@pull.command("topics")
@pass_state
def pull_topics(state: CliState) -> None:
    """Pull messaging topics."""
    run_pull(state, lambda p: p.pull_topics())


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
