"""Command line entry point for trunk-release."""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from trunk_release import __version__
from trunk_release.cli.commands.changelog import run_changelog
from trunk_release.cli.commands.config import run_config, run_init
from trunk_release.cli.commands.plan import run_plan, run_version
from trunk_release.cli.commands.release import run_release

app = typer.Typer(
    name="trunk-release",
    help="Trunk-based semantic releases from conventional commits.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)

PathOption = typer.Option(None, "--path", "-p", help="Project directory (default: cwd)")


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, rich_tracebacks=True)],
        force=True,
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


@app.callback(invoke_without_command=True)
def _main(
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)
    setup_logging(verbose)


@app.command()
def release(
    path: str | None = PathOption,
    dry_run: bool = typer.Option(False, "--dry-run", help="Show what would happen."),
    force: bool = typer.Option(
        False, "--force", help="Re-release the latest tag when HEAD is that tag."
    ),
) -> None:
    """Bump, tag, push and publish the next release."""
    run_release(path, dry_run, force, console, err_console)


@app.command()
def plan(
    path: str | None = PathOption,
    output_format: str = typer.Option("human", "--format", "-f", help="human or json"),
    force: bool = typer.Option(False, "--force", help="Allow re-release planning."),
) -> None:
    """Show the planned next release without changing anything."""
    run_plan(path, output_format, force, console, err_console)


@app.command("version")
def version_cmd(
    path: str | None = PathOption,
    short: bool = typer.Option(False, "--short", "-s", help="Print only the version."),
) -> None:
    """Print the next version."""
    run_version(path, short, console, err_console)


@app.command()
def changelog(
    path: str | None = PathOption,
    write: bool = typer.Option(False, "--write", "-w", help="Write to the changelog file."),
    regenerate: bool = typer.Option(
        False, "--regenerate", help="Rebuild the changelog from every release tag."
    ),
) -> None:
    """Render the changelog for the next release."""
    run_changelog(path, write, regenerate, console, err_console)


@app.command("config")
def config_cmd(
    path: str | None = PathOption,
    resolved: bool = typer.Option(
        False, "--resolved", help="Print the configuration with defaults applied."
    ),
) -> None:
    """Show the active configuration."""
    run_config(path, resolved, console, err_console)


@app.command()
def init(
    path: str | None = PathOption,
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file."),
) -> None:
    """Create a trunk-release.toml with default settings."""
    run_init(path, force, console, err_console)


def main() -> None:
    app()
