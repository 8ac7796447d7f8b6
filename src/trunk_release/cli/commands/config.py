"""Implementation of the 'config' and 'init' commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

from trunk_release.cli.context import handle_errors, project_root
from trunk_release.config import find_config_file, load_config, render_default_config
from trunk_release.config.loader import CONFIG_FILE_NAME

if TYPE_CHECKING:
    from rich.console import Console


def run_config(
    path: str | None,
    resolved: bool,
    console: Console,
    err_console: Console,
) -> None:
    """Show which configuration file applies, and optionally its contents.

    Args:
        path: Optional path to project directory
        resolved: Print the full configuration with defaults filled in
        console: Console for standard output
        err_console: Console for error output
    """
    root = project_root(path)
    with handle_errors(console, err_console):
        config_file = find_config_file(root)
        config = load_config(root)

    if config_file is None:
        console.print("[dim]No configuration file found; using defaults.[/]")
    else:
        console.print(f"Configuration: [cyan]{config_file}[/]")

    if resolved:
        console.print(
            config.model_dump_json(indent=2), markup=False, highlight=False, soft_wrap=True
        )


def run_init(
    path: str | None,
    force: bool,
    console: Console,
    err_console: Console,
) -> None:
    """Write a ``trunk-release.toml`` with the default settings.

    Args:
        path: Optional path to project directory
        force: Overwrite an existing file
        console: Console for standard output
        err_console: Console for error output
    """
    target = project_root(path) / CONFIG_FILE_NAME
    if target.exists() and not force:
        err_console.print(
            f"[red]Error:[/] {target} already exists. Use [cyan]--force[/] to overwrite."
        )
        raise SystemExit(1)

    try:
        target.write_text(render_default_config(), encoding="utf-8")
    except OSError as e:
        err_console.print(f"[red]Error writing {target}:[/] {e}")
        raise SystemExit(1) from e

    console.print(f"  [green]✓[/] Created {target}")
