"""Implementation of the 'plan' and 'version' commands.

Both only read the repository: they compute the next release and print it.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from rich.markup import escape
from rich.table import Table

from trunk_release.cli.context import build_orchestrator, handle_errors

if TYPE_CHECKING:
    from rich.console import Console

    from trunk_release.core.release import ReleasePlan

OUTPUT_FORMATS = ("human", "json")


def run_plan(
    path: str | None,
    output_format: str,
    force: bool,
    console: Console,
    err_console: Console,
) -> None:
    """Run the plan command.

    Args:
        path: Optional path to project directory
        output_format: ``human`` or ``json``
        force: Plan a re-release of the latest tag if HEAD is that tag
        console: Console for standard output
        err_console: Console for error output
    """
    if output_format not in OUTPUT_FORMATS:
        err_console.print(
            f"[red]Error:[/] unknown format '{output_format}' "
            f"(expected one of: {', '.join(OUTPUT_FORMATS)})"
        )
        raise SystemExit(1)

    with handle_errors(console, err_console):
        orchestrator = build_orchestrator(
            path, console=console, err_console=err_console, with_host=False
        )
        plan = orchestrator.plan(force=force)

    if output_format == "json":
        console.print(
            json.dumps(plan.to_dict(), indent=2), markup=False, highlight=False, soft_wrap=True
        )
        return

    _print_plan(plan, console)


def run_version(
    path: str | None,
    short: bool,
    console: Console,
    err_console: Console,
) -> None:
    """Run the version command.

    Args:
        path: Optional path to project directory
        short: Print only the next version string
        console: Console for standard output
        err_console: Console for error output
    """
    with handle_errors(console, err_console):
        orchestrator = build_orchestrator(
            path, console=console, err_console=err_console, with_host=False
        )
        plan = orchestrator.plan()

    if short:
        console.print(
            str(plan.next_version), markup=False, highlight=False, soft_wrap=True
        )
        return

    current = str(plan.current_version) if plan.current_version else "(none)"
    console.print(f"{current} -> [green]{plan.next_version}[/] ({plan.bump})")


def _print_plan(plan: ReleasePlan, console: Console) -> None:
    current = str(plan.current_version) if plan.current_version else "(none)"
    console.print(f"Current version: [cyan]{current}[/]")
    console.print(f"Next version:    [green]{plan.next_version}[/]")
    console.print(f"Bump:            {plan.bump or 're-release'}")
    console.print(f"Tag:             {plan.tag_name}")
    if plan.floating_tag_name:
        console.print(f"Floating tag:    {plan.floating_tag_name}")

    if not plan.commits:
        return

    table = Table(title=f"{len(plan.commits)} commits")
    table.add_column("SHA", style="dim")
    table.add_column("Type", style="cyan")
    table.add_column("Scope")
    table.add_column("Description")
    for commit in plan.commits:
        kind = f"{commit.type}!" if commit.breaking else commit.type
        table.add_row(
            commit.short_sha, kind, escape(commit.scope or ""), escape(commit.description)
        )
    console.print(table)
