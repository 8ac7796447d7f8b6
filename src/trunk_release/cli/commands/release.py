"""Implementation of the 'release' command.

The release command plans the next version from commits since the last
tag and runs the full pipeline: version files, changelog, build, commit,
tags, push and GitHub release.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.panel import Panel

from trunk_release.cli.context import handle_errors, open_orchestrator

if TYPE_CHECKING:
    from rich.console import Console

    from trunk_release.core.release import ReleaseOutcome, ReleasePlan


def run_release(
    path: str | None,
    dry_run: bool,
    force: bool,
    console: Console,
    err_console: Console,
) -> None:
    """Run the release command.

    Args:
        path: Optional path to project directory
        dry_run: Print the steps instead of performing them
        force: Re-release the latest tag when HEAD is that tag's commit
        console: Console for standard output
        err_console: Console for error output
    """
    with (
        handle_errors(console, err_console),
        open_orchestrator(
            path, host_required=not dry_run, console=console, err_console=err_console
        ) as orchestrator,
    ):
        plan = orchestrator.plan(force=force)
        _print_plan_header(plan, dry_run, console)
        outcome = orchestrator.execute(plan, dry_run=dry_run)

    if outcome is None:
        console.print("\n[dim]Run without [cyan]--dry-run[/] to release.[/]")
        return

    console.print(_summary_panel(plan, outcome))


def _print_plan_header(plan: ReleasePlan, dry_run: bool, console: Console) -> None:
    mode = "[yellow]DRY-RUN[/]" if dry_run else "[green]RELEASING[/]"
    if plan.is_rerelease:
        console.print(f"\n{mode} - Re-releasing [green]{plan.next_version}[/]\n")
    elif plan.current_version is None:
        console.print(f"\n{mode} - First release: [green]{plan.next_version}[/]\n")
    else:
        console.print(
            f"\n{mode} - [cyan]{plan.current_version}[/] -> [green]{plan.next_version}[/] "
            f"({plan.bump}, {len(plan.commits)} commits)\n"
        )


def _summary_panel(plan: ReleasePlan, outcome: ReleaseOutcome) -> Panel:
    def mark(done: bool) -> str:
        return "[green]✓[/]" if done else "[dim]-[/]"

    lines = [
        f"  {mark(bool(outcome.changed_files))} Version files: "
        + (", ".join(str(p) for p in outcome.changed_files) or "unchanged"),
        f"  {mark(outcome.changelog_written)} Changelog",
        f"  {mark(outcome.committed)} Release commit",
        f"  {mark(outcome.tag_created)} Tag {plan.tag_name} created",
        f"  {mark(outcome.tag_pushed)} Tag {plan.tag_name} pushed",
    ]
    if outcome.floating_tag:
        lines.append(f"  {mark(True)} Floating tag {outcome.floating_tag} moved")
    if outcome.release_url:
        replaced = " (replaced)" if outcome.release_replaced else ""
        lines.append(f"  {mark(True)} Release{replaced}: [cyan]{outcome.release_url}[/]")
    if outcome.uploaded:
        lines.append(f"  {mark(True)} Uploaded {len(outcome.uploaded)} artifact(s)")

    return Panel(
        f"[green]Released {plan.tag_name}![/]\n\n" + "\n".join(lines),
        title="[green]Release Complete[/]",
        border_style="green",
    )
