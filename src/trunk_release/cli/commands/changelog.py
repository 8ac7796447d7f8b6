"""Implementation of the 'changelog' command."""

from __future__ import annotations

from typing import TYPE_CHECKING

from trunk_release.cli.context import handle_errors, open_orchestrator
from trunk_release.core.changelog import merge_changelog, merge_changelog_text
from trunk_release.exceptions import ChangelogError, ConfigError

if TYPE_CHECKING:
    from rich.console import Console


def run_changelog(
    path: str | None,
    write: bool,
    regenerate: bool,
    console: Console,
    err_console: Console,
) -> None:
    """Render the changelog for the next release or for the whole history.

    Without ``--write`` the markdown goes to stdout. With it, the next
    release's section is merged into the changelog file, or, together with
    ``--regenerate``, the file is rewritten from every release tag.

    Args:
        path: Optional path to project directory
        write: Write to the configured changelog file
        regenerate: Rebuild every release section from tags
        console: Console for standard output
        err_console: Console for error output
    """
    with (
        handle_errors(console, err_console),
        open_orchestrator(path, console=console, err_console=err_console) as orchestrator,
    ):
        config = orchestrator.config

        if regenerate:
            body = orchestrator.regenerate_changelog()
            version = None
        else:
            plan = orchestrator.plan()
            body = orchestrator.render_changelog(plan)
            version = str(plan.next_version)

        if not write:
            console.print(body, markup=False, highlight=False, soft_wrap=True)
            return

        if config.changelog.file is None:
            raise ConfigError("changelog writing is disabled (changelog.file is unset)")
        changelog_path = orchestrator.root / config.changelog.file

        if version is None:
            try:
                changelog_path.write_text(
                    merge_changelog_text("", body, config.changelog.title), encoding="utf-8"
                )
            except OSError as e:
                raise ChangelogError(f"failed to write {changelog_path}: {e}") from e
            console.print(f"  [green]✓[/] Regenerated {config.changelog.file}")
        elif merge_changelog(changelog_path, body, version, config.changelog.title):
            console.print(f"  [green]✓[/] Updated {config.changelog.file}")
        else:
            console.print(f"[dim]{config.changelog.file} already has {version}[/]")
