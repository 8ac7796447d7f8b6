"""Wiring shared by the CLI commands.

Builds the git repository, release host and orchestrator for a project
directory, and maps pipeline errors to exit codes.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich.markup import escape

from trunk_release.config import load_config
from trunk_release.core.release import ReleaseOrchestrator
from trunk_release.exceptions import (
    NothingToReleaseError,
    ReleaseError,
    ReleaseHostError,
    SourceControlError,
)
from trunk_release.forge import GitHubReleaseHost
from trunk_release.vcs import GitRepository

if TYPE_CHECKING:
    from collections.abc import Iterator

    from rich.console import Console

EXIT_FAILURE = 1
EXIT_NOTHING_TO_RELEASE = 2

TOKEN_ENV_VARS = ("GITHUB_TOKEN", "GH_TOKEN")


@contextmanager
def handle_errors(console: Console, err_console: Console) -> Iterator[None]:
    """Turn release errors into a printed message and an exit status.

    Nothing-to-release outcomes exit with 2, every other release error
    with 1.
    """
    try:
        yield
    except NothingToReleaseError as e:
        console.print(f"[yellow]Nothing to release:[/] {escape(str(e))}")
        raise SystemExit(EXIT_NOTHING_TO_RELEASE) from e
    except ReleaseError as e:
        err_console.print(f"[red]Error:[/] {escape(str(e))}")
        raise SystemExit(EXIT_FAILURE) from e


def project_root(path: str | None) -> Path:
    return (Path(path) if path else Path.cwd()).resolve()


def github_token() -> str | None:
    for name in TOKEN_ENV_VARS:
        token = os.environ.get(name)
        if token:
            return token
    return None


def build_host(
    repo: GitRepository,
    *,
    required: bool,
    err_console: Console,
) -> GitHubReleaseHost | None:
    """Build the GitHub host for the repository's remote.

    Args:
        repo: Repository whose remote names the GitHub project
        required: Raise instead of warning when the host cannot be built
        err_console: Where warnings are printed

    Raises:
        ReleaseHostError: If ``required`` and no token is set or the remote
            cannot be parsed
    """
    try:
        hostname, owner, name = repo.parse_remote()
    except SourceControlError as e:
        if required:
            raise ReleaseHostError(f"cannot determine GitHub repository: {e}") from e
        err_console.print(f"[yellow]Warning:[/] {escape(str(e))}; release host links disabled")
        return None

    token = github_token()
    if token is None:
        message = f"no GitHub token set (looked for {', '.join(TOKEN_ENV_VARS)})"
        if required:
            raise ReleaseHostError(message)
        err_console.print(f"[yellow]Warning:[/] {message}; skipping release host")
        return None

    return GitHubReleaseHost(owner, name, token, hostname)


def build_orchestrator(
    path: str | None,
    *,
    console: Console,
    err_console: Console,
    with_host: bool = True,
    host_required: bool = False,
) -> ReleaseOrchestrator:
    """Load config and collaborators for the project at ``path``.

    Args:
        path: Optional path to project directory
        console: Console the orchestrator prints dry-run output to
        err_console: Console for warnings
        with_host: Whether to connect to GitHub at all
        host_required: Fail instead of warning when GitHub is unavailable
    """
    root = project_root(path)
    config = load_config(root)
    repo = GitRepository(root)
    host: GitHubReleaseHost | None = None
    if with_host:
        host = build_host(repo, required=host_required, err_console=err_console)
    return ReleaseOrchestrator(repo, host, config, root=root, console=console)


@contextmanager
def open_orchestrator(path: str | None, **kwargs: Any) -> Iterator[ReleaseOrchestrator]:
    """Like :func:`build_orchestrator`, closing the release host on exit."""
    orchestrator = build_orchestrator(path, **kwargs)
    try:
        yield orchestrator
    finally:
        if isinstance(orchestrator.host, GitHubReleaseHost):
            orchestrator.host.close()
