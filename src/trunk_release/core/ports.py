"""Capability interfaces consumed by the release orchestrator.

The orchestrator never talks to git or a code host directly; it is
handed objects satisfying these protocols. The concrete adapters live in
:mod:`trunk_release.vcs.git` and :mod:`trunk_release.forge.github`, and
tests substitute in-memory fakes.

Implementations signal failure by raising SourceControlError or
ReleaseHostError respectively.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from trunk_release.core.commits import Commit
    from trunk_release.core.version import Version


@dataclass(frozen=True)
class TagInfo:
    """A release tag and the commit it points to."""

    name: str
    version: Version
    sha: str


class SourceControl(Protocol):
    """Operations on the local repository and its remote."""

    def latest_tag(self, prefix: str) -> TagInfo | None:
        """Return the highest-versioned tag starting with ``prefix``."""
        ...

    def all_tags(self, prefix: str) -> list[TagInfo]:
        """Return all version tags starting with ``prefix``, ascending."""
        ...

    def commits_since(self, sha: str | None) -> list[Commit]:
        """List commits after ``sha`` (exclusive) up to HEAD (inclusive)."""
        ...

    def commits_between(self, start: str | None, end: str) -> list[Commit]:
        """List commits after ``start`` (exclusive) up to ``end`` (inclusive)."""
        ...

    def create_tag(self, name: str, message: str) -> None: ...

    def force_create_tag(self, name: str, target: str, message: str) -> None:
        """Create or move an annotated tag so it points at ``target``'s commit."""

    def push_tag(self, name: str) -> None: ...

    def force_push_tag(self, name: str) -> None: ...

    def stage_and_commit(self, paths: Sequence[str], message: str) -> bool:
        """Stage paths and commit. Returns False when there was nothing to commit."""
        ...

    def push(self) -> None:
        """Push the current branch to the remote."""
        ...

    def tag_exists(self, name: str) -> bool: ...

    def remote_tag_exists(self, name: str) -> bool: ...

    def tag_date(self, name: str) -> str:
        """Date (YYYY-MM-DD) of the commit a tag points to."""
        ...

    def head_sha(self) -> str: ...


class ReleaseHost(Protocol):
    """Operations on the remote code host's release objects."""

    def create_release(self, tag: str, name: str, body: str, prerelease: bool) -> str:
        """Create a release and return its URL."""
        ...

    def release_exists(self, tag: str) -> bool: ...

    def delete_release(self, tag: str) -> None: ...

    def upload_assets(self, tag: str, files: Sequence[Path]) -> None: ...

    def compare_url(self, base: str, head: str) -> str: ...

    def repo_url(self) -> str | None:
        """Base URL of the repository, used for commit links."""
        ...

    def resolve_contributors(self, author_shas: Sequence[tuple[str, str]]) -> dict[str, str]:
        """Map author names to host handles, using one commit sha per author."""
        ...
