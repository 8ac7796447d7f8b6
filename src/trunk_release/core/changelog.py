"""Markdown changelog rendering.

The formatter is deterministic: given the same entries it produces the
same text. Section order follows the order in which section labels are
first declared in the commit type table, with breaking changes always
rendered first and a misc catch-all last.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from trunk_release.core.commits import CommitClassifier, CommitTypeRule, ConventionalCommit
from trunk_release.exceptions import ChangelogError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path


@dataclass
class ChangelogEntry:
    """A single release section of the changelog."""

    version: str
    date: str
    commits: list[ConventionalCommit] = field(default_factory=list)
    compare_url: str | None = None
    repo_url: str | None = None
    contributor_map: dict[str, str] = field(default_factory=dict)

    def unique_author_shas(self) -> list[tuple[str, str]]:
        """Return (author, sha) pairs, one per distinct author.

        The sha is the first commit seen for that author and is what the
        release host uses to resolve the author's handle.
        """
        seen: dict[str, str] = {}
        for commit in self.commits:
            if commit.author and commit.author not in seen:
                seen[commit.author] = commit.sha
        return list(seen.items())


class ChangelogFormatter:
    """Formats changelog entries as Markdown.

    Args:
        types: Commit type table, in declaration order
        breaking_section: Heading of the breaking changes section
        misc_section: Heading for known types that map to no section
    """

    def __init__(
        self,
        types: Sequence[CommitTypeRule] | None = None,
        breaking_section: str = "Breaking Changes",
        misc_section: str = "Miscellaneous",
    ) -> None:
        self.classifier = CommitClassifier(types)
        self.breaking_section = breaking_section
        self.misc_section = misc_section

    def format(self, entries: Sequence[ChangelogEntry]) -> str:
        """Render entries in the order given."""
        return "\n\n".join(self.format_entry(entry) for entry in entries).rstrip()

    def format_entry(self, entry: ChangelogEntry) -> str:
        lines = [f"## {entry.version} ({entry.date})"]

        breaking = [c for c in entry.commits if c.breaking]
        regular = [c for c in entry.commits if not c.breaking]

        self._append_section(lines, self.breaking_section, breaking, entry.repo_url)

        for section in self.classifier.sections():
            in_section = [
                c for c in regular if self.classifier.changelog_section(c.type) == section
            ]
            self._append_section(lines, section, in_section, entry.repo_url)

        misc = [
            c
            for c in regular
            if self.classifier.is_allowed(c.type) and not self.classifier.changelog_section(c.type)
        ]
        self._append_section(lines, self.misc_section, misc, entry.repo_url)

        contributors = _contributors(entry)
        if contributors:
            lines += ["", "### Contributors", ""]
            lines += [f"- {name}" for name in contributors]

        if entry.compare_url:
            lines += ["", f"[Full Changelog]({entry.compare_url})"]

        return "\n".join(lines)

    def _append_section(
        self,
        lines: list[str],
        title: str,
        commits: list[ConventionalCommit],
        repo_url: str | None,
    ) -> None:
        if not commits:
            return
        lines += ["", f"### {title}", ""]
        lines += [format_commit_line(c, repo_url) for c in commits]


def format_commit_line(commit: ConventionalCommit, repo_url: str | None = None) -> str:
    """Format a single commit as a Markdown list item.

    Example: ``- **cli**: add flag ([abc1234](https://host/o/r/commit/abc1234...))``
    """
    short_sha = commit.short_sha
    if repo_url:
        ref = f"[{short_sha}]({repo_url.rstrip('/')}/commit/{commit.sha})"
    else:
        ref = short_sha
    scope = f"**{commit.scope}**: " if commit.scope else ""
    return f"- {scope}{commit.description} ({ref})"


def _contributors(entry: ChangelogEntry) -> list[str]:
    authors = sorted({c.author for c in entry.commits if c.author})
    names = []
    for author in authors:
        handle = entry.contributor_map.get(author)
        names.append(f"@{handle}" if handle else author)
    return names


# =============================================================================
# Changelog file
# =============================================================================


def version_heading(version: str) -> str:
    return f"## {version} ("


def merge_changelog_text(existing: str, body: str, title: str = "Changelog") -> str:
    """Insert a rendered release body into existing changelog text.

    An empty changelog gets a top-level heading. Otherwise the body goes
    right after the first blank line following the top heading, and
    everything else is preserved.
    """
    if not existing.strip():
        return f"# {title}\n\n{body}\n"

    pos = existing.find("\n\n")
    if pos == -1:
        heading = existing.rstrip("\n")
        return f"{heading}\n\n{body}\n"

    head, tail = existing[: pos + 2], existing[pos + 2 :]
    if not tail.strip():
        return f"{head}{body}\n"
    return f"{head}{body}\n\n{tail}"


def merge_changelog(path: Path, body: str, version: str, title: str = "Changelog") -> bool:
    """Merge a release body into the changelog file on disk.

    Args:
        path: Changelog file (created if missing)
        body: Rendered release section(s)
        version: Version the body describes
        title: Top-level heading for a new changelog

    Returns:
        True if the file was written, False if it already held this version

    Raises:
        ChangelogError: If the file cannot be read or written
    """
    existing = ""
    if path.exists():
        try:
            with path.open(encoding="utf-8", newline="") as f:
                existing = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ChangelogError(f"failed to read {path}: {e}") from e

    if any(line.startswith(version_heading(version)) for line in existing.splitlines()):
        return False

    # Merge on LF text and write back with the file's own line ending.
    newline = "\r\n" if "\r\n" in existing else "\n"
    merged = merge_changelog_text(existing.replace("\r\n", "\n"), body, title)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(merged, encoding="utf-8", newline=newline)
    except OSError as e:
        raise ChangelogError(f"failed to write {path}: {e}") from e
    return True
