"""Conventional commit parsing and classification.

Parsing turns a raw commit message into a ConventionalCommit. Messages
that do not match the header grammar are dropped. Classification is
table-driven: an ordered list of CommitTypeRule maps a type name to an
optional bump level and an optional changelog section.

See: https://www.conventionalcommits.org/
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from trunk_release.core.version import BumpLevel

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

logger = logging.getLogger(__name__)

# Named groups: type, scope (optional), breaking (optional "!"), description.
DEFAULT_COMMIT_PATTERN = (
    r"^(?P<type>\w+)(?:\((?P<scope>[^)]+)\))?(?P<breaking>!)?:\s+(?P<description>.+)"
)

RELEASE_COMMIT_PREFIX = "chore(release):"


@dataclass(frozen=True)
class Commit:
    """A raw commit as read from git history."""

    sha: str
    message: str
    author: str | None = None


@dataclass(frozen=True)
class ConventionalCommit:
    """A commit parsed according to the Conventional Commits convention."""

    sha: str
    type: str
    description: str
    scope: str | None = None
    body: str | None = None
    breaking: bool = False
    author: str | None = None

    @property
    def short_sha(self) -> str:
        return self.sha[:7]

    def to_dict(self) -> dict[str, object]:
        return {
            "sha": self.sha,
            "type": self.type,
            "scope": self.scope,
            "description": self.description,
            "body": self.body,
            "breaking": self.breaking,
            "author": self.author,
        }


class CommitTypeRule(BaseModel):
    """Describes a recognised commit type.

    A rule without a section is "known but unsectioned": its commits are
    rendered under the misc catch-all of the changelog.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str
    bump: BumpLevel | None = None
    section: str | None = None


def default_commit_types() -> list[CommitTypeRule]:
    """Return the default commit type table."""
    return [
        CommitTypeRule(name="feat", bump=BumpLevel.MINOR, section="Features"),
        CommitTypeRule(name="fix", bump=BumpLevel.PATCH, section="Bug Fixes"),
        CommitTypeRule(name="perf", bump=BumpLevel.PATCH, section="Performance"),
        CommitTypeRule(name="docs", section="Documentation"),
        CommitTypeRule(name="refactor", section="Refactoring"),
        CommitTypeRule(name="revert", section="Reverts"),
        CommitTypeRule(name="chore"),
        CommitTypeRule(name="ci"),
        CommitTypeRule(name="test"),
        CommitTypeRule(name="build"),
        CommitTypeRule(name="style"),
    ]


class CommitClassifier:
    """Single source of truth for commit type classification."""

    def __init__(self, types: Sequence[CommitTypeRule] | None = None) -> None:
        self._types = list(types) if types is not None else default_commit_types()
        self._by_name = {rule.name: rule for rule in self._types}

    @property
    def types(self) -> list[CommitTypeRule]:
        return list(self._types)

    def bump_level(self, type_name: str, breaking: bool) -> BumpLevel | None:
        """Bump level for a commit type; breaking commits are always MAJOR."""
        if breaking:
            return BumpLevel.MAJOR
        rule = self._by_name.get(type_name)
        return rule.bump if rule else None

    def changelog_section(self, type_name: str) -> str | None:
        rule = self._by_name.get(type_name)
        return rule.section if rule else None

    def is_allowed(self, type_name: str) -> bool:
        return type_name in self._by_name

    def sections(self) -> list[str]:
        """Unique section labels in the order they were first declared."""
        seen: list[str] = []
        for rule in self._types:
            if rule.section and rule.section not in seen:
                seen.append(rule.section)
        return seen


class CommitParseError(ValueError):
    """Raised when a commit message is not a conventional commit."""


class CommitParser:
    """Parses raw commits with a header regex.

    The pattern must define the named groups ``type`` and ``description``;
    ``scope`` and ``breaking`` are optional.
    """

    def __init__(self, pattern: str = DEFAULT_COMMIT_PATTERN) -> None:
        self.pattern = pattern
        self._regex = re.compile(pattern)

    def parse(self, commit: Commit) -> ConventionalCommit:
        """Parse a commit message.

        Args:
            commit: Raw commit to parse

        Returns:
            The parsed conventional commit

        Raises:
            CommitParseError: If the header does not match the grammar
        """
        header = commit.message.split("\n", 1)[0]
        match = self._regex.match(header)
        if not match:
            raise CommitParseError(f"not a conventional commit: {header}")

        groups = match.groupdict()
        _, sep, body = commit.message.partition("\n\n")

        return ConventionalCommit(
            sha=commit.sha,
            type=groups["type"],
            scope=groups.get("scope"),
            description=groups["description"].strip(),
            body=body if sep else None,
            breaking=bool(groups.get("breaking")),
            author=commit.author,
        )


def parse_commits(
    commits: Iterable[Commit],
    parser: CommitParser | None = None,
) -> list[ConventionalCommit]:
    """Parse commits, dropping the ones that are not conventional.

    Args:
        commits: Raw commits, in the order returned by git
        parser: Parser to use (defaults to the built-in grammar)

    Returns:
        Parsed commits in the same order
    """
    parser = parser or CommitParser()
    parsed = []
    for commit in commits:
        try:
            parsed.append(parser.parse(commit))
        except CommitParseError:
            logger.debug("Skipping non-conventional commit %s", commit.sha[:7])
    return parsed


def filter_release_commits(
    commits: Iterable[Commit],
    prefix: str = RELEASE_COMMIT_PREFIX,
) -> list[Commit]:
    """Remove the release commits this tool creates itself."""
    return [c for c in commits if not c.message.startswith(prefix)]
