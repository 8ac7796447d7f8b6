"""Semantic version arithmetic.

Only the MAJOR.MINOR.PATCH core takes part in bumping; pre-release and
build suffixes on existing tags are accepted when parsing and dropped
from the bumped result.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable

    from trunk_release.core.commits import CommitClassifier, ConventionalCommit

_SEMVER_RE = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>[0-9A-Za-z.-]+))?"
    r"(?:\+(?P<build>[0-9A-Za-z.-]+))?$"
)


class BumpLevel(str, Enum):
    """Magnitude of a version increment. Ordered PATCH < MINOR < MAJOR."""

    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"

    @property
    def rank(self) -> int:
        return _BUMP_RANK[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, BumpLevel):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, BumpLevel):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, BumpLevel):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, BumpLevel):
            return NotImplemented
        return self.rank >= other.rank

    def __str__(self) -> str:
        return self.value


_BUMP_RANK = {BumpLevel.PATCH: 0, BumpLevel.MINOR: 1, BumpLevel.MAJOR: 2}


def _identifier_key(identifier: str) -> tuple[int, int, str]:
    if identifier.isdigit():
        return (0, int(identifier), identifier)
    return (1, 0, identifier)


@dataclass(frozen=True)
class Version:
    """A semantic version.

    Ordering compares (major, minor, patch), then ranks a release above
    its pre-releases. Pre-releases compare identifier by identifier:
    numeric ones as integers and below alphanumeric ones, and a shorter
    list ranks below a longer one it prefixes (``rc.2 < rc.10 < rc.10.1``).
    """

    major: int
    minor: int
    patch: int
    prerelease: str | None = None
    build: str | None = field(default=None, compare=False)

    @classmethod
    def parse(cls, text: str) -> Version:
        """Parse a version string such as ``1.2.3`` or ``1.2.3-rc.1``.

        Raises:
            ValueError: If the string is not a valid semantic version
        """
        match = _SEMVER_RE.match(text.strip())
        if not match:
            raise ValueError(f"invalid semantic version: {text!r}")
        return cls(
            int(match.group("major")),
            int(match.group("minor")),
            int(match.group("patch")),
            prerelease=match.group("prerelease"),
            build=match.group("build"),
        )

    @classmethod
    def zero(cls) -> Version:
        return cls(0, 0, 0)

    def bump(self, level: BumpLevel) -> Version:
        return apply_bump(self, level)

    def _sort_key(self) -> tuple[int, int, int, tuple[Any, ...]]:
        # A release ranks above any of its pre-releases.
        if self.prerelease is None:
            return (self.major, self.minor, self.patch, (1,))
        identifiers = tuple(_identifier_key(part) for part in self.prerelease.split("."))
        return (self.major, self.minor, self.patch, (0, identifiers))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._sort_key() > other._sort_key()

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._sort_key() <= other._sort_key()

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._sort_key() >= other._sort_key()

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += f"-{self.prerelease}"
        if self.build:
            text += f"+{self.build}"
        return text


def parse_version(text: str) -> Version:
    """Shorthand for :meth:`Version.parse`."""
    return Version.parse(text)


def determine_bump(
    commits: Iterable[ConventionalCommit],
    classifier: CommitClassifier,
) -> BumpLevel | None:
    """Determine the highest bump level implied by a set of commits.

    Args:
        commits: Parsed conventional commits
        classifier: Type table used to map commit types to bump levels

    Returns:
        The maximum bump level, or None if no commit warrants a release
    """
    levels = [
        level
        for commit in commits
        if (level := classifier.bump_level(commit.type, commit.breaking)) is not None
    ]
    return max(levels) if levels else None


def apply_bump(version: Version, level: BumpLevel) -> Version:
    """Apply a bump level to a version.

    Lower components are reset; pre-release and build metadata are dropped.
    """
    if level is BumpLevel.MAJOR:
        return Version(version.major + 1, 0, 0)
    if level is BumpLevel.MINOR:
        return Version(version.major, version.minor + 1, 0)
    return Version(version.major, version.minor, version.patch + 1)
