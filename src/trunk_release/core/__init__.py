"""Core business logic for trunk-release.

This module contains the fundamental building blocks:
- Conventional commit parsing and classification
- Semantic version bump arithmetic
- Markdown changelog rendering
- Release planning and the idempotent execution pipeline
"""

from __future__ import annotations

from trunk_release.core.changelog import (
    ChangelogEntry,
    ChangelogFormatter,
    format_commit_line,
    merge_changelog,
)
from trunk_release.core.commits import (
    DEFAULT_COMMIT_PATTERN,
    Commit,
    CommitClassifier,
    CommitParser,
    CommitTypeRule,
    ConventionalCommit,
    default_commit_types,
    parse_commits,
)
from trunk_release.core.ports import ReleaseHost, SourceControl, TagInfo
from trunk_release.core.release import ReleaseOrchestrator, ReleaseOutcome, ReleasePlan
from trunk_release.core.version import BumpLevel, Version, apply_bump, determine_bump, parse_version

__all__ = [
    "DEFAULT_COMMIT_PATTERN",
    # Version
    "BumpLevel",
    # Changelog
    "ChangelogEntry",
    "ChangelogFormatter",
    # Commits
    "Commit",
    "CommitClassifier",
    "CommitParser",
    "CommitTypeRule",
    "ConventionalCommit",
    # Release
    "ReleaseHost",
    "ReleaseOrchestrator",
    "ReleaseOutcome",
    "ReleasePlan",
    "SourceControl",
    "TagInfo",
    "Version",
    "apply_bump",
    "default_commit_types",
    "determine_bump",
    "format_commit_line",
    "merge_changelog",
    "parse_commits",
    "parse_version",
]
