"""Pydantic models for trunk-release configuration.

All models are frozen: configuration is immutable once loaded and can be
shared between the CLI and the orchestrator without copying.
"""

from __future__ import annotations

import re
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

from trunk_release.core.commits import (
    DEFAULT_COMMIT_PATTERN,
    CommitTypeRule,
    default_commit_types,
)


class ChangelogConfig(BaseModel):
    """Where and how the changelog file is written."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    file: Path | None = Field(
        default=Path("CHANGELOG.md"),
        description="Changelog file, relative to the project root (None disables writing)",
    )
    title: str = Field(
        default="Changelog",
        description="Top-level heading used when the changelog is created",
    )

    @field_validator("file", mode="before")
    @classmethod
    def _disable_file(cls, value: object) -> object:
        # TOML has no null: file = "" or file = false turns writing off.
        if value is False or (isinstance(value, str) and not value.strip()):
            return None
        return value


class ReleaseConfig(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    branches: list[str] = Field(
        default_factory=lambda: ["main", "master"],
        description="Branches releases are cut from",
    )
    tag_prefix: str = Field(default="v", description="Prefix for version tags")
    commit_pattern: str = Field(
        default=DEFAULT_COMMIT_PATTERN,
        description="Header regex with named groups type, scope, breaking, description",
    )
    breaking_section: str = Field(default="Breaking Changes")
    misc_section: str = Field(default="Miscellaneous")
    types: list[CommitTypeRule] = Field(default_factory=default_commit_types)
    changelog: ChangelogConfig = Field(default_factory=ChangelogConfig)
    version_files: list[Path] = Field(
        default_factory=list,
        description="Manifest files whose version is rewritten on release",
    )
    version_files_strict: bool = Field(
        default=False,
        description="Abort the release when a version file cannot be bumped",
    )
    artifacts: list[str] = Field(
        default_factory=list,
        description="Glob patterns of files to upload to the release",
    )
    floating_tags: bool = Field(
        default=False,
        description="Maintain a major-version tag (e.g. v3) pointing at the newest release",
    )
    build_command: str | None = Field(
        default=None,
        description="Shell command run after version files are bumped",
    )

    @field_validator("commit_pattern")
    @classmethod
    def _validate_pattern(cls, value: str) -> str:
        try:
            compiled = re.compile(value)
        except re.error as e:
            raise ValueError(f"invalid commit pattern: {e}") from e
        missing = {"type", "description"} - set(compiled.groupindex)
        if missing:
            names = ", ".join(sorted(missing))
            raise ValueError(f"commit pattern is missing named group(s): {names}")
        return value

    @field_validator("types")
    @classmethod
    def _validate_unique_types(cls, value: list[CommitTypeRule]) -> list[CommitTypeRule]:
        seen: set[str] = set()
        for rule in value:
            if rule.name in seen:
                raise ValueError(f"duplicate commit type: {rule.name}")
            seen.add(rule.name)
        return value

    @field_validator("artifacts")
    @classmethod
    def _validate_artifacts(cls, value: list[str]) -> list[str]:
        for pattern in value:
            if not pattern.strip():
                raise ValueError("artifact patterns must not be empty")
        return value

    def floating_tag_for(self, major: int) -> str:
        return f"{self.tag_prefix}{major}"
