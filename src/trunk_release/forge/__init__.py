"""Remote code hosts."""

from __future__ import annotations

from trunk_release.forge.github import GitHubReleaseHost

__all__ = ["GitHubReleaseHost"]
