"""Version control backends."""

from __future__ import annotations

from trunk_release.vcs.git import GitRepository, parse_commit_log, parse_remote_url

__all__ = ["GitRepository", "parse_commit_log", "parse_remote_url"]
