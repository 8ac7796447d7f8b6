"""Project manifest handling."""

from __future__ import annotations

from trunk_release.project.version_files import (
    BumpReport,
    bump_version_file,
    bump_version_files,
)

__all__ = ["BumpReport", "bump_version_file", "bump_version_files"]
