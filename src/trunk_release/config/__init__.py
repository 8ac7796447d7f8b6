"""Configuration management for trunk-release."""

from __future__ import annotations

from trunk_release.config.loader import find_config_file, load_config, render_default_config
from trunk_release.config.models import ChangelogConfig, ReleaseConfig

__all__ = [
    "ChangelogConfig",
    "ReleaseConfig",
    "find_config_file",
    "load_config",
    "render_default_config",
]
