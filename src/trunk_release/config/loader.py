"""Configuration discovery and loading.

Configuration is read from, in order of precedence:

1. ``trunk-release.toml`` (top-level keys)
2. ``pyproject.toml`` under ``[tool.trunk-release]``

Both are searched from the given directory upwards. When neither exists,
defaults are used.
"""

from __future__ import annotations

import tomllib
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from trunk_release.config.models import ReleaseConfig
from trunk_release.exceptions import ConfigNotFoundError, ConfigValidationError

CONFIG_FILE_NAME = "trunk-release.toml"
PYPROJECT_FILE_NAME = "pyproject.toml"
TOOL_TABLE = "trunk-release"


def load_toml(path: Path) -> dict[str, Any]:
    """Load a TOML file.

    Raises:
        ConfigNotFoundError: If the file does not exist
        ConfigValidationError: If the file is not valid TOML
    """
    if not path.is_file():
        raise ConfigNotFoundError(f"Configuration file not found: {path}")

    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigValidationError(f"Invalid TOML in {path}: {e}") from e


def extract_tool_config(pyproject: dict[str, Any]) -> dict[str, Any]:
    """Extract the ``[tool.trunk-release]`` table from parsed pyproject data."""
    return pyproject.get("tool", {}).get(TOOL_TABLE, {})


def find_config_file(start: Path | None = None) -> Path | None:
    """Find the configuration file governing a directory.

    Walks up from ``start``. A ``trunk-release.toml`` wins over a
    ``pyproject.toml`` in the same directory; a ``pyproject.toml`` only
    counts when it has a ``[tool.trunk-release]`` table.

    Returns:
        Path of the config file, or None if none was found
    """
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        dedicated = directory / CONFIG_FILE_NAME
        if dedicated.is_file():
            return dedicated
        pyproject = directory / PYPROJECT_FILE_NAME
        if pyproject.is_file() and extract_tool_config(load_toml(pyproject)):
            return pyproject
    return None


def parse_config(data: dict[str, Any], source: str = "<config>") -> ReleaseConfig:
    """Validate raw configuration data.

    Raises:
        ConfigValidationError: If the data does not match the schema
    """
    try:
        return ReleaseConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigValidationError(f"Invalid configuration in {source}:\n{e}") from e


def load_config(path: Path | None = None) -> ReleaseConfig:
    """Load configuration for a project.

    Args:
        path: A config file, or a directory to search from (default: cwd)

    Returns:
        Validated configuration, or defaults when no config file exists
    """
    if path is not None and path.is_file():
        config_file: Path | None = path
    else:
        config_file = find_config_file(path)

    if config_file is None:
        return ReleaseConfig()

    data = load_toml(config_file)
    if config_file.name == PYPROJECT_FILE_NAME:
        data = extract_tool_config(data)
    return parse_config(data, source=str(config_file))


def render_default_config() -> str:
    """Render a commented ``trunk-release.toml`` with the default settings."""
    defaults = ReleaseConfig()
    lines = [
        "# trunk-release configuration",
        "",
        f'tag_prefix = "{defaults.tag_prefix}"',
        f"branches = [{', '.join(_toml_str(b) for b in defaults.branches)}]",
        f"breaking_section = {_toml_str(defaults.breaking_section)}",
        f"misc_section = {_toml_str(defaults.misc_section)}",
        "",
        "# Manifest files whose version is rewritten on release,",
        '# e.g. ["pyproject.toml", "package.json"]',
        "version_files = []",
        "version_files_strict = false",
        "",
        '# Files uploaded to the release, e.g. ["dist/*.whl"]',
        "artifacts = []",
        "floating_tags = false",
        '# build_command = "make dist"',
        "",
        "[changelog]",
        "# file = false disables writing the changelog",
        f"file = {_toml_str(str(defaults.changelog.file))}",
        f"title = {_toml_str(defaults.changelog.title)}",
    ]
    for rule in defaults.types:
        lines += ["", "[[types]]", f"name = {_toml_str(rule.name)}"]
        if rule.bump is not None:
            lines.append(f"bump = {_toml_str(rule.bump.value)}")
        if rule.section is not None:
            lines.append(f"section = {_toml_str(rule.section)}")
    return "\n".join(lines) + "\n"


def _toml_str(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'
