"""In-place version rewriting for project manifests.

The format is chosen from the file name:

- ``Cargo.toml``        -> ``[package].version`` or ``[workspace.package].version``
- ``package.json``      -> top-level ``"version"``
- ``pyproject.toml``    -> ``[project].version`` or ``[tool.poetry].version``
- ``pom.xml``           -> first ``<version>`` after ``<parent>`` / ``<modelVersion>``
- ``build.gradle(.kts)``-> top-level ``version = "..."``
- ``*.go``              -> ``var``/``const Version = "..."``

Text formats are edited with targeted regex replacement rather than a
parse-and-dump round trip, so comments and formatting survive and only
the version value changes.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from trunk_release.exceptions import (
    UnsupportedVersionFileError,
    VersionBumpError,
    VersionNotFoundError,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

logger = logging.getLogger(__name__)

# A TOML key assignment at line start: version = "1.2.3" / version = '1.2.3'
_TOML_VERSION_RE = re.compile(r"""^(version\s*=\s*)(["'])[^"'\n]*\2""", re.MULTILINE)
_GRADLE_VERSION_RE = re.compile(r"""^(version\s*=\s*)(["'])([^"'\n]*)\2""", re.MULTILINE)
_GO_VERSION_RE = re.compile(r"""((?:var|const)\s+Version\s*(?:string\s*)?=\s*")([^"\n]*)(")""")
_POM_VERSION_RE = re.compile(r"<version>[^<]*</version>")


def _table_pattern(header: str) -> re.Pattern[str]:
    """Match a TOML table from its header up to the next header or EOF."""
    return re.compile(
        rf"^\[{re.escape(header)}\][ \t]*(?:#[^\r\n]*)?\r?$.*?(?=^\[|\Z)",
        re.MULTILINE | re.DOTALL,
    )


def _replace_in_table(content: str, header: str, new_version: str) -> str | None:
    """Replace the version key inside a TOML table.

    Returns:
        Updated content, or None if the table or its version key is absent
    """
    table = _table_pattern(header).search(content)
    if not table:
        return None

    section = table.group(0)
    updated, count = _TOML_VERSION_RE.subn(
        lambda m: f"{m.group(1)}{m.group(2)}{new_version}{m.group(2)}",
        section,
        count=1,
    )
    if count == 0:
        return None
    return content[: table.start()] + updated + content[table.end() :]


def _replace_in_tables(
    content: str, headers: Iterable[str], new_version: str, path: Path
) -> str:
    for header in headers:
        updated = _replace_in_table(content, header, new_version)
        if updated is not None:
            return updated
    expected = " or ".join(f"[{h}].version" for h in headers)
    raise VersionNotFoundError(f"no version field found in {path} (expected {expected})")


# =============================================================================
# Per-format transforms (text in, text out)
# =============================================================================


def bump_cargo_toml(content: str, new_version: str, path: Path = Path("Cargo.toml")) -> str:
    return _replace_in_tables(content, ("package", "workspace.package"), new_version, path)


def bump_pyproject_toml(
    content: str, new_version: str, path: Path = Path("pyproject.toml")
) -> str:
    return _replace_in_tables(content, ("project", "tool.poetry"), new_version, path)


def bump_package_json(content: str, new_version: str, path: Path = Path("package.json")) -> str:
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise VersionBumpError(f"failed to parse {path}: {e}") from e

    if not isinstance(data, dict):
        raise VersionBumpError(f"{path} is not a JSON object")
    if "version" not in data:
        raise VersionNotFoundError(f"no top-level \"version\" key in {path}")

    data["version"] = new_version
    newline = "\r\n" if "\r\n" in content else "\n"
    return json.dumps(data, indent=2, ensure_ascii=False).replace("\n", newline) + newline


def bump_pom_xml(content: str, new_version: str, path: Path = Path("pom.xml")) -> str:
    # The <parent> block pins the parent's version; never touch it.
    if (pos := content.find("</parent>")) != -1:
        start = pos + len("</parent>")
    elif (pos := content.find("</modelVersion>")) != -1:
        start = pos + len("</modelVersion>")
    else:
        start = 0

    match = _POM_VERSION_RE.search(content, start)
    if not match:
        raise VersionNotFoundError(f"no <version> element found in {path}")
    return f"{content[: match.start()]}<version>{new_version}</version>{content[match.end() :]}"


def bump_gradle(content: str, new_version: str, path: Path = Path("build.gradle")) -> str:
    updated, count = _GRADLE_VERSION_RE.subn(
        lambda m: f"{m.group(1)}{m.group(2)}{new_version}{m.group(2)}",
        content,
        count=1,
    )
    if count == 0:
        raise VersionNotFoundError(f"no version assignment found in {path}")
    return updated


def bump_go(content: str, new_version: str, path: Path = Path("version.go")) -> str:
    updated, count = _GO_VERSION_RE.subn(
        lambda m: f"{m.group(1)}{new_version}{m.group(3)}",
        content,
        count=1,
    )
    if count == 0:
        raise VersionNotFoundError(f"no Version variable found in {path}")
    return updated


_TRANSFORMS: dict[str, Callable[[str, str, Path], str]] = {
    "Cargo.toml": bump_cargo_toml,
    "package.json": bump_package_json,
    "pyproject.toml": bump_pyproject_toml,
    "pom.xml": bump_pom_xml,
    "build.gradle": bump_gradle,
    "build.gradle.kts": bump_gradle,
}


def get_transform(path: Path) -> Callable[[str, str, Path], str]:
    """Return the transform for a manifest file name.

    Raises:
        UnsupportedVersionFileError: If the file name is not supported
    """
    transform = _TRANSFORMS.get(path.name)
    if transform is None and path.suffix == ".go":
        transform = bump_go
    if transform is None:
        raise UnsupportedVersionFileError(f"unsupported version file: {path.name}")
    return transform


# =============================================================================
# File operations
# =============================================================================


def bump_version_file(path: Path, new_version: str) -> bool:
    """Rewrite the version in a manifest file.

    Args:
        path: Manifest file
        new_version: Version string to write

    Returns:
        True if the file content changed

    Raises:
        UnsupportedVersionFileError: If the file name is not supported
        VersionNotFoundError: If the version location is absent
        VersionBumpError: If the file cannot be read, parsed or written
    """
    transform = get_transform(path)

    # newline="" keeps line endings exactly as they are on disk.
    try:
        with path.open(encoding="utf-8", newline="") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise VersionBumpError(f"failed to read {path}: {e}") from e

    updated = transform(content, new_version, path)
    if updated == content:
        return False

    try:
        path.write_text(updated, encoding="utf-8", newline="")
    except OSError as e:
        raise VersionBumpError(f"failed to write {path}: {e}") from e
    return True


@dataclass
class BumpReport:
    """Outcome of bumping a set of version files."""

    changed: list[Path] = field(default_factory=list)
    unchanged: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)

    @property
    def processed(self) -> list[Path]:
        """Files that hold the new version, whether or not this run wrote them."""
        return [*self.changed, *self.unchanged]


def bump_version_files(
    paths: Iterable[Path],
    new_version: str,
    *,
    strict: bool = False,
    root: Path | None = None,
) -> BumpReport:
    """Bump several manifest files.

    Args:
        paths: Manifest files, relative to ``root`` unless absolute
        new_version: Version string to write
        strict: Propagate the first failure instead of skipping the file
        root: Base directory for relative paths (default: cwd)

    Returns:
        Which files changed, were already current, or were skipped

    Raises:
        VersionBumpError: In strict mode, when any file fails
    """
    base = root or Path.cwd()
    report = BumpReport()
    for path in paths:
        try:
            if bump_version_file(base / path, new_version):
                report.changed.append(path)
                logger.info("Bumped %s to %s", path, new_version)
            else:
                report.unchanged.append(path)
                logger.info("%s already at %s", path, new_version)
        except VersionBumpError as e:
            if strict:
                raise
            report.skipped.append(path)
            logger.warning("Skipping version file %s: %s", path, e)
    return report
