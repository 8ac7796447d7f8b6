"""Shared fixtures: sample commits and in-memory git / release-host fakes."""

from __future__ import annotations

import shutil
import subprocess
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING

import pytest

from trunk_release.config.models import ReleaseConfig
from trunk_release.core.commits import Commit, ConventionalCommit
from trunk_release.core.ports import TagInfo
from trunk_release.core.version import Version
from trunk_release.exceptions import SourceControlError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path


def sha_for(n: int) -> str:
    return f"{n:040x}"


# =============================================================================
# Commits
# =============================================================================


@pytest.fixture
def feat_commit() -> Commit:
    return Commit(sha=sha_for(1), message="feat: add user authentication", author="Alice")


@pytest.fixture
def fix_commit() -> Commit:
    return Commit(sha=sha_for(2), message="fix(core): handle empty input", author="Bob")


@pytest.fixture
def breaking_commit() -> Commit:
    return Commit(sha=sha_for(3), message="feat(api)!: drop v1 endpoints", author="Alice")


@pytest.fixture
def sample_commits(
    feat_commit: Commit, fix_commit: Commit, breaking_commit: Commit
) -> list[Commit]:
    return [
        feat_commit,
        fix_commit,
        breaking_commit,
        Commit(sha=sha_for(4), message="docs: update README", author="Carol"),
        Commit(sha=sha_for(5), message="chore: bump deps", author="Bob"),
        Commit(sha=sha_for(6), message="Merge branch 'main'", author="Bob"),
    ]


def conventional(
    type_: str,
    description: str,
    *,
    n: int = 1,
    scope: str | None = None,
    breaking: bool = False,
    author: str | None = None,
) -> ConventionalCommit:
    return ConventionalCommit(
        sha=sha_for(n),
        type=type_,
        description=description,
        scope=scope,
        breaking=breaking,
        author=author,
    )


# =============================================================================
# Fakes
# =============================================================================


@dataclass
class FakeGit:
    """In-memory SourceControl.

    ``history`` holds (commit, tag names) pairs oldest first; HEAD is the
    last commit. Every mutating call is appended to ``calls``.
    """

    history: list[tuple[Commit, list[str]]] = field(default_factory=list)
    remote_tags: set[str] = field(default_factory=set)
    tag_dates: dict[str, str] = field(default_factory=dict)
    calls: list[tuple] = field(default_factory=list)
    committed_paths: list[list[str]] = field(default_factory=list)
    fail_on: str | None = None
    _counter: int = 1000

    def add_commit(self, message: str, author: str | None = "Alice", tags: Sequence[str] = ()):
        self._counter += 1
        commit = Commit(sha=sha_for(self._counter), message=message, author=author)
        self.history.append((commit, list(tags)))
        return commit

    def _maybe_fail(self, name: str) -> None:
        if self.fail_on == name:
            raise SourceControlError(f"{name} failed")

    def _tags(self, prefix: str) -> list[TagInfo]:
        tags = []
        for commit, names in self.history:
            for name in names:
                if not name.startswith(prefix):
                    continue
                try:
                    version = Version.parse(name.removeprefix(prefix))
                except ValueError:
                    continue
                tags.append(TagInfo(name=name, version=version, sha=commit.sha))
        tags.sort(key=lambda t: t.version)
        return tags

    def _index(self, sha: str | None) -> int:
        if sha is None:
            return -1
        for i, (commit, names) in enumerate(self.history):
            if commit.sha == sha or sha in names:
                return i
        raise KeyError(sha)

    def latest_tag(self, prefix: str) -> TagInfo | None:
        tags = self._tags(prefix)
        return tags[-1] if tags else None

    def all_tags(self, prefix: str) -> list[TagInfo]:
        return self._tags(prefix)

    def commits_since(self, sha: str | None) -> list:
        if not self.history:
            return []
        return self.commits_between(sha, self.head_sha())

    def commits_between(self, start: str | None, end: str) -> list:
        lo, hi = self._index(start), self._index(end)
        # newest first, like git log
        return [c for c, _ in reversed(self.history[lo + 1 : hi + 1])]

    def create_tag(self, name: str, message: str) -> None:
        self._maybe_fail("create_tag")
        self.calls.append(("create_tag", name, message))
        self.history[-1][1].append(name)

    def force_create_tag(self, name: str, target: str, message: str) -> None:
        self.calls.append(("force_create_tag", name, target))
        index = self._index(target)
        for _, names in self.history:
            if name in names:
                names.remove(name)
        self.history[index][1].append(name)

    def push_tag(self, name: str) -> None:
        self._maybe_fail("push_tag")
        self.calls.append(("push_tag", name))
        self.remote_tags.add(name)

    def force_push_tag(self, name: str) -> None:
        self.calls.append(("force_push_tag", name))
        self.remote_tags.add(name)

    def stage_and_commit(self, paths: Sequence[str], message: str) -> bool:
        self._maybe_fail("stage_and_commit")
        self.calls.append(("stage_and_commit", message))
        if self.history and self.history[-1][0].message == message:
            return False
        self.committed_paths.append(list(paths))
        self.add_commit(message, author="release-bot")
        return True

    def push(self) -> None:
        self._maybe_fail("push")
        self.calls.append(("push",))

    def tag_exists(self, name: str) -> bool:
        return any(name in names for _, names in self.history)

    def remote_tag_exists(self, name: str) -> bool:
        return name in self.remote_tags

    def tag_date(self, name: str) -> str:
        return self.tag_dates.get(name, "2024-01-01")

    def head_sha(self) -> str:
        return self.history[-1][0].sha if self.history else ""

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]


@dataclass
class FakeHost:
    """In-memory ReleaseHost keyed by tag."""

    releases: dict[str, dict] = field(default_factory=dict)
    uploads: dict[str, list[Path]] = field(default_factory=dict)
    handles: dict[str, str] = field(default_factory=dict)
    calls: list[tuple] = field(default_factory=list)
    base: str = "https://github.com/acme/widget"

    def create_release(self, tag: str, name: str, body: str, prerelease: bool) -> str:
        self.calls.append(("create_release", tag))
        self.releases[tag] = {"name": name, "body": body, "prerelease": prerelease}
        return f"{self.base}/releases/tag/{tag}"

    def release_exists(self, tag: str) -> bool:
        return tag in self.releases

    def delete_release(self, tag: str) -> None:
        self.calls.append(("delete_release", tag))
        del self.releases[tag]

    def upload_assets(self, tag: str, files: Sequence[Path]) -> None:
        self.calls.append(("upload_assets", tag))
        self.uploads.setdefault(tag, []).extend(files)

    def compare_url(self, base: str, head: str) -> str:
        return f"{self.base}/compare/{base}...{head}"

    def repo_url(self) -> str | None:
        return self.base

    def resolve_contributors(self, author_shas: Sequence[tuple[str, str]]) -> dict[str, str]:
        return {author: self.handles[author] for author, _ in author_shas if author in self.handles}


@pytest.fixture
def fake_git() -> FakeGit:
    return FakeGit()


@pytest.fixture
def fake_host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def fixed_clock():
    return lambda: date(2024, 6, 1)


@pytest.fixture
def config() -> ReleaseConfig:
    return ReleaseConfig()


# =============================================================================
# Real git
# =============================================================================


requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def git(cwd: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=True
    )
    return result.stdout.strip()


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """A fresh repository with a bare ``origin`` remote."""
    if shutil.which("git") is None:
        pytest.skip("git not installed")

    remote = tmp_path / "remote.git"
    work = tmp_path / "work"
    work.mkdir()
    git(tmp_path, "init", "--bare", "-q", str(remote))
    git(work, "init", "-q", "-b", "main")
    git(work, "config", "user.name", "Test User")
    git(work, "config", "user.email", "test@example.com")
    git(work, "config", "commit.gpgsign", "false")
    git(work, "config", "tag.gpgsign", "false")
    git(work, "remote", "add", "origin", str(remote))
    return work


def git_commit(work: Path, message: str, filename: str = "file.txt") -> str:
    """Append the message to a file, commit it and return the new sha."""
    path = work / filename
    previous = path.read_text() if path.exists() else ""
    path.write_text(previous + message + "\n")
    git(work, "add", filename)
    git(work, "commit", "-q", "-m", message)
    return git(work, "rev-parse", "HEAD")
