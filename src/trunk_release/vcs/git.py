"""Git repository backed by the ``git`` command line.

Every call runs ``git -C <path> ...`` as a subprocess with interactive
credential prompts disabled, so unauthenticated pushes fail fast instead
of hanging.
"""

from __future__ import annotations

import os
import re
import subprocess
from pathlib import Path
from typing import TYPE_CHECKING

from trunk_release.core.commits import Commit
from trunk_release.core.ports import TagInfo
from trunk_release.core.version import Version
from trunk_release.exceptions import SourceControlError

if TYPE_CHECKING:
    from collections.abc import Sequence

LOG_FORMAT = "%H%n%an%n%B%n--END--"
_END_MARKER = "--END--"
_SHA_RE = re.compile(r"^[0-9a-f]{40}$")


class GitRepository:
    """Git operations for a working tree.

    Args:
        path: Any directory inside the working tree
        remote: Name of the remote to push to
    """

    def __init__(self, path: Path | None = None, remote: str = "origin") -> None:
        self.path = (path or Path.cwd()).resolve()
        self.remote = remote
        # Fail early if this is not a repository.
        self._run("rev-parse", "--git-dir")

    def _run(self, *args: str, check: bool = True) -> subprocess.CompletedProcess[str]:
        try:
            result = subprocess.run(
                ["git", "-C", str(self.path), *args],
                capture_output=True,
                text=True,
                env={**os.environ, "GIT_TERMINAL_PROMPT": "0"},
                check=False,
            )
        except FileNotFoundError as e:
            raise SourceControlError("git executable not found") from e

        if check and result.returncode != 0:
            raise SourceControlError(
                f"git {' '.join(args)} failed: {result.stderr.strip()}",
                stderr=result.stderr,
            )
        return result

    def _git(self, *args: str) -> str:
        return self._run(*args).stdout.strip()

    # =========================================================================
    # Tags
    # =========================================================================

    def _tags(self, prefix: str) -> list[TagInfo]:
        output = self._git("tag", "--list", f"{prefix}*")
        tags = []
        for line in output.splitlines():
            name = line.strip()
            if not name:
                continue
            try:
                version = Version.parse(name.removeprefix(prefix))
            except ValueError:
                continue
            tags.append((version, name))

        tags.sort(key=lambda item: item[0])
        return [TagInfo(name=name, version=v, sha=self._tag_sha(name)) for v, name in tags]

    def _tag_sha(self, name: str) -> str:
        return self._git("rev-list", "-1", name)

    def latest_tag(self, prefix: str) -> TagInfo | None:
        tags = self._tags(prefix)
        return tags[-1] if tags else None

    def all_tags(self, prefix: str) -> list[TagInfo]:
        return self._tags(prefix)

    def tag_exists(self, name: str) -> bool:
        result = self._run("rev-parse", "--verify", "--quiet", f"refs/tags/{name}", check=False)
        return result.returncode == 0

    def remote_tag_exists(self, name: str) -> bool:
        output = self._git("ls-remote", "--tags", self.remote, f"refs/tags/{name}")
        return bool(output)

    def create_tag(self, name: str, message: str) -> None:
        self._git("tag", "-a", name, "-m", message)

    def force_create_tag(self, name: str, target: str, message: str) -> None:
        self._git("tag", "-fa", name, f"{target}^{{commit}}", "-m", message)

    def push_tag(self, name: str) -> None:
        self._git("push", self.remote, f"refs/tags/{name}")

    def force_push_tag(self, name: str) -> None:
        self._git("push", "--force", self.remote, f"refs/tags/{name}")

    def tag_date(self, name: str) -> str:
        return self._git("log", "-1", "--format=%cd", "--date=short", name)

    # =========================================================================
    # Commits
    # =========================================================================

    def head_sha(self) -> str:
        return self._git("rev-parse", "HEAD")

    def has_commits(self) -> bool:
        result = self._run("rev-parse", "--verify", "--quiet", "HEAD", check=False)
        return result.returncode == 0

    def commits_since(self, sha: str | None) -> list[Commit]:
        return self.commits_between(sha, "HEAD")

    def commits_between(self, start: str | None, end: str) -> list[Commit]:
        # An unborn branch has no commits to list.
        if end == "HEAD" and not self.has_commits():
            return []
        revision = f"{start}..{end}" if start else end
        return parse_commit_log(self._run("log", f"--format={LOG_FORMAT}", revision).stdout)

    def stage_and_commit(self, paths: Sequence[str], message: str) -> bool:
        self._git("add", "--", *paths)
        staged = self._run("diff", "--cached", "--quiet", check=False)
        if staged.returncode == 0:
            return False
        self._git("commit", "-m", message)
        return True

    def push(self) -> None:
        self._git("push", self.remote, "HEAD")

    # =========================================================================
    # Remote
    # =========================================================================

    def remote_url(self) -> str:
        return self._git("remote", "get-url", self.remote)

    def parse_remote(self) -> tuple[str, str, str]:
        """Return (hostname, owner, repo) of the configured remote."""
        return parse_remote_url(self.remote_url())


def parse_commit_log(output: str) -> list[Commit]:
    """Parse ``git log --format=%H%n%an%n%B%n--END--`` output."""
    commits = []
    sha: str | None = None
    author: str | None = None
    lines: list[str] = []

    for line in output.splitlines():
        if line == _END_MARKER:
            if sha is not None:
                commits.append(Commit(sha=sha, message="\n".join(lines).strip(), author=author))
            sha, author, lines = None, None, []
        elif sha is None and _SHA_RE.match(line):
            sha = line
        elif sha is not None and author is None:
            author = line
        else:
            lines.append(line)

    if sha is not None:
        commits.append(Commit(sha=sha, message="\n".join(lines).strip(), author=author))
    return commits


def parse_remote_url(url: str) -> tuple[str, str, str]:
    """Extract (hostname, owner, repo) from a git remote URL.

    Supports ``https://host/owner/repo(.git)`` and ``git@host:owner/repo(.git)``.

    Raises:
        SourceControlError: If the URL cannot be parsed
    """
    trimmed = url.strip().removesuffix("/").removesuffix(".git")

    for scheme in ("https://", "http://", "ssh://"):
        if trimmed.startswith(scheme):
            rest = trimmed[len(scheme) :]
            host, _, path = rest.partition("/")
            host = host.rsplit("@", 1)[-1].split(":", 1)[0]
            break
    else:
        host_part, sep, path = trimmed.partition(":")
        if not sep:
            raise SourceControlError(f"cannot parse remote URL: {url}")
        host = host_part.rsplit("@", 1)[-1]

    owner, _, repo = path.partition("/")
    if not host or not owner or not repo:
        raise SourceControlError(f"cannot parse owner/repo from: {url}")
    return host, owner, repo
