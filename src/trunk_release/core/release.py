"""Release orchestration for the trunk-based flow.

``plan()`` is read-only: it inspects tags and commits and decides the next
version. ``execute()`` carries a plan out as a fixed sequence of steps,
each guarded by an existence check or naturally a no-op on repeat, so a
failed run is recovered by running it again. Nothing is rolled back.

Pipeline order:

 1. render changelog body
 2. bump version files
 3. merge body into the changelog file
 4. run build command
 5. commit changelog + version files
 6. create version tag (if missing locally)
 7. push branch
 8. push version tag (if missing on remote)
 9. force-move floating major tag (always)
10. create remote release (replacing an existing one)
11. upload artifacts
"""

from __future__ import annotations

import glob
import logging
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.markup import escape

from trunk_release.core.build import run_build_command
from trunk_release.core.changelog import ChangelogEntry, ChangelogFormatter, merge_changelog
from trunk_release.core.commits import (
    CommitClassifier,
    CommitParser,
    ConventionalCommit,
    filter_release_commits,
    parse_commits,
)
from trunk_release.core.version import BumpLevel, Version, apply_bump, determine_bump
from trunk_release.exceptions import NoBumpError, NoCommitsError, ReleaseError
from trunk_release.project.version_files import bump_version_files

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from trunk_release.config.models import ReleaseConfig
    from trunk_release.core.ports import ReleaseHost, SourceControl

logger = logging.getLogger(__name__)

RELEASE_COMMIT_TEMPLATE = "chore(release): {tag}"


def _today() -> date:
    return datetime.now(UTC).date()


@dataclass(frozen=True)
class ReleasePlan:
    """The computed plan for a release, before execution.

    A forced re-release of an unchanged tag has no commits, no bump, and
    ``next_version == current_version``.
    """

    current_version: Version | None
    next_version: Version
    bump: BumpLevel | None
    commits: tuple[ConventionalCommit, ...]
    tag_name: str
    floating_tag_name: str | None = None

    @property
    def is_rerelease(self) -> bool:
        return not self.commits and self.current_version == self.next_version

    def to_dict(self) -> dict[str, Any]:
        return {
            "current_version": str(self.current_version) if self.current_version else None,
            "next_version": str(self.next_version),
            "bump": self.bump.value if self.bump else None,
            "commits": [c.to_dict() for c in self.commits],
            "tag_name": self.tag_name,
            "floating_tag_name": self.floating_tag_name,
        }


@dataclass
class ReleaseOutcome:
    """What a non-dry-run ``execute()`` actually did."""

    tag_name: str
    changed_files: list[Path] = field(default_factory=list)
    changelog_written: bool = False
    committed: bool = False
    tag_created: bool = False
    tag_pushed: bool = False
    floating_tag: str | None = None
    release_url: str | None = None
    release_replaced: bool = False
    uploaded: list[Path] = field(default_factory=list)


class ReleaseOrchestrator:
    """Plans and executes trunk-based releases.

    Args:
        git: Source-control capability
        host: Release-host capability, or None to skip remote releases
        config: Release configuration
        root: Project root; relative config paths resolve against it
        clock: Returns today's date for changelog headings
        console: Where dry-run output is printed
        build_runner: Runs the configured build command
    """

    def __init__(
        self,
        git: SourceControl,
        host: ReleaseHost | None,
        config: ReleaseConfig,
        *,
        root: Path | None = None,
        clock: Callable[[], date] = _today,
        console: Console | None = None,
        build_runner: Callable[[str, Mapping[str, str], Path], None] = run_build_command,
    ) -> None:
        self.git = git
        self.host = host
        self.config = config
        self.root = root or Path.cwd()
        self.clock = clock
        self.console = console or Console(stderr=True)
        self.build_runner = build_runner

        self.parser = CommitParser(config.commit_pattern)
        self.classifier = CommitClassifier(config.types)
        self.formatter = ChangelogFormatter(
            config.types,
            breaking_section=config.breaking_section,
            misc_section=config.misc_section,
        )

    def tag_name_for(self, version: Version) -> str:
        return f"{self.config.tag_prefix}{version}"

    # =========================================================================
    # Planning
    # =========================================================================

    def plan(self, force: bool = False) -> ReleasePlan:
        """Plan the next release without changing anything.

        Args:
            force: Allow re-releasing the latest tag when HEAD is exactly
                that tag's commit

        Raises:
            NoCommitsError: Nothing new since the latest tag
            NoBumpError: No commit warrants a version bump
        """
        prefix = self.config.tag_prefix
        tag = self.git.latest_tag(prefix)
        current_version = tag.version if tag else None

        raw_commits = self.git.commits_since(tag.sha if tag else None)
        if not raw_commits:
            if force and tag is not None and self.git.head_sha() == tag.sha:
                logger.info("Forcing re-release of %s", tag.name)
                return ReleasePlan(
                    current_version=tag.version,
                    next_version=tag.version,
                    bump=None,
                    commits=(),
                    tag_name=self.tag_name_for(tag.version),
                    floating_tag_name=self._floating_tag(tag.version),
                )
            raise NoCommitsError()

        commits = parse_commits(filter_release_commits(raw_commits), self.parser)
        logger.debug(
            "Parsed %d of %d commits as conventional", len(commits), len(raw_commits)
        )

        bump = determine_bump(commits, self.classifier)
        if bump is None:
            raise NoBumpError()

        next_version = apply_bump(current_version or Version.zero(), bump)
        return ReleasePlan(
            current_version=current_version,
            next_version=next_version,
            bump=bump,
            commits=tuple(commits),
            tag_name=self.tag_name_for(next_version),
            floating_tag_name=self._floating_tag(next_version),
        )

    def _floating_tag(self, version: Version) -> str | None:
        if not self.config.floating_tags:
            return None
        return self.config.floating_tag_for(version.major)

    # =========================================================================
    # Changelog
    # =========================================================================

    def render_changelog(self, plan: ReleasePlan) -> str:
        """Render the changelog body for a plan, dated by the clock."""
        entry = ChangelogEntry(
            version=str(plan.next_version),
            date=self.clock().isoformat(),
            commits=list(plan.commits),
        )
        if self.host is not None:
            entry.repo_url = self.host.repo_url()
            if plan.current_version is not None and plan.current_version != plan.next_version:
                entry.compare_url = self.host.compare_url(
                    self.tag_name_for(plan.current_version), plan.tag_name
                )
            author_shas = entry.unique_author_shas()
            if author_shas:
                entry.contributor_map = self.host.resolve_contributors(author_shas)
        return self.formatter.format([entry])

    def regenerate_changelog(self) -> str:
        """Rebuild the changelog for every release tag, newest first.

        Raises:
            ReleaseError: If no tags match the configured prefix
        """
        prefix = self.config.tag_prefix
        tags = self.git.all_tags(prefix)
        if not tags:
            raise ReleaseError(f"no tags found with prefix '{prefix}'")

        repo_url = self.host.repo_url() if self.host else None
        entries = []
        previous = None
        for tag in tags:
            raw = self.git.commits_between(previous.sha if previous else None, tag.name)
            compare_url = None
            if self.host is not None and previous is not None:
                compare_url = self.host.compare_url(previous.name, tag.name)
            entries.append(
                ChangelogEntry(
                    version=str(tag.version),
                    date=self.git.tag_date(tag.name),
                    commits=parse_commits(filter_release_commits(raw), self.parser),
                    compare_url=compare_url,
                    repo_url=repo_url,
                )
            )
            previous = tag

        if self.host is not None:
            author_shas: dict[str, str] = {}
            for entry in entries:
                for author, sha in entry.unique_author_shas():
                    author_shas.setdefault(author, sha)
            if author_shas:
                contributors = self.host.resolve_contributors(list(author_shas.items()))
                for entry in entries:
                    entry.contributor_map = contributors

        entries.reverse()
        return self.formatter.format(entries)

    # =========================================================================
    # Execution
    # =========================================================================

    def execute(self, plan: ReleasePlan, dry_run: bool = False) -> ReleaseOutcome | None:
        """Carry out a release plan.

        Every step is safe to repeat: tags, pushes and the release commit are
        guarded or no-ops on a second run, the floating tag is always moved,
        and an existing remote release is replaced.

        Args:
            plan: Plan produced by :meth:`plan`
            dry_run: Print the steps instead of performing them

        Returns:
            What was done, or None for a dry run
        """
        body = self.render_changelog(plan)

        if dry_run:
            self._preview(plan, body)
            return None

        version = str(plan.next_version)
        outcome = ReleaseOutcome(tag_name=plan.tag_name)

        # 2. Version files
        report = bump_version_files(
            self.config.version_files,
            version,
            strict=self.config.version_files_strict,
            root=self.root,
        )
        outcome.changed_files = report.changed

        # 3. Changelog file
        changelog_file = self.config.changelog.file
        if changelog_file is not None:
            outcome.changelog_written = merge_changelog(
                self.root / changelog_file, body, version, self.config.changelog.title
            )
            logger.info(
                "%s %s",
                "Updated" if outcome.changelog_written else "Already up to date:",
                changelog_file,
            )

        # 4. Build
        if self.config.build_command:
            self.build_runner(self.config.build_command, self._build_env(plan), self.root)

        # 5. Release commit
        paths = [str(p) for p in report.processed]
        if changelog_file is not None:
            paths.insert(0, str(changelog_file))
        if paths:
            message = RELEASE_COMMIT_TEMPLATE.format(tag=plan.tag_name)
            outcome.committed = self.git.stage_and_commit(paths, message)
            if outcome.committed:
                logger.info("Committed %s", message)

        # 6. Version tag
        if not self.git.tag_exists(plan.tag_name):
            self.git.create_tag(plan.tag_name, body or plan.tag_name)
            outcome.tag_created = True
            logger.info("Created tag %s", plan.tag_name)

        # 7. Branch
        self.git.push()

        # 8. Remote tag
        if not self.git.remote_tag_exists(plan.tag_name):
            self.git.push_tag(plan.tag_name)
            outcome.tag_pushed = True
            logger.info("Pushed tag %s", plan.tag_name)

        # 9. Floating tag, always moved
        if plan.floating_tag_name:
            self.git.force_create_tag(
                plan.floating_tag_name, plan.tag_name, f"Latest release: {plan.tag_name}"
            )
            self.git.force_push_tag(plan.floating_tag_name)
            outcome.floating_tag = plan.floating_tag_name
            logger.info("Moved %s to %s", plan.floating_tag_name, plan.tag_name)

        if self.host is None:
            logger.info("No release host configured; skipping remote release")
            if self.config.artifacts:
                logger.warning("Artifacts configured but no release host; nothing uploaded")
            return outcome

        # 10. Remote release
        if self.host.release_exists(plan.tag_name):
            self.host.delete_release(plan.tag_name)
            outcome.release_replaced = True
            logger.info("Deleted existing release %s", plan.tag_name)
        outcome.release_url = self.host.create_release(
            plan.tag_name,
            plan.tag_name,
            body,
            prerelease=plan.next_version.prerelease is not None,
        )
        logger.info("Created release %s", outcome.release_url or plan.tag_name)

        # 11. Artifacts
        files = resolve_artifacts(self.config.artifacts, self.root)
        if files:
            self.host.upload_assets(plan.tag_name, files)
            outcome.uploaded = files
            logger.info("Uploaded %d artifact(s)", len(files))
        elif self.config.artifacts:
            logger.warning("No files matched artifact patterns %s", self.config.artifacts)

        logger.info("Released %s", plan.tag_name)
        return outcome

    def _build_env(self, plan: ReleasePlan) -> dict[str, str]:
        return {
            "RELEASE_VERSION": str(plan.next_version),
            "RELEASE_TAG": plan.tag_name,
            "RELEASE_PREVIOUS_VERSION": str(plan.current_version or ""),
        }

    def _preview(self, plan: ReleasePlan, body: str) -> None:
        def say(message: str) -> None:
            self.console.print(f"[yellow]\\[dry-run][/] {escape(message)}", highlight=False)

        version = str(plan.next_version)
        for path in self.config.version_files:
            say(f"Would bump {path} to {version}")
        if self.config.changelog.file is not None:
            say(f"Would update {self.config.changelog.file}")
        if self.config.build_command:
            say(f"Would run build command: {self.config.build_command}")
        say(f"Would commit: {RELEASE_COMMIT_TEMPLATE.format(tag=plan.tag_name)}")
        say(f"Would create tag: {plan.tag_name}")
        say("Would push current branch")
        say(f"Would push tag: {plan.tag_name}")
        if plan.floating_tag_name:
            say(f"Would force-move floating tag {plan.floating_tag_name} to {plan.tag_name}")
        if self.host is not None:
            say(f"Would create release for {plan.tag_name}")
            for path in resolve_artifacts(self.config.artifacts, self.root):
                say(f"Would upload {path}")
        say("Changelog:")
        self.console.print(body, markup=False, highlight=False)


def resolve_artifacts(patterns: list[str], root: Path) -> list[Path]:
    """Expand artifact glob patterns to existing files.

    Relative patterns resolve against ``root``. Matches are deduplicated,
    keeping the first occurrence; directories are ignored.
    """
    seen: dict[Path, None] = {}
    for pattern in patterns:
        full = pattern if Path(pattern).is_absolute() else str(root / pattern)
        for match in sorted(glob.glob(full, recursive=True)):
            path = Path(match)
            if path.is_file():
                seen.setdefault(path.resolve(), None)
    return list(seen)
