"""Exception hierarchy for trunk-release.

Every error raised by the release pipeline derives from ReleaseError.
NothingToReleaseError marks the two expected, non-fatal outcomes
(no new commits, no releasable commits); everything else aborts the
pipeline at the failing step.
"""

from __future__ import annotations


class ReleaseError(Exception):
    """Base exception for all trunk-release errors."""


# =============================================================================
# Expected outcomes
# =============================================================================


class NothingToReleaseError(ReleaseError):
    """There is nothing to release. Not a failure."""


class NoCommitsError(NothingToReleaseError):
    """No commits found since the last release tag."""

    def __init__(self, message: str = "no commits found since last release") -> None:
        super().__init__(message)


class NoBumpError(NothingToReleaseError):
    """Commits exist but none of them warrants a version bump."""

    def __init__(
        self,
        message: str = "no releasable commits found (no feat/fix/breaking changes)",
    ) -> None:
        super().__init__(message)


# =============================================================================
# Configuration
# =============================================================================


class ConfigError(ReleaseError):
    """Configuration could not be loaded or is invalid."""


class ConfigNotFoundError(ConfigError):
    """A configuration file was expected but not found."""


class ConfigValidationError(ConfigError):
    """Configuration data failed validation."""


# =============================================================================
# Collaborators
# =============================================================================


class SourceControlError(ReleaseError):
    """A git operation failed."""

    def __init__(self, message: str, stderr: str | None = None) -> None:
        super().__init__(message)
        self.stderr = stderr


class ReleaseHostError(ReleaseError):
    """The remote release host (e.g. GitHub) rejected a request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


# =============================================================================
# Pipeline steps
# =============================================================================


class VersionBumpError(ReleaseError):
    """A version file could not be rewritten."""


class UnsupportedVersionFileError(VersionBumpError):
    """The file name does not map to a known manifest format."""


class VersionNotFoundError(VersionBumpError):
    """The manifest has no version at the expected location."""


class BuildCommandError(ReleaseError):
    """The configured build command failed to spawn or exited non-zero."""

    def __init__(self, command: str, returncode: int | None = None) -> None:
        if returncode is None:
            message = f"build command could not be started: {command}"
        else:
            message = f"build command failed with exit code {returncode}: {command}"
        super().__init__(message)
        self.command = command
        self.returncode = returncode


class ChangelogError(ReleaseError):
    """The changelog file could not be read or written."""
