"""Tests for semantic versions and bump planning."""

from __future__ import annotations

import pytest

from trunk_release.core.commits import CommitClassifier
from trunk_release.core.version import BumpLevel, Version, apply_bump, determine_bump

from conftest import conventional


class TestVersionParse:
    """Tests for Version.parse()."""

    def test_simple(self):
        """Parse a plain release version."""
        assert Version.parse("1.2.3") == Version(1, 2, 3)

    def test_prerelease_and_build(self):
        """Pre-release and build metadata are captured."""
        v = Version.parse("1.2.3-rc.1+build.5")

        assert v.prerelease == "rc.1"
        assert v.build == "build.5"
        assert str(v) == "1.2.3-rc.1+build.5"

    @pytest.mark.parametrize("text", ["1.2", "v1.2.3", "1.2.3.4", "01.2.3", "abc", ""])
    def test_invalid(self, text: str):
        """Malformed versions raise ValueError."""
        with pytest.raises(ValueError):
            Version.parse(text)


class TestVersionOrdering:
    """Tests for Version comparisons."""

    def test_numeric_components(self):
        """Components compare numerically, not lexically."""
        assert Version(1, 10, 0) > Version(1, 9, 0)
        assert Version(2, 0, 0) > Version(1, 99, 99)

    def test_release_beats_prerelease(self):
        """A release is greater than its own pre-release."""
        assert Version(1, 0, 0) > Version.parse("1.0.0-rc.1")
        assert Version.parse("1.0.0-rc.1") < Version(1, 0, 0)

    def test_prerelease_numeric_identifiers(self):
        """Numeric pre-release identifiers compare as integers."""
        assert Version.parse("1.0.0-rc.2") < Version.parse("1.0.0-rc.10")
        assert Version.parse("1.0.0-rc.10") > Version.parse("1.0.0-rc.2")

    def test_prerelease_precedence_chain(self):
        """Identifiers follow semver precedence rules."""
        chain = [
            "1.0.0-alpha",
            "1.0.0-alpha.1",
            "1.0.0-alpha.beta",
            "1.0.0-beta",
            "1.0.0-beta.2",
            "1.0.0-beta.11",
            "1.0.0-rc.1",
            "1.0.0",
        ]
        versions = [Version.parse(text) for text in chain]

        assert [str(v) for v in sorted(reversed(versions))] == chain
        for lower, higher in zip(versions, versions[1:]):
            assert lower < higher
            assert not lower >= higher
            assert lower != higher

    def test_equal_prereleases(self):
        """Identical pre-releases are equal and neither is greater."""
        a, b = Version.parse("1.0.0-rc.1"), Version.parse("1.0.0-rc.1")
        assert a == b
        assert a <= b and a >= b
        assert not a < b

    def test_build_ignored_in_equality(self):
        """Build metadata does not affect equality."""
        assert Version.parse("1.0.0+a") == Version.parse("1.0.0+b")

    def test_sorting(self):
        """Versions sort by precedence."""
        versions = [Version(1, 0, 1), Version.parse("1.0.0-beta"), Version(0, 9, 0)]
        assert [str(v) for v in sorted(versions)] == ["0.9.0", "1.0.0-beta", "1.0.1"]


class TestApplyBump:
    """Tests for apply_bump()."""

    def test_patch(self):
        """Patch bump increments patch only."""
        assert apply_bump(Version(1, 2, 3), BumpLevel.PATCH) == Version(1, 2, 4)

    def test_minor_resets_patch(self):
        """Minor bump resets patch."""
        assert apply_bump(Version(1, 2, 3), BumpLevel.MINOR) == Version(1, 3, 0)

    def test_major_resets_minor_and_patch(self):
        """Major bump resets minor and patch."""
        assert apply_bump(Version(1, 2, 3), BumpLevel.MAJOR) == Version(2, 0, 0)

    def test_drops_prerelease(self):
        """Bumping a pre-release yields a plain release."""
        bumped = Version.parse("1.2.3-rc.1").bump(BumpLevel.PATCH)
        assert bumped == Version(1, 2, 4)
        assert bumped.prerelease is None

    def test_from_zero(self):
        """First releases bump from 0.0.0."""
        assert Version.zero().bump(BumpLevel.MINOR) == Version(0, 1, 0)
        assert Version.zero().bump(BumpLevel.MAJOR) == Version(1, 0, 0)

    @pytest.mark.parametrize("level", list(BumpLevel))
    def test_strictly_increasing(self, level: BumpLevel):
        """Every bump produces a strictly greater version."""
        v = Version(3, 4, 5)
        assert apply_bump(v, level) > v


class TestDetermineBump:
    """Tests for determine_bump()."""

    def test_no_commits(self):
        """No commits means no release."""
        assert determine_bump([], CommitClassifier()) is None

    def test_only_non_bumping_types(self):
        """docs and chore alone do not warrant a release."""
        commits = [conventional("docs", "a"), conventional("chore", "b", n=2)]
        assert determine_bump(commits, CommitClassifier()) is None

    def test_maximum_wins(self):
        """The highest level among the commits is chosen."""
        commits = [conventional("fix", "a"), conventional("feat", "b", n=2)]
        assert determine_bump(commits, CommitClassifier()) is BumpLevel.MINOR

    def test_breaking_docs_is_major(self):
        """A breaking commit is major whatever its type."""
        commits = [conventional("feat", "a"), conventional("docs", "b", n=2, breaking=True)]
        assert determine_bump(commits, CommitClassifier()) is BumpLevel.MAJOR


class TestBumpLevel:
    """Tests for BumpLevel ordering."""

    def test_ordering(self):
        """Levels order patch < minor < major."""
        assert BumpLevel.PATCH < BumpLevel.MINOR < BumpLevel.MAJOR
        assert max([BumpLevel.MINOR, BumpLevel.PATCH]) is BumpLevel.MINOR

    def test_str(self):
        """String form is the lowercase value."""
        assert str(BumpLevel.MAJOR) == "major"
