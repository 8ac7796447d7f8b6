"""Tests for the GitHub release host, using httpx.MockTransport."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import httpx
import pytest

from trunk_release.exceptions import ReleaseHostError
from trunk_release.forge.github import GitHubReleaseHost

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

UPLOAD_URL = "https://uploads.github.com/repos/acme/widget/releases/7/assets{?name,label}"


def make_host(
    handler: Callable[[httpx.Request], httpx.Response], hostname: str = "github.com"
) -> tuple[GitHubReleaseHost, list[httpx.Request]]:
    requests: list[httpx.Request] = []

    def record(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return handler(request)

    host = GitHubReleaseHost(
        "acme", "widget", "s3cret", hostname, transport=httpx.MockTransport(record)
    )
    return host, requests


def release_json(tag: str = "v1.0.0") -> dict:
    return {
        "id": 7,
        "tag_name": tag,
        "html_url": f"https://github.com/acme/widget/releases/tag/{tag}",
        "upload_url": UPLOAD_URL,
    }


class TestUrls:
    """Tests for URL construction."""

    def test_github_com(self):
        """github.com uses the public API host."""
        host, _ = make_host(lambda r: httpx.Response(200))

        assert host.api_url == "https://api.github.com"
        assert host.repo_url() == "https://github.com/acme/widget"
        assert host.compare_url("v1.0.0", "v1.1.0") == (
            "https://github.com/acme/widget/compare/v1.0.0...v1.1.0"
        )

    def test_enterprise(self):
        """Enterprise hosts use /api/v3 on the same hostname."""
        host, _ = make_host(lambda r: httpx.Response(200), hostname="ghe.corp")

        assert host.api_url == "https://ghe.corp/api/v3"
        assert host.repo_url() == "https://ghe.corp/acme/widget"

    def test_headers(self):
        """Requests carry the token and API version."""
        host, requests = make_host(lambda r: httpx.Response(200, json=release_json()))
        host.release_exists("v1.0.0")

        headers = requests[0].headers
        assert headers["Authorization"] == "Bearer s3cret"
        assert headers["Accept"] == "application/vnd.github+json"
        assert headers["X-GitHub-Api-Version"] == "2022-11-28"


class TestReleases:
    """Tests for release creation and replacement."""

    def test_create_release(self):
        """POST /releases returns the html URL."""
        host, requests = make_host(lambda r: httpx.Response(201, json=release_json()))

        url = host.create_release("v1.0.0", "v1.0.0", "## notes", prerelease=False)

        assert url == "https://github.com/acme/widget/releases/tag/v1.0.0"
        assert requests[0].method == "POST"
        assert requests[0].url.path == "/repos/acme/widget/releases"
        assert json.loads(requests[0].content) == {
            "tag_name": "v1.0.0",
            "name": "v1.0.0",
            "body": "## notes",
            "prerelease": False,
        }

    def test_release_exists(self):
        """200 means the release exists, 404 means it does not."""
        host, _ = make_host(
            lambda r: httpx.Response(200 if r.url.path.endswith("v1.0.0") else 404)
        )

        assert host.release_exists("v1.0.0")
        assert not host.release_exists("v2.0.0")

    def test_release_exists_propagates_other_errors(self):
        """Errors other than 404 are not mistaken for absence."""
        host, _ = make_host(lambda r: httpx.Response(500, text="boom"))

        with pytest.raises(ReleaseHostError) as exc_info:
            host.release_exists("v1.0.0")
        assert exc_info.value.status_code == 500

    def test_delete_release(self):
        """Release id is looked up by tag, then deleted."""

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "GET":
                return httpx.Response(200, json=release_json())
            return httpx.Response(204)

        host, requests = make_host(handler)
        host.delete_release("v1.0.0")

        assert [(r.method, r.url.path) for r in requests] == [
            ("GET", "/repos/acme/widget/releases/tags/v1.0.0"),
            ("DELETE", "/repos/acme/widget/releases/7"),
        ]

    def test_create_failure(self):
        """A rejected request raises ReleaseHostError with the status."""
        host, _ = make_host(lambda r: httpx.Response(422, json={"message": "already_exists"}))

        with pytest.raises(ReleaseHostError, match="422"):
            host.create_release("v1.0.0", "v1.0.0", "", prerelease=False)

    def test_non_json_body(self):
        """A success status with a body that is not JSON raises ReleaseHostError."""
        host, _ = make_host(lambda r: httpx.Response(200, text="<html>proxy</html>"))

        with pytest.raises(ReleaseHostError, match="invalid JSON") as exc_info:
            host.create_release("v1.0.0", "v1.0.0", "", prerelease=False)
        assert exc_info.value.status_code == 200

        with pytest.raises(ReleaseHostError, match="invalid JSON"):
            host.delete_release("v1.0.0")

        assert host.release_exists("v1.0.0")

    def test_network_error(self):
        """Transport errors become ReleaseHostError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        host, _ = make_host(handler)
        with pytest.raises(ReleaseHostError, match="unreachable"):
            host.release_exists("v1.0.0")


class TestUploadAssets:
    """Tests for upload_assets()."""

    def test_uploads_each_file(self, tmp_path: Path):
        """Each file is POSTed to the release's upload URL."""
        binary = tmp_path / "widget-linux-amd64"
        binary.write_bytes(b"binary")
        notes = tmp_path / "notes.txt"
        notes.write_text("hi")

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "GET":
                return httpx.Response(200, json=release_json())
            return httpx.Response(201, json={"id": 1})

        host, requests = make_host(handler)
        host.upload_assets("v1.0.0", [binary, notes])

        uploads = [r for r in requests if r.method == "POST"]
        assert [r.url.host for r in uploads] == ["uploads.github.com"] * 2
        assert uploads[0].url.path == "/repos/acme/widget/releases/7/assets"
        assert uploads[0].url.params["name"] == binary.name
        assert uploads[0].content == b"binary"
        assert uploads[0].headers["Content-Type"] == "application/octet-stream"
        assert uploads[1].headers["Content-Type"] == "text/plain"

    def test_missing_file(self, tmp_path: Path):
        """An unreadable asset raises ReleaseHostError."""
        host, _ = make_host(lambda r: httpx.Response(200, json=release_json()))

        with pytest.raises(ReleaseHostError, match="failed to read"):
            host.upload_assets("v1.0.0", [tmp_path / "missing.zip"])


class TestResolveContributors:
    """Tests for resolve_contributors()."""

    def test_maps_authors_to_logins(self):
        """Logins come from the commit's linked account; failures are skipped."""

        def handler(request: httpx.Request) -> httpx.Response:
            sha = request.url.path.rsplit("/", 1)[-1]
            if sha == "a1":
                return httpx.Response(200, json={"author": {"login": "alice"}})
            if sha == "b2":
                return httpx.Response(200, json={"author": None})
            if sha == "d4":
                return httpx.Response(200, text="not json")
            return httpx.Response(422)

        host, _ = make_host(handler)
        handles = host.resolve_contributors(
            [("Alice", "a1"), ("Bob", "b2"), ("Carol", "c3"), ("Dan", "d4")]
        )

        assert handles == {"Alice": "alice"}
