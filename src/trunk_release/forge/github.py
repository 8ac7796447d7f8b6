"""GitHub releases via the REST API.

Works against github.com and GitHub Enterprise Server; the API base is
derived from the hostname.
"""

from __future__ import annotations

import logging
import mimetypes
from typing import TYPE_CHECKING, Any

import httpx

from trunk_release.exceptions import ReleaseHostError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

logger = logging.getLogger(__name__)

API_VERSION = "2022-11-28"
DEFAULT_TIMEOUT = 30.0


class GitHubReleaseHost:
    """Release host backed by the GitHub REST API.

    Args:
        owner: Repository owner (user or organisation)
        repo: Repository name
        token: Token with ``contents: write`` permission
        hostname: ``github.com`` or a GitHub Enterprise hostname
        transport: Optional httpx transport (used by tests)
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        token: str,
        hostname: str = "github.com",
        *,
        transport: httpx.BaseTransport | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.hostname = hostname
        self._client = httpx.Client(
            base_url=self.api_url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": API_VERSION,
                "User-Agent": "trunk-release",
            },
            timeout=timeout,
            transport=transport,
        )

    @property
    def api_url(self) -> str:
        if self.hostname == "github.com":
            return "https://api.github.com"
        return f"https://{self.hostname}/api/v3"

    @property
    def base_url(self) -> str:
        return f"https://{self.hostname}/{self.owner}/{self.repo}"

    @property
    def _repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> GitHubReleaseHost:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise ReleaseHostError(f"GitHub API {method} {url}: {e}") from e
        if response.is_error:
            raise ReleaseHostError(
                f"GitHub API {method} {url} returned {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        return response

    def _request_json(self, method: str, url: str, **kwargs: Any) -> Any:
        response = self._request(method, url, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise ReleaseHostError(
                f"GitHub API {method} {url} returned invalid JSON: {e}",
                status_code=response.status_code,
            ) from e

    def _get_release(self, tag: str) -> dict[str, Any]:
        return self._request_json("GET", f"{self._repo_path}/releases/tags/{tag}")

    # =========================================================================
    # ReleaseHost protocol
    # =========================================================================

    def create_release(self, tag: str, name: str, body: str, prerelease: bool) -> str:
        payload = {"tag_name": tag, "name": name, "body": body, "prerelease": prerelease}
        release = self._request_json("POST", f"{self._repo_path}/releases", json=payload)
        return release["html_url"]

    def release_exists(self, tag: str) -> bool:
        try:
            self._request("GET", f"{self._repo_path}/releases/tags/{tag}")
        except ReleaseHostError as e:
            if e.status_code == 404:
                return False
            raise
        return True

    def delete_release(self, tag: str) -> None:
        release = self._get_release(tag)
        self._request("DELETE", f"{self._repo_path}/releases/{release['id']}")

    def upload_assets(self, tag: str, files: Sequence[Path]) -> None:
        release = self._get_release(tag)
        # upload_url looks like https://uploads.github.com/.../assets{?name,label}
        upload_url = release["upload_url"].split("{", 1)[0]

        for path in files:
            try:
                data = path.read_bytes()
            except OSError as e:
                raise ReleaseHostError(f"failed to read asset {path}: {e}") from e

            content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
            self._request(
                "POST",
                upload_url,
                params={"name": path.name},
                content=data,
                headers={"Content-Type": content_type},
            )
            logger.info("Uploaded %s", path.name)

    def compare_url(self, base: str, head: str) -> str:
        return f"{self.base_url}/compare/{base}...{head}"

    def repo_url(self) -> str | None:
        return self.base_url

    def resolve_contributors(self, author_shas: Sequence[tuple[str, str]]) -> dict[str, str]:
        """Map author names to GitHub logins.

        Authors whose commit cannot be resolved (no linked account, API
        error) are left out, so the changelog falls back to the raw name.
        """
        handles = {}
        for author, sha in author_shas:
            try:
                commit = self._request_json("GET", f"{self._repo_path}/commits/{sha}")
            except ReleaseHostError as e:
                logger.debug("Could not resolve contributor %s: %s", author, e)
                continue
            login = (commit.get("author") or {}).get("login")
            if login:
                handles[author] = login
        return handles
