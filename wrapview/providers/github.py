# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""GitHub source provider for wrapview.

Translates GitHub source archive URLs into a repository identity and the
tag the archive was built from, and exposes the GitHub REST API calls the
reconciler needs: one repository detail call and a paginated tag listing.

Recognized URL Shapes:

- ``https://github.com/<owner>/<repo>/archive/refs/tags/<tag>.<ext>``
- ``https://github.com/<owner>/<repo>/releases/download/<tag>/<file>``
- ``https://github.com/<owner>/<repo>/archive/<tag>.<ext>``
- ``https://codeload.github.com/<owner>/<repo>/tar.gz/<tag>``

Archive extensions (".zip", ".tar.*") are stripped from the tag. Any other
GitHub URL still identifies the repository, but without a current tag.

Rate Limits:

- Unauthenticated: 60 requests/hour per IP
- Authenticated: 5000 requests/hour per token
- Tip: configure ``github.token`` (e.g. "${GITHUB_TOKEN}") in settings

Example:
    Identify a release asset URL:
        ```python
        from wrapview.providers.github import GitHubProvider

        provider = GitHubProvider()
        identity = provider.identify(
            "https://github.com/fmtlib/fmt/archive/refs/tags/11.0.2.tar.gz"
        )
        # identity.owner == "fmtlib", identity.current_tag == "11.0.2"
        ```
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

import requests

from wrapview.exceptions import ConfigError, NetworkError, ResponseParseError
from wrapview.http import (
    DEFAULT_TIMEOUT,
    CachedResponse,
    ResponseCache,
    http_get,
)
from wrapview.logging import Logger, get_global_logger
from wrapview.results import PackageMetadata
from wrapview.upstream import DEFAULT_MAX_PAGES, TagPage

from .base import (
    ProviderKind,
    SourceIdentity,
    collect_metadata,
    path_segments,
    register_provider,
    strip_archive_extension,
)

API_BASE = "https://api.github.com"
_HOSTS = {"github.com", "codeload.github.com"}


class GitHubProvider:
    """Provider adapter for repositories hosted on github.com."""

    def __init__(
        self,
        token: str | None = None,
        *,
        session: requests.Session | None = None,
        cache: ResponseCache | None = None,
        detail_ttl: int = 86400,
        tags_ttl: int = 300,
        timeout: int = DEFAULT_TIMEOUT,
        logger: Logger | None = None,
    ) -> None:
        """Initialize the GitHub adapter.

        Args:
            token: Optional personal access token sent as a Bearer token.
            session: Optional requests session.
            cache: Optional response cache.
            detail_ttl: Cache lifetime for repository details in seconds.
            tags_ttl: Cache lifetime for tag pages in seconds.
            timeout: Request timeout in seconds.
            logger: Optional logger. Defaults to the global logger.
        """
        self.token = token
        self.session = session
        self.cache = cache
        self.detail_ttl = detail_ttl
        self.tags_ttl = tags_ttl
        self.timeout = timeout
        self.logger = logger or get_global_logger()

    @classmethod
    def matches(cls, source_url: str) -> bool:
        parsed = urlparse(source_url)
        return parsed.hostname in _HOSTS and len(path_segments(parsed.path)) >= 2

    def identify(self, source_url: str) -> SourceIdentity:
        """Derive owner, repository and current tag from a GitHub URL.

        Args:
            source_url: GitHub archive or release asset URL.

        Returns:
            Identity with current_tag set when the URL shape carries a tag.

        Raises:
            ConfigError: If the URL is not a GitHub repository URL.

        """
        if not self.matches(source_url):
            raise ConfigError(f"Not a GitHub repository URL: {source_url!r}")

        parsed = urlparse(source_url)
        parts = path_segments(parsed.path)
        owner = parts[0]
        name = parts[1].removesuffix(".git")

        current_tag: str | None = None
        if parsed.hostname == "codeload.github.com":
            if len(parts) >= 4 and parts[2] in ("tar.gz", "zip"):
                current_tag = parts[3]
        elif len(parts) >= 6 and parts[2:5] == ["archive", "refs", "tags"]:
            current_tag = strip_archive_extension(parts[5])
        elif len(parts) >= 5 and parts[2:4] == ["releases", "download"]:
            current_tag = parts[4]
        elif len(parts) >= 4 and parts[2] == "archive":
            current_tag = strip_archive_extension(parts[3])

        self.logger.debug(
            "PROVIDER", f"GitHub {owner}/{name}, current tag: {current_tag}"
        )
        return SourceIdentity(
            kind=ProviderKind.GITHUB,
            repo_type="github",
            host="github.com",
            owner=owner,
            name=name,
            project_id=f"{owner}/{name}",
            current_tag=current_tag,
        )

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _get(self, url: str, ttl: int, context: str) -> CachedResponse:
        try:
            return http_get(
                url,
                headers=self._headers(),
                session=self.session,
                timeout=self.timeout,
                cache=self.cache,
                ttl=ttl,
                context=context,
                logger=self.logger,
            )
        except NetworkError as err:
            if err.status_code == 403:
                raise NetworkError(
                    f"GitHub API rate limit exceeded. Consider using a token. "
                    f"Status: {err.status_code}",
                    status_code=err.status_code,
                ) from err
            raise

    def fetch_project(self, identity: SourceIdentity) -> dict[str, Any]:
        response = self._get(
            f"{API_BASE}/repos/{identity.project_id}",
            self.detail_ttl,
            "GitHub repository request",
        )
        data = response.json()
        if not isinstance(data, dict):
            raise ResponseParseError(
                f"Unexpected repository payload for {identity.project_id}",
                body=response.text,
                status_code=response.status_code,
            )
        license_info = data.get("license") or {}
        return {
            "description": data.get("description"),
            "homepage": data.get("homepage") or None,
            "license": license_info.get("spdx_id"),
        }

    def list_tags_page(self, identity: SourceIdentity, page: int) -> TagPage:
        response = self._get(
            f"{API_BASE}/repos/{identity.project_id}/tags?per_page=100&page={page}",
            self.tags_ttl,
            "GitHub tags request",
        )
        data = response.json()
        if not isinstance(data, list):
            raise ResponseParseError(
                f"Unexpected tags payload for {identity.project_id}",
                body=response.text,
                status_code=response.status_code,
            )
        tags = tuple(tag["name"] for tag in data if isinstance(tag, dict) and "name" in tag)
        return TagPage(tags=tags, has_next=response.has_next_page)

    def fetch_metadata(
        self,
        identity: SourceIdentity,
        known_version: str,
        *,
        max_pages: int = DEFAULT_MAX_PAGES,
    ) -> PackageMetadata:
        return collect_metadata(
            self, identity, known_version, max_pages=max_pages, logger=self.logger
        )


# Register this provider when the module is imported
register_provider(ProviderKind.GITHUB, GitHubProvider)
