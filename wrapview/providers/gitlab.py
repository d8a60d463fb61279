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

"""GitLab source provider for wrapview.

Covers GitLab instances that host WrapDB upstreams, in three flavors:

- Primary host: ``gitlab.com``
- Themed instances: ``gitlab.gnome.org``, ``gitlab.freedesktop.org``
- GNOME release mirror: ``download.gnome.org``, whose tarballs map back to
  ``gitlab.gnome.org/GNOME/<name>``

Recognized URL Shapes:

- ``https://<host>/<group>/<project>/-/archive/<tag>/<file>``
  (nested groups allowed)
- ``https://download.gnome.org/sources/<name>/<series>/<name>-<ver>.tar.xz``
  where the tag is the version extracted from the file name

Projects are addressed through the v4 REST API by their URL-encoded path
("GNOME%2Fglib"). Tag listings are paginated; a ``Link: rel="next"`` header
(or a non-empty ``X-Next-Page`` header) signals another page.

Example:
    Identify a GNOME mirror tarball:
        ```python
        from wrapview.providers.gitlab import GitLabProvider

        identity = GitLabProvider().identify(
            "https://download.gnome.org/sources/glib/2.80/glib-2.80.0.tar.xz"
        )
        # identity.host == "gitlab.gnome.org"
        # identity.project_id == "GNOME%2Fglib"
        # identity.current_tag == "2.80.0"
        ```
"""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import quote, urlparse

import requests

from wrapview.exceptions import ConfigError, ResponseParseError
from wrapview.http import DEFAULT_TIMEOUT, CachedResponse, ResponseCache, http_get
from wrapview.logging import Logger, get_global_logger
from wrapview.results import PackageMetadata
from wrapview.upstream import DEFAULT_MAX_PAGES, TagPage

from .base import (
    ProviderKind,
    SourceIdentity,
    collect_metadata,
    path_segments,
    register_provider,
)

# host -> repo_type
GITLAB_HOSTS: dict[str, str] = {
    "gitlab.com": "gitlab",
    "gitlab.gnome.org": "gitlab-gnome",
    "gitlab.freedesktop.org": "gitlab-freedesktop",
}
GNOME_MIRROR_HOST = "download.gnome.org"
GNOME_GITLAB_HOST = "gitlab.gnome.org"


def _mirror_version(name: str, filename: str) -> str | None:
    """Extract the version from a mirror tarball name like glib-2.80.0.tar.xz."""
    m = re.match(
        r"^" + re.escape(name) + r"-(\d[0-9A-Za-z.]*?)\.(?:tar|zip)", filename
    )
    return m.group(1) if m else None


class GitLabProvider:
    """Provider adapter for GitLab instances and the GNOME release mirror."""

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
        """Initialize the GitLab adapter.

        Args:
            token: Optional personal access token (sent as PRIVATE-TOKEN).
            session: Optional requests session.
            cache: Optional response cache.
            detail_ttl: Cache lifetime for project details in seconds.
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
        parts = path_segments(parsed.path)
        if parsed.hostname in GITLAB_HOSTS:
            return len(parts) >= 2
        if parsed.hostname == GNOME_MIRROR_HOST:
            return len(parts) >= 4 and parts[0] == "sources"
        return False

    def identify(self, source_url: str) -> SourceIdentity:
        """Derive group, project and current tag from a GitLab URL.

        Args:
            source_url: GitLab archive URL or GNOME mirror tarball URL.

        Returns:
            Identity addressed at the GitLab instance serving the project.

        Raises:
            ConfigError: If the URL is not a recognized GitLab URL.

        """
        if not self.matches(source_url):
            raise ConfigError(f"Not a GitLab project URL: {source_url!r}")

        parsed = urlparse(source_url)
        parts = path_segments(parsed.path)

        if parsed.hostname == GNOME_MIRROR_HOST:
            host = GNOME_GITLAB_HOST
            repo_type = GITLAB_HOSTS[host]
            owner = "GNOME"
            name = parts[1]
            current_tag = _mirror_version(name, parts[-1])
        else:
            host = parsed.hostname or ""
            repo_type = GITLAB_HOSTS[host]
            current_tag = None
            if "-" in parts and parts.index("-") >= 2:
                dash = parts.index("-")
                owner = "/".join(parts[: dash - 1])
                name = parts[dash - 1]
                rest = parts[dash + 1 :]
                if len(rest) >= 2 and rest[0] == "archive":
                    current_tag = rest[1]
            else:
                owner = parts[0]
                name = parts[1].removesuffix(".git")

        self.logger.debug(
            "PROVIDER", f"GitLab {host} {owner}/{name}, current tag: {current_tag}"
        )
        return SourceIdentity(
            kind=ProviderKind.GITLAB,
            repo_type=repo_type,
            host=host,
            owner=owner,
            name=name,
            project_id=quote(f"{owner}/{name}", safe=""),
            current_tag=current_tag,
        )

    def _headers(self) -> dict[str, str]:
        headers = {}
        if self.token:
            headers["PRIVATE-TOKEN"] = self.token
        return headers

    def _get(self, url: str, ttl: int, context: str) -> CachedResponse:
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

    def _project_url(self, identity: SourceIdentity) -> str:
        return f"https://{identity.host}/api/v4/projects/{identity.project_id}"

    def fetch_project(self, identity: SourceIdentity) -> dict[str, Any]:
        response = self._get(
            f"{self._project_url(identity)}?license=true",
            self.detail_ttl,
            "GitLab project request",
        )
        data = response.json()
        if not isinstance(data, dict):
            raise ResponseParseError(
                f"Unexpected project payload for {identity.owner}/{identity.name}",
                body=response.text,
                status_code=response.status_code,
            )
        license_info = data.get("license") or {}
        return {
            "description": data.get("description") or None,
            "homepage": data.get("homepage") or data.get("web_url"),
            "license": license_info.get("key"),
        }

    def list_tags_page(self, identity: SourceIdentity, page: int) -> TagPage:
        response = self._get(
            f"{self._project_url(identity)}/repository/tags?per_page=100&page={page}",
            self.tags_ttl,
            "GitLab tags request",
        )
        data = response.json()
        if not isinstance(data, list):
            raise ResponseParseError(
                f"Unexpected tags payload for {identity.owner}/{identity.name}",
                body=response.text,
                status_code=response.status_code,
            )
        tags = tuple(tag["name"] for tag in data if isinstance(tag, dict) and "name" in tag)
        has_next = response.has_next_page or bool(response.header("X-Next-Page"))
        return TagPage(tags=tags, has_next=has_next)

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
register_provider(ProviderKind.GITLAB, GitLabProvider)
