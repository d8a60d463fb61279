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

"""Source provider protocol and registry for wrapview.

This module defines the foundational components for the provider system:

- ProviderKind: The closed set of supported hosting providers
- SourceProvider protocol: Interface that all provider adapters implement
- SourceIdentity: What an adapter learns from a source archive URL
- collect_metadata(): Detail call plus tag reconciliation shared by adapters
- Provider registry: register_provider(), get_provider(), classify_source_url()

Dispatch Model:
    A source archive URL is classified into exactly one ProviderKind by
    asking each registered adapter class whether its URL patterns match.
    The matching adapter is then instantiated and invoked. Supporting a new
    host means adding a ProviderKind member and registering an adapter for
    it, never adding another branch to a chain of host checks.

    Registration happens at module import time (adapters self-register).

Example:
    Classify and identify a source URL:
        ```python
        from wrapview.providers import classify_source_url, get_provider

        url = "https://github.com/curl/curl/releases/download/curl-8_16_0/curl-8.16.0.tar.xz"
        kind = classify_source_url(url)        # ProviderKind.GITHUB
        provider = get_provider(kind)
        identity = provider.identify(url)
        # identity.owner == "curl", identity.current_tag == "curl-8_16_0"
        ```

"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import re
from typing import Any, Protocol

from wrapview.exceptions import ConfigError
from wrapview.logging import Logger
from wrapview.results import PackageMetadata, RepoInfo
from wrapview.upstream import DEFAULT_MAX_PAGES, TagPage, find_upstream_version

_ARCHIVE_EXTENSION = re.compile(r"\.zip$|\.tar.*$")


class ProviderKind(str, Enum):
    """Supported source hosting providers."""

    GITHUB = "github"
    GITLAB = "gitlab"


@dataclass(frozen=True)
class SourceIdentity:
    """Project coordinates derived from a source archive URL.

    Attributes:
        kind: Provider variant that produced this identity.
        repo_type: Display flavor of the host ("github", "gitlab", "gitlab-gnome",
            "gitlab-freedesktop").
        host: Host serving the project API (e.g. "gitlab.gnome.org").
        owner: Repository owner or group path.
        name: Repository name.
        project_id: Identifier used in API paths ("owner/name" on GitHub,
            URL-encoded "owner%2Fname" on GitLab).
        current_tag: Tag the archive was built from, or None when the URL
            does not carry one.
    """

    kind: ProviderKind
    repo_type: str
    host: str
    owner: str
    name: str
    project_id: str
    current_tag: str | None = None


class SourceProvider(Protocol):
    """Protocol for source hosting provider adapters.

    Adapters are plain classes (structural subtyping, no inheritance). The
    matches() check must be callable on the class itself so the dispatcher
    can classify a URL without instantiating anything.
    """

    @classmethod
    def matches(cls, source_url: str) -> bool:
        """Return True if this adapter understands the source URL."""
        ...

    def identify(self, source_url: str) -> SourceIdentity:
        """Derive the project identity and current tag from a source URL.

        Raises:
            ConfigError: If the URL does not match this provider's shapes.
        """
        ...

    def fetch_project(self, identity: SourceIdentity) -> dict[str, Any]:
        """Fetch project details.

        Returns:
            A dict with "description", "homepage" and "license" keys
                (values may be None).

        Raises:
            NetworkError: On API failures.
        """
        ...

    def list_tags_page(self, identity: SourceIdentity, page: int) -> TagPage:
        """Fetch one page (1-based) of the project's tags, most recent first.

        Raises:
            NetworkError: On API failures.
        """
        ...

    def fetch_metadata(
        self,
        identity: SourceIdentity,
        known_version: str,
        *,
        max_pages: int = DEFAULT_MAX_PAGES,
    ) -> PackageMetadata:
        """Combine project details with the upstream tag reconciliation.

        Raises:
            NetworkError: On API failures.
        """
        ...


def collect_metadata(
    provider: SourceProvider,
    identity: SourceIdentity,
    known_version: str,
    *,
    max_pages: int = DEFAULT_MAX_PAGES,
    logger: Logger | None = None,
) -> PackageMetadata:
    """Fetch project details and reconcile the recorded version upstream.

    Shared implementation of fetch_metadata() for the adapters: one detail
    call, then the adapter's tag listing fed page by page into the tag
    matcher.

    Args:
        provider: Adapter instance.
        identity: Project identity from provider.identify().
        known_version: Recorded version without the packaging revision.
        max_pages: Tag page cap forwarded to the matcher.
        logger: Optional logger. Defaults to the global logger.

    Returns:
        Combined metadata with repository coordinates.

    Raises:
        NetworkError: Propagated from the detail or tag endpoints.

    """
    project = provider.fetch_project(identity)
    upstream = find_upstream_version(
        identity.current_tag,
        known_version,
        lambda page: provider.list_tags_page(identity, page),
        max_pages=max_pages,
        logger=logger,
    )
    return PackageMetadata(
        description=project.get("description"),
        homepage=project.get("homepage"),
        license=project.get("license"),
        repo=RepoInfo(type=identity.repo_type, owner=identity.owner, name=identity.name),
        upstream_version=upstream.upstream_version,
        is_outdated=upstream.is_outdated,
    )


def strip_archive_extension(filename: str) -> str:
    """Remove ".zip" / ".tar*" archive extensions from a tag segment.

    Example:
        ```python
        strip_archive_extension("v1.2.3.tar.gz")  # "v1.2.3"
        strip_archive_extension("v1.2.3.zip")     # "v1.2.3"
        ```
    """
    return _ARCHIVE_EXTENSION.sub("", filename)


def path_segments(path: str) -> list[str]:
    """Split a URL path into its non-empty segments."""
    return [segment for segment in path.split("/") if segment]


# -------------------------------
# Provider Registry
# -------------------------------

_PROVIDER_REGISTRY: dict[ProviderKind, type[SourceProvider]] = {}


def register_provider(kind: ProviderKind, provider_class: type[SourceProvider]) -> None:
    """Register a provider adapter for a ProviderKind.

    Registering the same kind twice overwrites the previous registration
    (allows substitution in tests).

    Args:
        kind: Provider variant served by the adapter.
        provider_class: Adapter class implementing SourceProvider.
    """
    _PROVIDER_REGISTRY[kind] = provider_class


def classify_source_url(source_url: str) -> ProviderKind | None:
    """Classify a source archive URL into a provider variant.

    Args:
        source_url: Archive URL recorded in a release descriptor.

    Returns:
        The matching ProviderKind, or None for unknown hosts.
    """
    for kind, provider_class in _PROVIDER_REGISTRY.items():
        if provider_class.matches(source_url):
            return kind
    return None


def get_provider(kind: ProviderKind | str, **options: Any) -> SourceProvider:
    """Instantiate the adapter registered for a provider variant.

    Args:
        kind: Provider variant (enum member or its string value).
        **options: Keyword arguments forwarded to the adapter constructor
            (token, session, cache, timeouts, logger).

    Returns:
        A new adapter instance.

    Raises:
        ConfigError: If no adapter is registered for the kind.

    """
    try:
        kind = ProviderKind(kind)
    except ValueError as err:
        raise ConfigError(f"Unknown source provider: {kind!r}") from err

    if kind not in _PROVIDER_REGISTRY:
        available = ", ".join(k.value for k in _PROVIDER_REGISTRY)
        raise ConfigError(
            f"No adapter registered for provider {kind.value!r}. "
            f"Available: {available or '(none)'}"
        )
    return _PROVIDER_REGISTRY[kind](**options)
