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

"""Upstream metadata lookup for a release's source URL.

fetch_metadata() is the single entry point the reconciler uses: it
classifies the source archive URL into a provider variant, builds the
matching adapter from the settings, and returns the combined project
details and upstream tag reconciliation. Sources on unknown hosts yield an
empty PackageMetadata, which is a valid terminal state rather than an
error.
"""

from __future__ import annotations

import requests

from wrapview.config import Settings
from wrapview.http import ResponseCache
from wrapview.logging import Logger, get_global_logger
from wrapview.providers import ProviderKind, classify_source_url, get_provider
from wrapview.results import PackageMetadata


def _provider_token(kind: ProviderKind, settings: Settings) -> str | None:
    if kind is ProviderKind.GITHUB:
        return settings.github_token
    return settings.gitlab_token


def fetch_metadata(
    source_url: str,
    known_version: str,
    *,
    settings: Settings | None = None,
    session: requests.Session | None = None,
    cache: ResponseCache | None = None,
    logger: Logger | None = None,
) -> PackageMetadata:
    """Fetch upstream metadata for a release source URL.

    Args:
        source_url: Source archive URL from the release descriptor.
        known_version: Recorded version without the packaging revision.
        settings: Optional settings (tokens, TTLs, page cap, timeout).
            Defaults to Settings().
        session: Optional requests session shared by provider calls.
        cache: Optional response cache shared by provider calls.
        logger: Optional logger. Defaults to the global logger.

    Returns:
        Combined metadata, or an empty PackageMetadata for unknown hosts.

    Raises:
        NetworkError: When a provider endpoint fails or returns malformed
            data.

    """
    if logger is None:
        logger = get_global_logger()
    if settings is None:
        settings = Settings()

    kind = classify_source_url(source_url)
    if kind is None:
        logger.verbose("METADATA", f"No provider for source URL: {source_url}")
        return PackageMetadata()

    logger.verbose("METADATA", f"Provider: {kind.value}")
    provider = get_provider(
        kind,
        token=_provider_token(kind, settings),
        session=session,
        cache=cache,
        detail_ttl=settings.detail_ttl,
        tags_ttl=settings.tags_ttl,
        timeout=settings.request_timeout,
        logger=logger,
    )
    identity = provider.identify(source_url)
    return provider.fetch_metadata(
        identity, known_version, max_pages=settings.max_tag_pages
    )
