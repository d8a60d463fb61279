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

"""Upstream tag matching for wrapview.

Thousands of independent upstream projects name their release tags in
thousands of ways ("v1.2.3", "release-1.2.3", "curl-8_16_0", "1.2.3").
This module finds, for a release recorded in the registry, the newest
upstream tag that follows the SAME naming scheme as the tag the release
was built from, and decides whether the registry is behind.

Matching Algorithm:

1. Normalize the current tag by turning every run of non-alphanumeric
   characters into "." ("curl-8_16_0" -> "curl.8.16.0").
2. The normalized tag must contain the known version; the text before its
   first occurrence is the scheme prefix ("curl.").
3. Fetch tag pages one at a time (most recent first). In each page, drop
   prerelease-looking tags, keep tags whose normalized form is the prefix
   followed by a digit, compare the remaining version part against the
   known version and keep the greatest one that is not older.
4. The first page that yields a candidate decides the result.

Example:
    Reconcile against an in-memory tag list:
        ```python
        from wrapview.upstream import TagPage, find_upstream_version

        result = find_upstream_version(
            "curl-8_16_0",
            "8.16.0",
            lambda page: TagPage(tags=("curl-8_16_1", "curl-8_15_0")),
        )
        # result.upstream_version == "curl-8_16_1"
        # result.is_outdated is True
        ```

Note:
    Tag pages are fetched strictly sequentially; each page's outcome decides
    whether another one is requested. Errors raised by the page fetcher
    propagate to the caller unchanged.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
import re

from wrapview.logging import Logger, get_global_logger
from wrapview.versioning import compare

DEFAULT_MAX_PAGES = 50

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]+")
_PRERELEASE = re.compile(r"alpha|beta|rc|dev|test|snapshot", re.IGNORECASE)


@dataclass(frozen=True)
class TagPage:
    """One page of an upstream tag listing.

    Attributes:
        tags: Raw tag names, most recent first as returned by the host.
        has_next: True when the host advertises another page.
    """

    tags: Sequence[str] = ()
    has_next: bool = False


@dataclass(frozen=True)
class UpstreamVersion:
    """Outcome of reconciling a recorded version against upstream tags.

    Both fields are None when no conclusion could be drawn (missing tag,
    scheme mismatch, no matching tag, or page limit reached).

    Attributes:
        upstream_version: Raw upstream tag name of the newest matching tag.
        is_outdated: True when upstream_version is newer than the recorded
            version.
    """

    upstream_version: str | None = None
    is_outdated: bool | None = None

    @property
    def is_empty(self) -> bool:
        return self.upstream_version is None


TagPageFetcher = Callable[[int], TagPage]


def normalize_tag(tag: str) -> str:
    """Replace every run of non-alphanumeric characters with ".".

    Example:
        ```python
        normalize_tag("curl-8_16_0")  # "curl.8.16.0"
        normalize_tag("v1.2.3")       # "v1.2.3"
        ```
    """
    return _NON_ALNUM.sub(".", tag)


def is_prerelease_tag(tag: str) -> bool:
    """Return True for tags that look like prereleases or test builds."""
    return _PRERELEASE.search(tag) is not None


def _best_candidate(
    tags: Sequence[str], prefix: str, known_version: str
) -> tuple[str, str] | None:
    """Pick the greatest matching tag in a page.

    Returns:
        A tuple (raw_tag, normalized_tag), or None if nothing in the page
            follows the scheme and is at least as new as known_version.
    """
    scheme = re.compile("^" + re.escape(prefix) + "[0-9]+")
    best: tuple[str, str] | None = None
    best_version = ""
    for tag in tags:
        if is_prerelease_tag(tag):
            continue
        normalized = normalize_tag(tag)
        if not scheme.match(normalized):
            continue
        version = normalized[len(prefix) :]
        if compare(version, known_version) < 0:
            continue
        if best is None or compare(version, best_version) > 0:
            best = (tag, normalized)
            best_version = version
    return best


def find_upstream_version(
    current_tag: str | None,
    known_version: str,
    fetch_page: TagPageFetcher,
    *,
    max_pages: int = DEFAULT_MAX_PAGES,
    logger: Logger | None = None,
) -> UpstreamVersion:
    """Find the newest upstream tag following the current tag's scheme.

    Args:
        current_tag: Tag the recorded release was built from (e.g.
            "curl-8_16_0"). None when the source URL does not carry a tag.
        known_version: Version recorded in the registry, without the WrapDB
            packaging revision (e.g. "8.16.0").
        fetch_page: Callable returning the tag page for a 1-based page
            number.
        max_pages: Stop after this many pages and report no conclusion.
            Default is 50.
        logger: Optional logger. Defaults to the global logger.

    Returns:
        UpstreamVersion with the selected tag and outdated flag, or an
            empty UpstreamVersion when no conclusion could be drawn.

    Raises:
        NetworkError: Propagated from fetch_page when a page cannot be
            retrieved.

    Example:
        Up-to-date release:
            ```python
            result = find_upstream_version(
                "v1.2.3",
                "1.2.3",
                lambda page: TagPage(tags=("v1.2.3", "v1.2.2")),
            )
            # result == UpstreamVersion("v1.2.3", False)
            ```

    """
    if logger is None:
        logger = get_global_logger()

    if not current_tag or not known_version:
        return UpstreamVersion()

    normalized_current = normalize_tag(current_tag)
    if known_version not in normalized_current:
        logger.verbose(
            "UPSTREAM",
            f"Tag {current_tag!r} does not contain version {known_version!r}, "
            f"cannot establish naming scheme",
        )
        return UpstreamVersion()

    prefix = normalized_current.split(known_version, 1)[0]
    logger.debug("UPSTREAM", f"Scheme prefix for {current_tag!r}: {prefix!r}")

    page = 1
    while page <= max_pages:
        tag_page = fetch_page(page)
        logger.debug("UPSTREAM", f"Page {page}: {len(tag_page.tags)} tag(s)")

        found = _best_candidate(tag_page.tags, prefix, known_version)
        if found is not None:
            raw_tag, normalized = found
            is_outdated = normalized != prefix + known_version
            logger.verbose(
                "UPSTREAM",
                f"Upstream version {raw_tag} (outdated: {is_outdated})",
            )
            return UpstreamVersion(upstream_version=raw_tag, is_outdated=is_outdated)

        if not tag_page.has_next:
            logger.verbose("UPSTREAM", "No matching upstream tag found")
            return UpstreamVersion()
        page += 1

    logger.verbose(
        "UPSTREAM",
        f"Gave up after {max_pages} tag page(s) without a matching tag",
    )
    return UpstreamVersion()
