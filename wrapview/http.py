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

"""Shared HTTP helpers for wrapview.

Every network call in wrapview (WrapDB manifest, .wrap descriptors, provider
detail and tag endpoints) goes through http_get(). It provides:

- Consistent error mapping: connection failures and non-2xx responses raise
  NetworkError carrying the status text; malformed JSON raises
  ResponseParseError carrying the raw body.
- An optional response cache passed in explicitly by the caller. There is
  no module-level cache: the host decides which cache (if any) is shared
  between requests.
- make_session(): a requests session with retry and exponential backoff for
  transient failures, built per caller (sessions are not shared between
  threads).

Cache Port:

Any object with get(key), put(key, response, ttl) and delete(key) works as
a cache. MemoryResponseCache is a small in-process TTL implementation
suitable for a single worker or for tests.

Example:
    Fetch JSON with a five-minute cache:
        ```python
        from wrapview.http import MemoryResponseCache, http_get

        cache = MemoryResponseCache()
        response = http_get(
            "https://api.github.com/repos/curl/curl/tags?per_page=100&page=1",
            cache=cache,
            ttl=300,
            context="GitHub tags",
        )
        tags = [t["name"] for t in response.json()]
        ```
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
import json
import threading
import time
from typing import Any, Protocol

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from wrapview import __version__
from wrapview.exceptions import NetworkError, ResponseParseError
from wrapview.logging import Logger, get_global_logger

DEFAULT_TIMEOUT = 30
DEFAULT_USER_AGENT = f"wrapview/{__version__}"
DEFAULT_RETRIES = 3


@dataclass(frozen=True)
class CachedResponse:
    """The parts of an HTTP response wrapview needs, safe to cache.

    Attributes:
        url: Requested URL.
        status_code: HTTP status code.
        headers: Response headers (case-insensitive lookups via header()).
        text: Decoded response body.
    """

    url: str
    status_code: int
    headers: dict[str, str] = field(default_factory=dict)
    text: str = ""

    def header(self, name: str) -> str | None:
        lowered = name.lower()
        for key, value in self.headers.items():
            if key.lower() == lowered:
                return value
        return None

    @property
    def has_next_page(self) -> bool:
        """True when the Link header advertises a rel="next" page."""
        link = self.header("Link")
        return bool(link) and 'rel="next"' in link

    def json(self) -> Any:
        """Parse the body as JSON.

        Raises:
            ResponseParseError: If the body is not valid JSON.
        """
        try:
            return json.loads(self.text)
        except json.JSONDecodeError as err:
            raise ResponseParseError(
                f"Invalid JSON from {self.url}: {err}",
                body=self.text,
                status_code=self.status_code,
            ) from err


class ResponseCache(Protocol):
    """Protocol for injectable response caches."""

    def get(self, key: str) -> CachedResponse | None:
        ...

    def put(self, key: str, response: CachedResponse, ttl: int) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


@dataclass
class _CacheEntry:
    response: CachedResponse
    expires_at: float
    created_at: float


class MemoryResponseCache:
    """In-process TTL cache for upstream responses.

    Expired entries are dropped on access. When the entry limit is exceeded,
    the oldest tenth of the entries is evicted. Safe to share between the
    refresh_packages() worker threads.
    """

    def __init__(
        self,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the response cache.

        Args:
            max_entries: Maximum number of cached responses.
            clock: Time source in seconds (injectable for tests).
        """
        self._entries: dict[str, _CacheEntry] = {}
        self._max_entries = max_entries
        self._clock = clock
        self._lock = threading.Lock()

    def get(self, key: str) -> CachedResponse | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                self._entries.pop(key, None)
                return None
            return entry.response

    def put(self, key: str, response: CachedResponse, ttl: int) -> None:
        with self._lock:
            now = self._clock()
            self._entries[key] = _CacheEntry(
                response=response, expires_at=now + ttl, created_at=now
            )
            if len(self._entries) > self._max_entries:
                self._evict_oldest(max(1, self._max_entries // 10))

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _evict_oldest(self, count: int) -> None:
        # Caller holds the lock.
        oldest = sorted(self._entries, key=lambda k: self._entries[k].created_at)
        for key in oldest[:count]:
            self._entries.pop(key, None)


def make_session(retries: int = DEFAULT_RETRIES) -> requests.Session:
    """Create a requests session with retry and backoff.

    Transient failures (429 and 5xx gateway errors) are retried with
    exponential backoff. After the last retry the final response is returned
    as-is so http_get() can map its status to NetworkError.

    Args:
        retries: Total retries per request. 0 disables retrying.

    Returns:
        A configured session. Sessions are not shared between threads.

    Example:
        ```python
        with make_session(retries=5) as session:
            manifest = fetch_releases(session)
        ```
    """
    s = requests.Session()
    retry = Retry(
        total=retries,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=("GET",),
        raise_on_status=False,
    )
    s.headers.update({"User-Agent": DEFAULT_USER_AGENT})
    s.mount("http://", HTTPAdapter(max_retries=retry))
    s.mount("https://", HTTPAdapter(max_retries=retry))
    return s


def cache_key(url: str) -> str:
    """Cache key for a GET request."""
    return f"GET:{url}"


def http_get(
    url: str,
    *,
    headers: dict[str, str] | None = None,
    session: requests.Session | None = None,
    timeout: int = DEFAULT_TIMEOUT,
    cache: ResponseCache | None = None,
    ttl: int = 0,
    context: str = "HTTP request",
    logger: Logger | None = None,
) -> CachedResponse:
    """Perform a GET request with consistent error handling and caching.

    Args:
        url: Target URL.
        headers: Extra request headers. A User-Agent is always sent.
        session: Optional requests session to reuse connections.
        timeout: Request timeout in seconds. Default is 30.
        cache: Optional response cache. Only successful responses are cached.
        ttl: Cache lifetime in seconds. Caching is skipped when ttl <= 0.
        context: Human-readable label used in error messages and logs
            (e.g., "GitHub tags").
        logger: Optional logger. Defaults to the global logger.

    Returns:
        The response (possibly served from cache).

    Raises:
        NetworkError: On connection failures, timeouts, or non-2xx status.

    """
    if logger is None:
        logger = get_global_logger()

    key = cache_key(url)
    if cache is not None and ttl > 0:
        cached = cache.get(key)
        if cached is not None:
            logger.debug("HTTP", f"Cache hit for {url}")
            return cached
        logger.debug("HTTP", f"Cache miss for {url}")

    request_headers = {"User-Agent": DEFAULT_USER_AGENT}
    if headers:
        request_headers.update(headers)

    getter = session.get if session is not None else requests.get
    logger.debug("HTTP", f"GET {url}")
    try:
        response = getter(url, headers=request_headers, timeout=timeout)
        response.raise_for_status()
    except requests.exceptions.HTTPError as err:
        raise NetworkError(
            f"{context} failed: {response.status_code} {response.reason}",
            status_code=response.status_code,
        ) from err
    except requests.exceptions.RequestException as err:
        raise NetworkError(f"{context} failed: {err}") from err

    result = CachedResponse(
        url=url,
        status_code=response.status_code,
        headers=dict(response.headers),
        text=response.text,
    )

    if cache is not None and ttl > 0:
        cache.put(key, result, ttl)
    return result
