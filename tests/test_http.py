"""
Tests for wrapview.http module.

Tests the shared HTTP helper including:
- Error mapping for status codes and connection failures
- JSON parsing errors carrying the raw body
- The in-memory TTL response cache
"""

from __future__ import annotations

import threading

import pytest
import requests
import requests_mock

from wrapview.exceptions import NetworkError, ResponseParseError
from wrapview.http import CachedResponse, MemoryResponseCache, http_get, make_session

URL = "https://wrapdb.mesonbuild.com/v2/releases.json"


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestHttpGet:
    """Tests for http_get()."""

    def test_success(self):
        """Test a successful request returns body and headers."""
        with requests_mock.Mocker() as m:
            m.get(URL, text='{"ok": true}', headers={"ETag": "abc"})
            response = http_get(URL)

        assert response.status_code == 200
        assert response.json() == {"ok": True}
        assert response.header("etag") == "abc"

    def test_extra_headers_sent(self):
        """Test caller headers are merged with the User-Agent."""
        with requests_mock.Mocker() as m:
            m.get(URL, text="{}")
            http_get(URL, headers={"Accept": "application/json"})
            sent = m.last_request.headers

        assert sent["Accept"] == "application/json"
        assert sent["User-Agent"].startswith("wrapview/")

    def test_status_error(self):
        """Test non-2xx responses raise NetworkError with the status."""
        with requests_mock.Mocker() as m:
            m.get(URL, status_code=503, reason="Service Unavailable")
            with pytest.raises(NetworkError) as exc_info:
                http_get(URL, context="WrapDB releases request")

        assert exc_info.value.status_code == 503
        assert str(exc_info.value) == (
            "WrapDB releases request failed: 503 Service Unavailable"
        )

    def test_connection_error(self):
        """Test transport failures raise NetworkError without a status."""
        with requests_mock.Mocker() as m:
            m.get(URL, exc=requests.exceptions.ConnectTimeout)
            with pytest.raises(NetworkError) as exc_info:
                http_get(URL)

        assert exc_info.value.status_code is None

    def test_uses_session(self):
        """Test requests go through a supplied session."""
        session = requests.Session()
        with requests_mock.Mocker() as m:
            m.get(URL, text="{}")
            http_get(URL, session=session)
            assert m.call_count == 1


class TestMakeSession:
    """Tests for make_session()."""

    def test_retry_adapter_mounted(self):
        """Test both schemes retry transient statuses."""
        with make_session(retries=4) as session:
            for prefix in ("http://", "https://"):
                retry = session.get_adapter(prefix + "example.org").max_retries
                assert retry.total == 4
                assert 503 in retry.status_forcelist

    def test_user_agent(self):
        """Test the session identifies wrapview."""
        with make_session() as session:
            assert session.headers["User-Agent"].startswith("wrapview/")

    def test_mocked_request_through_session(self):
        """Test requests through a retrying session can be mocked."""
        with make_session() as session, requests_mock.Mocker() as m:
            m.get(URL, text="{}")
            assert http_get(URL, session=session).json() == {}


class TestCachedResponse:
    """Tests for CachedResponse helpers."""

    def test_invalid_json_keeps_body(self):
        """Test ResponseParseError carries the raw text."""
        response = CachedResponse(url=URL, status_code=200, text="not json")
        with pytest.raises(ResponseParseError) as exc_info:
            response.json()
        assert exc_info.value.body == "not json"
        assert isinstance(exc_info.value, NetworkError)

    def test_has_next_page(self):
        """Test Link header detection."""
        with_next = CachedResponse(
            url=URL, status_code=200, headers={"link": '<x?page=2>; rel="next"'}
        )
        last = CachedResponse(
            url=URL, status_code=200, headers={"Link": '<x?page=1>; rel="prev"'}
        )
        assert with_next.has_next_page is True
        assert last.has_next_page is False
        assert CachedResponse(url=URL, status_code=200).has_next_page is False


class TestResponseCache:
    """Tests for MemoryResponseCache and cached requests."""

    def test_cache_hit_skips_network(self):
        """Test a second request within the TTL is served from cache."""
        cache = MemoryResponseCache()
        with requests_mock.Mocker() as m:
            m.get(URL, text="{}")
            first = http_get(URL, cache=cache, ttl=60)
            second = http_get(URL, cache=cache, ttl=60)
            assert m.call_count == 1

        assert first == second

    def test_zero_ttl_not_cached(self):
        """Test that ttl=0 bypasses the cache."""
        cache = MemoryResponseCache()
        with requests_mock.Mocker() as m:
            m.get(URL, text="{}")
            http_get(URL, cache=cache)
            http_get(URL, cache=cache)
            assert m.call_count == 2
        assert len(cache) == 0

    def test_errors_not_cached(self):
        """Test failed responses are not stored."""
        cache = MemoryResponseCache()
        with requests_mock.Mocker() as m:
            m.get(URL, status_code=500)
            with pytest.raises(NetworkError):
                http_get(URL, cache=cache, ttl=60)
        assert len(cache) == 0

    def test_expiry(self):
        """Test entries expire after their TTL."""
        clock = FakeClock()
        cache = MemoryResponseCache(clock=clock)
        response = CachedResponse(url=URL, status_code=200, text="{}")
        cache.put("k", response, ttl=10)

        clock.now += 9
        assert cache.get("k") == response
        clock.now += 1
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_eviction(self):
        """Test the oldest entries are evicted past the limit."""
        clock = FakeClock()
        cache = MemoryResponseCache(max_entries=3, clock=clock)
        for i in range(4):
            clock.now += 1
            cache.put(f"k{i}", CachedResponse(url=URL, status_code=200), ttl=100)

        assert len(cache) == 3
        assert cache.get("k0") is None
        assert cache.get("k3") is not None

    def test_delete_and_clear(self):
        """Test explicit removal."""
        cache = MemoryResponseCache()
        cache.put("a", CachedResponse(url=URL, status_code=200), ttl=100)
        cache.put("b", CachedResponse(url=URL, status_code=200), ttl=100)
        cache.delete("a")
        cache.delete("missing")
        assert cache.get("a") is None
        cache.clear()
        assert len(cache) == 0

    def test_shared_between_threads(self):
        """Test concurrent put/get with expiry and eviction does not fail."""
        clock = FakeClock()
        cache = MemoryResponseCache(max_entries=50, clock=clock)
        response = CachedResponse(url=URL, status_code=200)
        errors: list[BaseException] = []

        def worker(n: int) -> None:
            try:
                for i in range(500):
                    key = f"k{i % 40}"
                    cache.put(f"{n}-{i}", response, ttl=2)
                    cache.put(key, response, ttl=1)
                    clock.now += 0.5
                    cache.get(key)
                    cache.get(f"{n}-{i - 1}")
            except Exception as err:
                errors.append(err)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert len(cache) <= 50
