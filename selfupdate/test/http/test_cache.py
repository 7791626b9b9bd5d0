"""Tests for http/cache.py - on-disk response cache."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from selfupdate.core.result import Err, Ok
from selfupdate.http.cache import CachingHttpClient, parse_max_age
from selfupdate.http.client import HttpResponse, MockHttpClient

URL = "https://api.github.com/repos/acme/widget/releases?per_page=100"


class FakeClock:
    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def inner() -> MockHttpClient:
    return MockHttpClient()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cached(inner: MockHttpClient, clock: FakeClock, tmp_path: Path) -> CachingHttpClient:
    return CachingHttpClient(inner, tmp_path / "http", clock=clock)


# =============================================================================
# Cache-Control parsing
# =============================================================================


@pytest.mark.parametrize(
    ("header", "expected"),
    [
        (None, 0),
        ("", 0),
        ("max-age=60", 60),
        ("private, max-age=60, s-maxage=60", 60),
        ('max-age="30"', 30),
        ("max-age=abc", 0),
        ("max-age=-5", 0),
        ("no-cache", 0),
        ("no-store", None),
        ("private, no-store, max-age=60", None),
    ],
)
def test_parse_max_age(header: str | None, expected: int | None) -> None:
    assert parse_max_age(header) == expected


# =============================================================================
# CachingHttpClient
# =============================================================================


class TestFreshness:
    """Fresh entries are served without touching the network."""

    def test_fresh_entry_served_from_disk(
        self, cached: CachingHttpClient, inner: MockHttpClient, clock: FakeClock
    ) -> None:
        inner.set_json(URL, [{"tag_name": "v1"}], headers={"Cache-Control": "max-age=60"})

        assert cached.get_json(URL) == Ok([{"tag_name": "v1"}])
        clock.now += 30
        assert cached.get_json(URL) == Ok([{"tag_name": "v1"}])

        assert inner.calls == [("get", URL)]
        assert cached.cache_path(URL).exists()

    def test_cache_survives_new_client(
        self, inner: MockHttpClient, clock: FakeClock, tmp_path: Path
    ) -> None:
        inner.set_json(URL, [1], headers={"Cache-Control": "max-age=60"})
        CachingHttpClient(inner, tmp_path, clock=clock).get(URL)

        second = CachingHttpClient(inner, tmp_path, clock=clock)
        assert second.get_json(URL) == Ok([1])
        assert len(inner.calls) == 1

    def test_no_store_is_never_written(
        self, cached: CachingHttpClient, inner: MockHttpClient
    ) -> None:
        inner.set_json(URL, [1], headers={"Cache-Control": "no-store", "ETag": '"x"'})

        cached.get(URL)
        cached.get(URL)

        assert not cached.cache_path(URL).exists()
        assert len(inner.calls) == 2

    def test_uncacheable_response_not_stored(
        self, cached: CachingHttpClient, inner: MockHttpClient
    ) -> None:
        inner.set_json(URL, [1])
        cached.get(URL)
        assert not cached.cache_path(URL).exists()

    def test_errors_are_not_cached(self, cached: CachingHttpClient, inner: MockHttpClient) -> None:
        inner.set_error(URL, 500, "boom")

        result = cached.get(URL)

        assert isinstance(result, Err)
        assert not cached.cache_path(URL).exists()


class TestRevalidation:
    """Stale entries are revalidated with conditional requests."""

    def test_stale_entry_sends_validators(
        self, cached: CachingHttpClient, inner: MockHttpClient, clock: FakeClock
    ) -> None:
        inner.set_json(
            URL,
            [1],
            headers={
                "Cache-Control": "max-age=60",
                "ETag": '"v1"',
                "Last-Modified": "Wed, 01 Jan 2025 00:00:00 GMT",
            },
        )
        cached.get(URL, {"User-Agent": "ua"})
        clock.now += 120
        cached.get(URL, {"User-Agent": "ua"})

        assert len(inner.calls) == 2
        assert inner.request_headers[1] == {
            "User-Agent": "ua",
            "If-None-Match": '"v1"',
            "If-Modified-Since": "Wed, 01 Jan 2025 00:00:00 GMT",
        }

    def test_not_modified_serves_stored_body(
        self, cached: CachingHttpClient, inner: MockHttpClient, clock: FakeClock
    ) -> None:
        inner.set_json(URL, [{"tag_name": "v1"}], headers={"ETag": '"v1"'})
        cached.get(URL)

        inner.set_response(
            URL,
            HttpResponse(status=304, body=b"", headers={"cache-control": "max-age=60"}),
        )
        clock.now += 5
        assert cached.get_json(URL) == Ok([{"tag_name": "v1"}])

        # Refreshed: fresh for another minute without a request.
        clock.now += 30
        assert cached.get_json(URL) == Ok([{"tag_name": "v1"}])
        assert len(inner.calls) == 2

    def test_changed_resource_replaces_entry(
        self, cached: CachingHttpClient, inner: MockHttpClient, clock: FakeClock
    ) -> None:
        inner.set_json(URL, [1], headers={"ETag": '"v1"'})
        cached.get(URL)
        inner.set_json(URL, [2], headers={"ETag": '"v2"'})
        clock.now += 1

        assert cached.get_json(URL) == Ok([2])
        stored = json.loads(cached.cache_path(URL).read_text(encoding="utf-8"))
        assert stored["headers"]["etag"] == '"v2"'

    def test_unexpected_not_modified_is_an_error(
        self, cached: CachingHttpClient, inner: MockHttpClient
    ) -> None:
        inner.set_response(URL, HttpResponse(status=304, body=b""))
        result = cached.get(URL)
        assert isinstance(result, Err)
        assert result.error.status == 304


class TestStorage:
    """Cache file handling."""

    def test_corrupt_entry_is_ignored(
        self, cached: CachingHttpClient, inner: MockHttpClient
    ) -> None:
        path = cached.cache_path(URL)
        path.parent.mkdir(parents=True)
        path.write_text("{not json", encoding="utf-8")
        inner.set_json(URL, [1], headers={"Cache-Control": "max-age=60"})

        assert cached.get_json(URL) == Ok([1])
        assert len(inner.calls) == 1

    def test_entry_for_other_url_is_ignored(
        self, cached: CachingHttpClient, inner: MockHttpClient
    ) -> None:
        path = cached.cache_path(URL)
        path.parent.mkdir(parents=True)
        path.write_text(
            '{"url": "https://other", "stored_at": 1e12, "max_age": 60, "body": "WzFd", "headers": {}}',
            encoding="utf-8",
        )
        inner.set_json(URL, [2])

        assert cached.get_json(URL) == Ok([2])

    def test_cache_key_is_sha256_of_url(self, cached: CachingHttpClient, tmp_path: Path) -> None:
        path = cached.cache_path(URL)
        assert path.parent == tmp_path / "http"
        assert len(path.stem) == 64

    def test_authenticated_requests_use_separate_entry(
        self, cached: CachingHttpClient, inner: MockHttpClient
    ) -> None:
        inner.set_json(URL, [1], headers={"Cache-Control": "max-age=60"})
        cached.get_json(URL, {"Authorization": "Bearer s3cret"})

        assert cached.cache_path(URL, authenticated=True).exists()
        assert not cached.cache_path(URL).exists()

        inner.set_json(URL, [2], headers={"Cache-Control": "max-age=60"})
        assert cached.get_json(URL) == Ok([2])
        assert cached.get_json(URL, {"authorization": "Bearer s3cret"}) == Ok([1])
        assert len(inner.calls) == 2

    def test_downloads_pass_through(
        self, cached: CachingHttpClient, inner: MockHttpClient, tmp_path: Path
    ) -> None:
        inner.set_download("https://example.com/app.pyz", b"data")

        result = cached.download("https://example.com/app.pyz", tmp_path / "app.pyz")

        assert result == Ok(tmp_path / "app.pyz")
        assert not (tmp_path / "http").exists()
