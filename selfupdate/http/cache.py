"""Transparent on-disk cache for HTTP GET responses.

``CachingHttpClient`` wraps any ``HttpClient``. Responses are stored as one
JSON file per URL (named after the URL's SHA-256) and reused while they are
fresh according to ``Cache-Control: max-age``. Stale entries are revalidated
with ``If-None-Match`` / ``If-Modified-Since``; a ``304`` refreshes the entry
and serves the stored body. ``no-store`` responses are never written.

GitHub answers the releases listing with ``max-age=60`` and an ``ETag``, and
conditional requests answered with 304 do not count against the API rate
limit, so repeated ``check`` runs stay cheap.

Downloads pass straight through to the wrapped client.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
import time
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from selfupdate.core.result import Err, Ok, Result
from selfupdate.core.structured import as_str_dict, get_float, get_int, get_str, get_table
from selfupdate.http.client import HttpError, HttpResponse, decode_json
from selfupdate.platform.files import atomic_write_text

if TYPE_CHECKING:
    from collections.abc import Callable

    from selfupdate.http.client import HttpClient

__all__ = ["CachingHttpClient", "CacheEntry", "parse_max_age"]

logger = structlog.get_logger(__name__)


def parse_max_age(cache_control: str | None) -> int | None:
    """Freshness lifetime in seconds, or None when the response must not be stored.

    Missing header or ``no-cache`` yields 0: storable, but revalidated on every use.
    """
    if not cache_control:
        return 0
    max_age = 0
    for directive in cache_control.split(","):
        name, _, value = directive.strip().lower().partition("=")
        if name == "no-store":
            return None
        if name == "no-cache":
            return 0
        if name == "max-age":
            try:
                max_age = max(0, int(value.strip().strip('"')))
            except ValueError:
                max_age = 0
    return max_age


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """One stored response."""

    url: str
    stored_at: float
    max_age: int
    body: str
    headers: dict[str, str]

    def is_fresh(self, now: float) -> bool:
        return now - self.stored_at < self.max_age

    @property
    def etag(self) -> str | None:
        return self.headers.get("etag")

    @property
    def last_modified(self) -> str | None:
        return self.headers.get("last-modified")

    def response(self) -> HttpResponse:
        return HttpResponse(status=200, body=base64.b64decode(self.body), headers=self.headers)

    @classmethod
    def from_response(cls, url: str, response: HttpResponse, now: float, max_age: int) -> CacheEntry:
        return cls(
            url=url,
            stored_at=now,
            max_age=max_age,
            body=base64.b64encode(response.body).decode("ascii"),
            headers=dict(response.headers),
        )


class CachingHttpClient:
    """HttpClient decorator adding a private, per-user response cache."""

    def __init__(
        self,
        inner: HttpClient,
        cache_dir: Path,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._inner = inner
        self._cache_dir = cache_dir
        self._clock = clock

    def cache_path(self, url: str, *, authenticated: bool = False) -> Path:
        """Entry file for ``url``; authenticated requests get their own entry."""
        key = f"auth:{url}" if authenticated else url
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self._cache_dir / f"{digest}.json"

    def _load(self, path: Path, url: str) -> CacheEntry | None:
        if not path.exists():
            return None
        try:
            data = as_str_dict(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, json.JSONDecodeError, UnicodeDecodeError):
            logger.debug("cache_entry_unreadable", url=url, path=str(path))
            return None
        if data is None:
            return None

        stored_at = get_float(data, "stored_at")
        max_age = get_int(data, "max_age")
        body = data.get("body")
        headers = get_table(data, "headers") or {}
        if get_str(data, "url") != url or stored_at is None or max_age is None:
            return None
        if not isinstance(body, str):
            return None
        try:
            base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError):
            return None

        return CacheEntry(
            url=url,
            stored_at=stored_at,
            max_age=max_age,
            body=body,
            headers={k: v for k, v in headers.items() if isinstance(v, str)},
        )

    def _store(self, path: Path, entry: CacheEntry) -> None:
        try:
            atomic_write_text(path, json.dumps(asdict(entry)))
        except OSError as e:
            logger.warning("cache_write_failed", url=entry.url, error=str(e))

    def get(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> Result[HttpResponse, HttpError]:
        now = self._clock()
        authenticated = any(name.lower() == "authorization" for name in headers or {})
        path = self.cache_path(url, authenticated=authenticated)
        entry = self._load(path, url)
        if entry is not None and entry.is_fresh(now):
            logger.debug("cache_hit", url=url, age=round(now - entry.stored_at, 1))
            return Ok(entry.response())

        request_headers = dict(headers or {})
        if entry is not None:
            if entry.etag:
                request_headers["If-None-Match"] = entry.etag
            if entry.last_modified:
                request_headers["If-Modified-Since"] = entry.last_modified

        result = self._inner.get(url, request_headers)
        if isinstance(result, Err):
            return result
        response = result.value

        if response.not_modified:
            if entry is None:
                return Err(HttpError(url=url, status=304, message="Not modified, but nothing cached"))
            max_age = parse_max_age(response.header("cache-control"))
            refreshed = CacheEntry(
                url=url,
                stored_at=now,
                max_age=entry.max_age if max_age is None else max_age,
                body=entry.body,
                headers={**entry.headers, **response.headers},
            )
            self._store(path, refreshed)
            logger.debug("cache_revalidated", url=url)
            return Ok(refreshed.response())

        max_age = parse_max_age(response.header("cache-control"))
        if response.status == 200 and max_age is not None:
            if max_age > 0 or response.header("etag") or response.header("last-modified"):
                self._store(path, CacheEntry.from_response(url, response, now, max_age))
        logger.debug("cache_miss", url=url, max_age=max_age)
        return Ok(response)

    def get_json(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> Result[object, HttpError]:
        result = self.get(url, headers)
        if isinstance(result, Err):
            return result
        return decode_json(result.value, url)

    def download(
        self,
        url: str,
        dest: Path,
        progress: Callable[[int, int], None] | None = None,
    ) -> Result[Path, HttpError]:
        return self._inner.download(url, dest, progress)
