"""HTTP client abstraction.

This module provides:
- HttpClient: Protocol for HTTP operations (injectable for tests)
- RealHttpClient: Real implementation using urllib
- MockHttpClient: Mock implementation for testing
"""

from __future__ import annotations

import json
import ssl
import urllib.error
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import structlog

from selfupdate.core.result import Err, Ok, Result

if TYPE_CHECKING:
    from collections.abc import Callable

__all__ = [
    "HttpClient",
    "HttpError",
    "HttpResponse",
    "MockHttpClient",
    "RealHttpClient",
    "decode_json",
]

logger = structlog.get_logger(__name__)

_CHUNK_SIZE = 8192


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@dataclass(frozen=True, slots=True)
class HttpResponse:
    """A completed response. Header names are lower-cased.

    ``status`` is 200 for normal responses and 304 when a conditional
    request found the resource unchanged (``body`` is then empty).
    """

    status: int
    body: bytes
    headers: Mapping[str, str] = field(default_factory=dict[str, str])

    def header(self, name: str) -> str | None:
        return self.headers.get(name.lower())

    @property
    def not_modified(self) -> bool:
        return self.status == 304


def decode_json(response: HttpResponse, url: str) -> Result[object, HttpError]:
    """Parse a response body as JSON (any top-level type)."""
    try:
        data: object = json.loads(response.body.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}"))
    return Ok(data)


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP operations.

    Lets the release fetch, the response cache and the self-replace step
    run against a mock in unit tests.
    """

    def get(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> Result[HttpResponse, HttpError]:
        """GET ``url`` with extra request headers."""
        ...

    def get_json(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> Result[object, HttpError]:
        """GET ``url`` and decode the body as JSON."""
        ...

    def download(
        self,
        url: str,
        dest: Path,
        progress: Callable[[int, int], None] | None = None,
    ) -> Result[Path, HttpError]:
        """Stream ``url`` into ``dest``, reporting ``progress(downloaded, total)``."""
        ...


class RealHttpClient:
    """HTTP client using urllib and the system certificate store."""

    def __init__(self, timeout: float = 30.0, user_agent: str = "selfupdate") -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self._ssl_context = ssl.create_default_context()

    def _build(self, url: str, headers: Mapping[str, str] | None) -> urllib.request.Request:
        merged = {"User-Agent": self.user_agent}
        if headers:
            merged.update(headers)
        return urllib.request.Request(url, headers=merged)

    def get(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> Result[HttpResponse, HttpError]:
        req = self._build(url, headers)
        try:
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                body = response.read()
                return Ok(
                    HttpResponse(
                        status=response.status,
                        body=body,
                        headers={k.lower(): v for k, v in response.headers.items()},
                    )
                )
        except urllib.error.HTTPError as e:
            if e.code == 304:
                return Ok(
                    HttpResponse(
                        status=304,
                        body=b"",
                        headers={k.lower(): v for k, v in e.headers.items()},
                    )
                )
            return Err(HttpError(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except (ValueError, OSError) as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

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
        req = self._build(url, {"Accept": "application/octet-stream"})
        logger.debug("download_started", url=url, dest=str(dest))
        try:
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                total = int(response.headers.get("Content-Length", 0))
                downloaded = 0
                dest.parent.mkdir(parents=True, exist_ok=True)

                with open(dest, "wb") as f:
                    while True:
                        chunk = response.read(_CHUNK_SIZE)
                        if not chunk:
                            break
                        f.write(chunk)
                        downloaded += len(chunk)
                        if progress:
                            progress(downloaded, total)

                return Ok(dest)

        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Download timed out"))
        except (ValueError, OSError) as e:
            return Err(HttpError(url=url, status=0, message=str(e)))


class MockHttpClient:
    """Mock HTTP client for testing.

    Usage:
        client = MockHttpClient()
        client.set_json("https://api.github.com/repos/o/r/releases", [{"tag_name": "v1.0.0"}])
        result = client.get_json("https://api.github.com/repos/o/r/releases")
        assert result == Ok([{"tag_name": "v1.0.0"}])
    """

    def __init__(self) -> None:
        self._responses: dict[str, HttpResponse | HttpError] = {}
        self._downloads: dict[str, bytes | HttpError] = {}
        self.calls: list[tuple[str, str]] = []
        self.request_headers: list[dict[str, str]] = []

    def set_response(self, url: str, response: HttpResponse | HttpError) -> None:
        self._responses[url] = response

    def set_json(
        self,
        url: str,
        data: object,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        """Set a 200 JSON response for URL."""
        body = json.dumps(data).encode("utf-8")
        lowered = {k.lower(): v for k, v in (headers or {}).items()}
        self._responses[url] = HttpResponse(status=200, body=body, headers=lowered)

    def set_error(self, url: str, status: int, message: str) -> None:
        self._responses[url] = HttpError(url=url, status=status, message=message)

    def set_download(self, url: str, content: bytes | HttpError) -> None:
        self._downloads[url] = content

    def get(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> Result[HttpResponse, HttpError]:
        self.calls.append(("get", url))
        self.request_headers.append(dict(headers or {}))

        response = self._responses.get(url)
        if response is None:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))
        if isinstance(response, HttpError):
            return Err(response)
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
        """Write the predefined content to ``dest``."""
        self.calls.append(("download", url))

        content = self._downloads.get(url)
        if content is None:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))
        if isinstance(content, HttpError):
            return Err(content)

        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_bytes(content)
        if progress:
            progress(len(content), len(content))
        return Ok(dest)
