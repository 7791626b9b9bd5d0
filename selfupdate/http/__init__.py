"""HTTP access for the release listing and downloads."""

from selfupdate.http.cache import CachingHttpClient
from selfupdate.http.client import (
    HttpClient,
    HttpError,
    HttpResponse,
    MockHttpClient,
    RealHttpClient,
)

__all__ = [
    "CachingHttpClient",
    "HttpClient",
    "HttpError",
    "HttpResponse",
    "MockHttpClient",
    "RealHttpClient",
]
