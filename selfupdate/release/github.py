"""GitHub Releases API access.

Fetches the release listing of a repository and decodes it into
``RawRelease`` records. Only the fields the resolver needs are kept: the tag,
the publisher's prerelease flag, and each asset's download URL, name and size.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from selfupdate.core.result import Err, Ok, Result
from selfupdate.core.structured import as_obj_list, as_str_dict, get_int, get_list, get_str
from selfupdate.release.errors import UpdateError
from selfupdate.release.model import Asset, RawRelease

if TYPE_CHECKING:
    from selfupdate.http.client import HttpClient, HttpError

__all__ = ["fetch_releases", "releases_url", "user_agent_for"]

logger = structlog.get_logger(__name__)

GITHUB_API_URL = "https://api.github.com"
PER_PAGE = 100


def releases_url(repository: str) -> str:
    return f"{GITHUB_API_URL}/repos/{repository}/releases?per_page={PER_PAGE}"


def user_agent_for(application_name: str, repository: str) -> str:
    """User-Agent sent to GitHub, which rejects requests without one."""
    return f"{application_name} ({repository}) Self-Update (Python)"


def _decode_asset(obj: object) -> Asset | None:
    data = as_str_dict(obj)
    if data is None:
        return None
    url = get_str(data, "browser_download_url")
    if url is None:
        return None
    return Asset(url=url, name=get_str(data, "name") or "", size=get_int(data, "size"))


def _decode_release(obj: object) -> RawRelease | None:
    data = as_str_dict(obj)
    if data is None:
        return None
    tag = data.get("tag_name")
    if not isinstance(tag, str):
        return None

    assets: list[Asset] = []
    for item in get_list(data, "assets") or []:
        asset = _decode_asset(item)
        if asset is not None:
            assets.append(asset)

    return RawRelease(
        tag=tag,
        assets=tuple(assets),
        prerelease=data.get("prerelease") is True,
    )


def _remote_unavailable(repository: str, error: HttpError) -> UpdateError:
    hint = None
    if error.status in (403, 429):
        hint = "GitHub API rate limit reached; set GITHUB_TOKEN or retry later"
    elif error.status == 404:
        hint = f"check that {repository} exists and is public"
    return UpdateError(
        kind="remote_unavailable",
        message=f"Could not fetch releases of {repository}: {error}",
        hint=hint,
    )


def fetch_releases(
    http: HttpClient,
    repository: str,
    user_agent: str,
    *,
    token: str | None = None,
) -> Result[list[RawRelease], UpdateError]:
    """Fetch the first page (up to 100, newest first) of ``repository``'s releases.

    Older releases beyond that page are not requested.

    Returns:
        Ok with the decoded records (in API order), or Err with
        ``remote_unavailable`` (transport/HTTP/shape failure) or
        ``no_releases_found`` (the listing is empty).
    """
    url = releases_url(repository)
    headers = {
        "User-Agent": user_agent,
        "Accept": "application/vnd.github+json",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"

    result = http.get_json(url, headers).map_err(lambda e: _remote_unavailable(repository, e))
    if isinstance(result, Err):
        logger.warning("releases_fetch_failed", repository=repository, error=result.error.message)
        return result

    items = as_obj_list(result.value)
    if items is None:
        return Err(
            UpdateError(
                kind="remote_unavailable",
                message=f"Unexpected response from {url}: expected a JSON array",
            )
        )
    if not items:
        return Err(
            UpdateError(
                kind="no_releases_found",
                message=f"API error - no release found at GitHub repository {repository}",
            )
        )

    releases = [r for r in (_decode_release(item) for item in items) if r is not None]
    logger.debug("releases_fetched", repository=repository, count=len(releases))
    return Ok(releases)
