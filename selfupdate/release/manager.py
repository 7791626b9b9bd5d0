"""Entry point tying the release fetch, catalog and policy together."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from selfupdate.core.result import Err, Ok, Result
from selfupdate.release.catalog import build_catalog
from selfupdate.release.errors import UpdateError
from selfupdate.release.github import fetch_releases, user_agent_for
from selfupdate.release.model import Catalog, ResolutionOptions, ResolvedRelease
from selfupdate.release.resolver import is_up_to_date, select_release
from selfupdate.release.version import Version

if TYPE_CHECKING:
    from selfupdate.http.client import HttpClient

__all__ = ["SelfUpdateManager"]

logger = structlog.get_logger(__name__)


class SelfUpdateManager:
    """Answers "is there a newer release of this program, and which one?".

    Every call fetches (through whatever cache wraps ``http``) and builds a
    fresh catalog; nothing is remembered between calls, so calls with
    different options never see each other's results.

    Usage:
        manager = SelfUpdateManager("mytool", "1.4.2", "me/mytool", http)
        match manager.resolve_latest(ResolutionOptions(compatible=True)):
            case Ok(None):
                print("No update available")
            case Ok(release):
                print(f"{release.display_tag}: {release.download_url}")
            case Err(error):
                print(error.pretty())
    """

    def __init__(
        self,
        application_name: str,
        current_version: str,
        repository: str,
        http: HttpClient,
        *,
        token: str | None = None,
    ) -> None:
        self.application_name = application_name
        self.repository = repository
        self.raw_current_version = current_version
        self._http = http
        self._token = token
        self._current = Version.try_parse(current_version)

    @property
    def user_agent(self) -> str:
        return user_agent_for(self.application_name, self.repository)

    @property
    def current_version(self) -> str:
        """Normalized running version (the raw string if it does not parse)."""
        if self._current is None:
            return self.raw_current_version
        return str(self._current)

    def releases(self) -> Result[Catalog, UpdateError]:
        """Fetch and build the release catalog."""
        fetched = fetch_releases(self._http, self.repository, self.user_agent, token=self._token)
        if isinstance(fetched, Err):
            return fetched
        catalog = build_catalog(fetched.value)
        if isinstance(catalog, Err):
            return Err(
                UpdateError(
                    kind="no_releases_found",
                    message=(
                        f"API error - no release found at GitHub repository {self.repository}"
                    ),
                )
            )
        return catalog

    def resolve_latest(
        self, options: ResolutionOptions | None = None
    ) -> Result[ResolvedRelease | None, UpdateError]:
        """Latest release allowed by ``options``, or None when nothing qualifies."""
        options = options or ResolutionOptions()
        catalog = self.releases()
        if isinstance(catalog, Err):
            return catalog
        return select_release(catalog.value, options, self.current_version)

    def available_update(
        self, options: ResolutionOptions | None = None
    ) -> Result[ResolvedRelease | None, UpdateError]:
        """The candidate release if it is newer than the running version, else None."""
        if self._current is None:
            return Err(
                UpdateError(
                    kind="invalid_current_version",
                    message=f"Running version {self.raw_current_version!r} is not a valid version",
                )
            )

        resolved = self.resolve_latest(options)
        if isinstance(resolved, Err):
            return resolved
        candidate = resolved.value
        up_to_date = is_up_to_date(candidate, self._current)
        logger.debug(
            "update_check",
            current=self.current_version,
            latest=candidate.version if candidate else None,
            up_to_date=up_to_date,
        )
        return Ok(None if up_to_date else candidate)

    def is_up_to_date(self, options: ResolutionOptions | None = None) -> Result[bool, UpdateError]:
        return self.available_update(options).map(lambda update: update is None)
