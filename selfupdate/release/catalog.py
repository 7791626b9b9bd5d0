"""Release catalog construction.

Turns raw release records into a ``Catalog``: tags are normalized, those
that do not look like versions ("nightly", "latest") are skipped, duplicates
by normalized version collapse to the last record seen, and the result is
ordered newest first.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from selfupdate.core.result import Err, Ok, Result
from selfupdate.release.errors import UpdateError
from selfupdate.release.model import Catalog, RawRelease, Release
from selfupdate.release.version import Version, VersionError

__all__ = ["build_catalog"]

logger = structlog.get_logger(__name__)


def build_catalog(raw_releases: Sequence[RawRelease] | None) -> Result[Catalog, UpdateError]:
    """Build the descending, de-duplicated catalog.

    An empty or missing input is an error (``no_releases_found``). Input whose
    tags all fail to normalize is not: the catalog is simply empty.
    """
    if not raw_releases:
        return Err(
            UpdateError(
                kind="no_releases_found",
                message="No releases found",
            )
        )

    by_version: dict[Version, Release] = {}
    for raw in raw_releases:
        try:
            version = Version.parse(raw.tag)
        except VersionError:
            logger.debug("tag_skipped", tag=raw.tag)
            continue

        if version in by_version:
            logger.debug(
                "tag_collision",
                version=str(version),
                replaced=by_version[version].raw_tag,
                tag=raw.tag,
            )
        by_version[version] = Release(
            raw_tag=raw.tag,
            version=version,
            prerelease=raw.prerelease,
            assets=raw.assets,
        )

    ordered = tuple(by_version[v] for v in sorted(by_version, reverse=True))
    logger.debug("catalog_built", received=len(raw_releases), kept=len(ordered))
    return Ok(Catalog(ordered))
