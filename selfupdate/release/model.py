from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from selfupdate.release.version import Stability, Version

__all__ = [
    "Asset",
    "RawRelease",
    "Release",
    "Catalog",
    "ResolutionOptions",
    "ResolvedRelease",
]


@dataclass(frozen=True, slots=True)
class Asset:
    """A downloadable file attached to a release."""

    url: str
    name: str = ""
    size: int | None = None


@dataclass(frozen=True, slots=True)
class RawRelease:
    """A release record as published, before tag normalization."""

    tag: str
    assets: tuple[Asset, ...] = ()
    prerelease: bool = False


@dataclass(frozen=True, slots=True)
class Release:
    """A release whose tag normalized to a semantic version.

    ``prerelease`` is the publisher's own flag and is independent of
    ``version.stability``.
    """

    raw_tag: str
    version: Version
    prerelease: bool = False
    assets: tuple[Asset, ...] = ()

    @property
    def normalized_version(self) -> str:
        return str(self.version)

    @property
    def stability(self) -> Stability:
        return self.version.stability

    @property
    def download_url(self) -> str | None:
        return self.assets[0].url if self.assets else None


@dataclass(frozen=True, slots=True)
class Catalog:
    """Releases strictly descending by version, one per normalized version."""

    releases: tuple[Release, ...] = ()

    def __iter__(self) -> Iterator[Release]:
        return iter(self.releases)

    def __len__(self) -> int:
        return len(self.releases)

    def __bool__(self) -> bool:
        return bool(self.releases)

    @property
    def versions(self) -> list[str]:
        return [r.normalized_version for r in self.releases]


@dataclass(frozen=True, slots=True)
class ResolutionOptions:
    """Release selection policy.

    - preview: also consider pre-releases (by tag or by publisher flag)
    - compatible: stay on the running major version
    - version_constraint: range expression the release must satisfy
    """

    preview: bool = False
    compatible: bool = False
    version_constraint: str | None = None


@dataclass(frozen=True, slots=True)
class ResolvedRelease:
    """The release chosen for installation."""

    version: str
    display_tag: str
    download_url: str
