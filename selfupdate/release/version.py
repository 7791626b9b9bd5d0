"""Semantic version value type and release tag normalization.

Release tags in the wild are looser than semver: ``v2.3``, ``1.4.0-beta1``,
``2.0RC2``, ``1.0.0+build.5``. ``Version.parse`` accepts those conventions
and produces a canonical semver value:

    >>> str(Version.parse("v1.4.0-beta1"))
    '1.4.0-beta.1'
    >>> str(Version.parse("2.0RC2"))
    '2.0.0-rc.2'

Ordering follows semver precedence: numeric core first, then a version with
a pre-release sorts below the same version without one, identifiers compare
numerically when both are numbers and lexically otherwise, numeric below
alphanumeric, and a shorter identifier list below a longer one sharing its
prefix. Build metadata is validated and discarded.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from functools import total_ordering
from typing import TypeAlias

__all__ = ["Version", "VersionError", "Stability", "PreId"]

PreId: TypeAlias = int | str

_CORE_RE = re.compile(r"^[vV]?(\d+)(?:\.(\d+))?(?:\.(\d+))?(.*)$", re.ASCII)
_KEYWORD_RE = re.compile(
    r"^[-_.]?(alpha|beta|preview|pre|rc|dev|a|b|c)[-_.]?(\d+)?$",
    re.IGNORECASE | re.ASCII,
)
_IDENT_RE = re.compile(r"^[0-9A-Za-z-]+$")

_KEYWORD_ALIASES = {
    "a": "alpha",
    "alpha": "alpha",
    "b": "beta",
    "beta": "beta",
    "c": "rc",
    "rc": "rc",
    "pre": "preview",
    "preview": "preview",
    "dev": "dev",
}


class VersionError(ValueError):
    """Raised when a string is not a recognisable version."""


class Stability(Enum):
    """How far a version is from a final release, most stable first."""

    STABLE = "stable"
    RC = "rc"
    BETA = "beta"
    ALPHA = "alpha"
    DEV = "dev"

    def __str__(self) -> str:
        return self.value


_STABILITY_BY_KEYWORD = {
    "rc": Stability.RC,
    "beta": Stability.BETA,
    "alpha": Stability.ALPHA,
}


def _ident(text: str) -> PreId:
    return int(text) if text.isdigit() else text


def _parse_identifiers(text: str, what: str, raw: str) -> tuple[str, ...]:
    parts = tuple(text.split("."))
    if not all(_IDENT_RE.match(p) for p in parts):
        raise VersionError(f"invalid {what} in version {raw!r}")
    return parts


def _parse_prerelease(rest: str, raw: str) -> tuple[PreId, ...]:
    if not rest:
        return ()

    keyword = _KEYWORD_RE.match(rest)
    if keyword is not None:
        name = _KEYWORD_ALIASES[keyword.group(1).lower()]
        number = keyword.group(2)
        return (name, int(number)) if number is not None else (name,)

    if not rest.startswith("-"):
        raise VersionError(f"unexpected suffix {rest!r} in version {raw!r}")

    parts = _parse_identifiers(rest[1:], "pre-release", raw)
    head = _KEYWORD_RE.match(parts[0])
    if head is not None:
        # "-beta1.2" -> ("beta", 1, 2)
        expanded = _parse_prerelease(parts[0], raw)
        return expanded + tuple(_ident(p) for p in parts[1:])
    return tuple(_ident(p) for p in parts)


def _pre_key(pre: tuple[PreId, ...]) -> tuple[tuple[int, int, str], ...]:
    return tuple((0, p, "") if isinstance(p, int) else (1, 0, p) for p in pre)


@total_ordering
@dataclass(frozen=True, slots=True)
class Version:
    """An immutable, totally ordered semantic version."""

    major: int
    minor: int = 0
    patch: int = 0
    prerelease: tuple[PreId, ...] = ()

    @classmethod
    def parse(cls, text: str) -> Version:
        """Normalize a tag or version string.

        Raises:
            VersionError: if ``text`` is not a recognisable version.
        """
        raw = text
        text = text.strip()
        core, plus, build = text.partition("+")
        if plus:
            _parse_identifiers(build, "build metadata", raw)

        match = _CORE_RE.match(core)
        if match is None:
            raise VersionError(f"not a version: {raw!r}")

        major, minor, patch, rest = match.groups()
        return cls(
            major=int(major),
            minor=int(minor or 0),
            patch=int(patch or 0),
            prerelease=_parse_prerelease(rest, raw),
        )

    @classmethod
    def try_parse(cls, text: str) -> Version | None:
        """Like ``parse`` but returns None instead of raising."""
        try:
            return cls.parse(text)
        except VersionError:
            return None

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    @property
    def stability(self) -> Stability:
        if not self.prerelease:
            return Stability.STABLE
        head = self.prerelease[0]
        if isinstance(head, str):
            return _STABILITY_BY_KEYWORD.get(head, Stability.DEV)
        return Stability.DEV

    @property
    def base(self) -> Version:
        """The same version without its pre-release part."""
        return Version(self.major, self.minor, self.patch)

    def floor(self) -> Version:
        """Lowest version sharing this numeric core (``X.Y.Z-0``).

        Used as an inclusive lower / exclusive upper range bound so that
        pre-releases of the bound version fall on the intended side.
        """
        if self.prerelease:
            return self
        return Version(self.major, self.minor, self.patch, (0,))

    def _key(self) -> tuple[int, int, int, int, tuple[tuple[int, int, str], ...]]:
        # A release (no pre-release part) sorts after all of its pre-releases.
        return (
            self.major,
            self.minor,
            self.patch,
            0 if self.prerelease else 1,
            _pre_key(self.prerelease),
        )

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self._key() < other._key()

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(str(p) for p in self.prerelease)
        return text
