"""Release selection policy.

``select_release`` walks a catalog newest first and returns the first release
passing every active predicate, checked in this order:

1. it has at least one asset (the first asset is what gets downloaded);
2. ``compatible``: it shares the running major version (``^<major>``);
3. ``version_constraint``: it satisfies the range expression;
4. unless ``preview``: its version has no pre-release part and the publisher
   did not flag it as a prerelease.

Everything here is pure: no I/O, no state kept between calls.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import TypeAlias

import structlog

from selfupdate.core.result import Err, Ok, Result
from selfupdate.release.constraint import Constraint, ConstraintError
from selfupdate.release.errors import UpdateError
from selfupdate.release.model import Catalog, Release, ResolutionOptions, ResolvedRelease
from selfupdate.release.version import Stability, Version

__all__ = [
    "current_major_constraint",
    "select_release",
    "is_up_to_date",
]

logger = structlog.get_logger(__name__)

_MAJOR_RE = re.compile(r"^v?(\d+)", re.ASCII)

Predicate: TypeAlias = Callable[[Release], bool]


def current_major_constraint(current_version: str) -> Constraint | None:
    """``^<major>`` for the running version, or None if no major can be read."""
    match = _MAJOR_RE.match(current_version)
    if match is None:
        return None
    return Constraint.same_major(int(match.group(1)))


def _has_assets(release: Release) -> bool:
    return bool(release.assets)


def _is_stable(release: Release) -> bool:
    return release.stability is Stability.STABLE and not release.prerelease


def _build_predicates(
    options: ResolutionOptions,
    current_version: str,
) -> Result[list[Predicate], UpdateError]:
    predicates: list[Predicate] = [_has_assets]

    if options.compatible:
        same_major = current_major_constraint(current_version)
        if same_major is None:
            # No major to stay on: nothing can be proven compatible.
            logger.warning("compatible_filter_unsatisfiable", current_version=current_version)
            predicates.append(lambda _release: False)
        else:
            predicates.append(lambda release: same_major.satisfied_by(release.version))

    if options.version_constraint and options.version_constraint.strip():
        try:
            constraint = Constraint.parse(options.version_constraint)
        except ConstraintError as e:
            return Err(
                UpdateError(
                    kind="invalid_constraint",
                    message=f"Invalid version constraint: {e}",
                    hint="examples: '^2.1', '>=1.2,<2.0', '~1.4', '2.*'",
                )
            )
        predicates.append(lambda release: constraint.satisfied_by(release.version))

    if not options.preview:
        predicates.append(_is_stable)

    return Ok(predicates)


def select_release(
    catalog: Catalog,
    options: ResolutionOptions,
    current_version: str,
) -> Result[ResolvedRelease | None, UpdateError]:
    """Pick the newest release allowed by ``options``.

    Returns:
        Ok(ResolvedRelease), Ok(None) when nothing qualifies, or
        Err(invalid_constraint) when the range expression does not parse.
    """
    built = _build_predicates(options, current_version)
    if isinstance(built, Err):
        return built
    predicates = built.value

    for release in catalog:
        if all(predicate(release) for predicate in predicates):
            resolved = ResolvedRelease(
                version=release.normalized_version,
                display_tag=release.raw_tag,
                download_url=release.assets[0].url,
            )
            logger.debug("release_selected", version=resolved.version, tag=resolved.display_tag)
            return Ok(resolved)

    logger.debug("no_release_selected", candidates=len(catalog))
    return Ok(None)


def is_up_to_date(candidate: ResolvedRelease | None, current: Version) -> bool:
    """True when there is no candidate or the running version is not older."""
    if candidate is None:
        return True
    return current >= Version.parse(candidate.version)
