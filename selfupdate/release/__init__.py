"""Release discovery and selection.

- version.py: semantic version value type and tag normalization
- constraint.py: range expressions (caret, tilde, wildcards, comparators)
- github.py: GitHub Releases API fetch
- catalog.py: ordered, de-duplicated catalog construction
- resolver.py: selection policy and up-to-date decision
- manager.py: facade used by the CLI and host applications
"""

from selfupdate.release.catalog import build_catalog
from selfupdate.release.constraint import Constraint, ConstraintError
from selfupdate.release.errors import UpdateError
from selfupdate.release.manager import SelfUpdateManager
from selfupdate.release.model import (
    Asset,
    Catalog,
    RawRelease,
    Release,
    ResolutionOptions,
    ResolvedRelease,
)
from selfupdate.release.resolver import is_up_to_date, select_release
from selfupdate.release.version import Stability, Version, VersionError

__all__ = [
    "Asset",
    "Catalog",
    "Constraint",
    "ConstraintError",
    "RawRelease",
    "Release",
    "ResolutionOptions",
    "ResolvedRelease",
    "SelfUpdateManager",
    "Stability",
    "UpdateError",
    "Version",
    "VersionError",
    "build_catalog",
    "is_up_to_date",
    "select_release",
]
