"""Error payload for the update flow."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, TypeAlias

__all__ = ["UpdateError", "UpdateErrorKind"]

UpdateErrorKind: TypeAlias = Literal[
    "no_releases_found",
    "remote_unavailable",
    "invalid_constraint",
    "invalid_current_version",
    "not_packaged",
    "permission_denied",
    "download_failed",
    "corrupted_download",
    "replace_failed",
]


@dataclass(frozen=True, slots=True)
class UpdateError:
    """Canonical error for fetch, resolution and replacement.

    ``kind`` is stable and drives exit codes; ``message`` and ``hint`` are
    for humans.
    """

    kind: UpdateErrorKind
    message: str
    hint: str | None = None

    def pretty(self) -> str:
        if self.hint:
            return f"{self.message} (hint: {self.hint})"
        return self.message
