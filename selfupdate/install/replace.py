"""Atomic replacement of the running zipapp.

The update is downloaded next to the program (``<stem>-temp<suffix>``) so the
final ``os.replace`` stays on one filesystem and is atomic: other processes
see either the old file or the new one, never a partial write. Nothing is
touched until the download has been checked to be a runnable zipapp.
"""

from __future__ import annotations

import os
import stat
import sys
import zipfile
import zlib
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import structlog

from selfupdate.core.result import Err, Ok, Result
from selfupdate.platform.files import is_writable
from selfupdate.release.errors import UpdateError

if TYPE_CHECKING:
    from collections.abc import Callable

    from selfupdate.http.client import HttpClient

__all__ = [
    "ReplaceResult",
    "SelfReplacer",
    "running_program",
    "temp_path_for",
    "verify_zipapp",
]

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ReplaceResult:
    """Outcome of a successful replacement.

    Attributes:
        path: The replaced program
        size: Size in bytes of the new program
    """

    path: Path
    size: int


def running_program() -> Path:
    """Path of the program being executed (``sys.argv[0]``, symlinks resolved)."""
    argv0 = Path(sys.argv[0])
    try:
        return argv0.resolve(strict=True)
    except OSError:
        return argv0


def temp_path_for(target: Path) -> Path:
    return target.with_name(f"{target.stem}-temp{target.suffix}")


def verify_zipapp(path: Path) -> str | None:
    """Return why ``path`` is not a runnable zipapp, or None if it is."""
    try:
        with zipfile.ZipFile(path) as archive:
            bad_member = archive.testzip()
            if bad_member is not None:
                return f"corrupt member {bad_member!r}"
            if "__main__.py" not in archive.namelist():
                return "archive has no __main__.py"
    except zipfile.BadZipFile as e:
        return f"not a zip archive: {e}"
    except (OSError, EOFError, NotImplementedError, zlib.error) as e:
        return str(e)
    return None


class SelfReplacer:
    """Downloads a release asset and swaps it in place of ``target``.

    Usage:
        replacer = SelfReplacer(http)
        result = replacer.replace(running_program(), release.download_url)
    """

    def __init__(self, http: HttpClient) -> None:
        self._http = http

    def check_target(self, target: Path) -> Result[Path, UpdateError]:
        """Fail early, before any network traffic, if ``target`` cannot be replaced."""
        name = target.name
        if not target.is_file() or not zipfile.is_zipfile(target):
            return Err(
                UpdateError(
                    kind="not_packaged",
                    message=f"{name} is not a zipapp; self-update only works for packaged builds",
                    hint="install updates through your package manager instead",
                )
            )

        directory = temp_path_for(target).parent
        if not is_writable(directory):
            return Err(
                UpdateError(
                    kind="permission_denied",
                    message=(
                        f"{name} update failed: the {str(directory)!r} directory used to "
                        "download the temp file could not be written"
                    ),
                )
            )

        if not is_writable(target):
            return Err(
                UpdateError(
                    kind="permission_denied",
                    message=f"{name} update failed: the {str(target)!r} file could not be written",
                    hint="run again with elevated privileges (e.g. sudo)",
                )
            )
        return Ok(target)

    def replace(
        self,
        target: Path,
        download_url: str,
        *,
        progress: Callable[[int, int], None] | None = None,
    ) -> Result[ReplaceResult, UpdateError]:
        checked = self.check_target(target)
        if isinstance(checked, Err):
            return checked

        temp = temp_path_for(target)
        logger.info("update_download", url=download_url, temp=str(temp))
        downloaded = self._http.download(download_url, temp, progress).map_err(
            lambda e: UpdateError(
                kind="download_failed",
                message=f"Download failed: {e}",
                hint="please re-run the self-update command to try again",
            )
        )
        if isinstance(downloaded, Err):
            temp.unlink(missing_ok=True)
            return downloaded

        try:
            os.chmod(temp, stat.S_IMODE(target.stat().st_mode))
        except OSError as e:
            logger.debug("chmod_failed", path=str(temp), error=str(e))

        problem = verify_zipapp(temp)
        if problem is not None:
            temp.unlink(missing_ok=True)
            logger.warning("update_corrupted", url=download_url, problem=problem)
            return Err(
                UpdateError(
                    kind="corrupted_download",
                    message=f"The download is corrupted ({problem}).",
                    hint="please re-run the self-update command to try again",
                )
            )

        size = temp.stat().st_size
        try:
            os.replace(temp, target)
        except OSError as e:
            temp.unlink(missing_ok=True)
            return Err(
                UpdateError(
                    kind="replace_failed",
                    message=f"Could not replace {target}: {e}",
                )
            )

        logger.info("update_installed", path=str(target), size=size)
        return Ok(ReplaceResult(path=target, size=size))
