"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn, TypeVar

import typer

from selfupdate.core.errors import ErrorCode
from selfupdate.core.result import Err, Result
from selfupdate.output.console import Style
from selfupdate.release.errors import UpdateError, UpdateErrorKind
from selfupdate.release.model import ResolutionOptions

if TYPE_CHECKING:
    from selfupdate.cli.context import CLIContext
    from selfupdate.output.console import ConsoleProtocol


# Policy options shared by `self-update`, `check` and the embedded commands.
STABLE_OPTION = typer.Option(False, "--stable", help="Force an update to a stable version.")
PREVIEW_OPTION = typer.Option(
    False, "--preview", help="Allow pre-release versions (alpha, beta, rc)."
)
COMPATIBLE_OPTION = typer.Option(
    False, "--compatible", help="Stay on the current major version."
)
CONSTRAINT_OPTION = typer.Option(
    None,
    "--constraint",
    metavar="RANGE",
    help="Only consider versions matching RANGE (e.g. '^2.1', '>=1.2,<2.0').",
)


_EXIT_CODES: dict[UpdateErrorKind, ErrorCode] = {
    "no_releases_found": ErrorCode.NETWORK_ERROR,
    "remote_unavailable": ErrorCode.NETWORK_ERROR,
    "download_failed": ErrorCode.NETWORK_ERROR,
    "invalid_constraint": ErrorCode.USER_ERROR,
    "invalid_current_version": ErrorCode.ENV_ERROR,
    "not_packaged": ErrorCode.ENV_ERROR,
    "permission_denied": ErrorCode.IO_ERROR,
    "replace_failed": ErrorCode.IO_ERROR,
    "corrupted_download": ErrorCode.INTEGRITY_ERROR,
}


def exit_code_for(error: UpdateError) -> ErrorCode:
    return _EXIT_CODES.get(error.kind, ErrorCode.USER_ERROR)


T = TypeVar("T")
E = TypeVar("E")


def exit_on_error(
    result: Result[T, E],
    ctx: CLIContext,
    error_code: ErrorCode | None = None,
) -> None:
    """Exit with error if result is Err, otherwise return.

    Without an explicit ``error_code``, ``UpdateError`` kinds pick their own
    exit code and anything else exits with USER_ERROR.

    Expects error objects to have 'message' and optional 'hint' attributes.
    """
    if isinstance(result, Err):
        error = result.error
        message: str = getattr(error, "message", str(error))
        hint: str | None = getattr(error, "hint", None)
        ctx.console.error(message)
        if hint:
            ctx.console.print(f"hint: {hint}", Style.DIM)
        if error_code is None:
            error_code = (
                exit_code_for(error) if isinstance(error, UpdateError) else ErrorCode.USER_ERROR
            )
        raise typer.Exit(code=int(error_code))


def resolution_options(
    console: ConsoleProtocol,
    *,
    stable: bool,
    preview: bool,
    compatible: bool,
    constraint: str | None,
) -> ResolutionOptions:
    """Turn policy flags into options, rejecting contradictory ones."""
    if stable and preview:
        console.error("--stable and --preview cannot be used together")
        exit_with_code(int(ErrorCode.USER_ERROR))
    return ResolutionOptions(
        preview=preview,
        compatible=compatible,
        version_constraint=constraint,
    )


def exit_with_code(code: int) -> NoReturn:
    """Exit with given code. Explicit helper for clarity."""
    raise typer.Exit(code=code)
