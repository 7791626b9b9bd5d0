from __future__ import annotations

from selfupdate.cli.commands._helpers import (
    COMPATIBLE_OPTION,
    CONSTRAINT_OPTION,
    PREVIEW_OPTION,
    STABLE_OPTION,
    exit_on_error,
    exit_with_code,
    resolution_options,
)
from selfupdate.cli.context import CLIContext, build_context
from selfupdate.core.errors import ErrorCode
from selfupdate.output.console import Style


def check(
    stable: bool = STABLE_OPTION,
    preview: bool = PREVIEW_OPTION,
    compatible: bool = COMPATIBLE_OPTION,
    constraint: str | None = CONSTRAINT_OPTION,
) -> None:
    """Report whether a newer release is available (exit 10 if so)."""
    ctx = build_context()
    run_check(ctx, stable=stable, preview=preview, compatible=compatible, constraint=constraint)


def run_check(
    ctx: CLIContext,
    *,
    stable: bool,
    preview: bool,
    compatible: bool,
    constraint: str | None,
) -> None:
    console = ctx.console
    manager = ctx.manager
    options = resolution_options(
        console,
        stable=stable,
        preview=preview,
        compatible=compatible,
        constraint=constraint,
    )

    update = manager.available_update(options)
    exit_on_error(update, ctx)
    release = update.unwrap()

    console.print(f"current: {manager.current_version}", Style.DIM)
    if release is None:
        console.success("No update available")
        return

    console.warning(f"update available: {manager.current_version} -> {release.version}")
    console.print(f"tag: {release.display_tag}", Style.DIM)
    console.print(f"url: {release.download_url}", Style.DIM)
    exit_with_code(int(ErrorCode.UPDATE_AVAILABLE))
