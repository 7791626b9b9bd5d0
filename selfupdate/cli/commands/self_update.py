from __future__ import annotations

import typer

from selfupdate.cli.commands._helpers import (
    COMPATIBLE_OPTION,
    CONSTRAINT_OPTION,
    PREVIEW_OPTION,
    STABLE_OPTION,
    exit_on_error,
    resolution_options,
)
from selfupdate.cli.context import CLIContext, build_context
from selfupdate.output.console import Style


def self_update(
    stable: bool = STABLE_OPTION,
    preview: bool = PREVIEW_OPTION,
    compatible: bool = COMPATIBLE_OPTION,
    constraint: str | None = CONSTRAINT_OPTION,
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Resolve and report the update without installing it."
    ),
) -> None:
    """Update this program to the latest release."""
    ctx = build_context()
    run_self_update(
        ctx,
        stable=stable,
        preview=preview,
        compatible=compatible,
        constraint=constraint,
        dry_run=dry_run,
    )


def run_self_update(
    ctx: CLIContext,
    *,
    stable: bool,
    preview: bool,
    compatible: bool,
    constraint: str | None,
    dry_run: bool,
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

    # Refuse early when the program cannot be replaced, before any network traffic.
    if not dry_run:
        exit_on_error(ctx.replacer.check_target(ctx.program), ctx)

    update = manager.available_update(options)
    exit_on_error(update, ctx)
    release = update.unwrap()
    if release is None:
        console.print("No update available")
        return

    if dry_run:
        console.info(
            f"would update {manager.application_name} ({manager.repository}) to {release.display_tag}"
        )
        console.print(f"{manager.current_version} -> {release.version}", Style.DIM)
        console.print(f"url: {release.download_url}", Style.DIM)
        return

    console.print(
        f"Downloading {manager.application_name} ({manager.repository}) {release.display_tag}"
    )

    replaced = ctx.replacer.replace(
        ctx.program,
        release.download_url,
        progress=console.progress(release.display_tag),
    )
    exit_on_error(replaced, ctx)
    console.print("Download finished")
    console.success(f"Successfully updated {replaced.unwrap().path}")
