from __future__ import annotations

from selfupdate.cli.commands._helpers import exit_on_error
from selfupdate.cli.context import CLIContext, build_context
from selfupdate.output.console import Style
from selfupdate.release.model import Release


def releases() -> None:
    """List published releases, newest first."""
    ctx = build_context()
    run_releases(ctx)


def run_releases(ctx: CLIContext) -> None:
    console = ctx.console
    catalog = ctx.manager.releases()
    exit_on_error(catalog, ctx)

    entries = list(catalog.unwrap())
    if not entries:
        console.print(f"no versioned releases in {ctx.manager.repository}", Style.DIM)
        return

    console.header(ctx.manager.repository)
    console.table(
        ["version", "tag", "stability", "assets"],
        [_row(release) for release in entries],
    )


def _row(release: Release) -> list[str]:
    stability = str(release.stability)
    if release.prerelease:
        stability += " (prerelease)"
    return [release.normalized_version, release.raw_tag, stability, str(len(release.assets))]
