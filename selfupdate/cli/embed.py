"""Mount the update commands on another program's typer application.

A zipapp that wants to update itself registers the commands once:

    app = typer.Typer()
    register_self_update(
        app,
        application_name="mytool",
        current_version=mytool.__version__,
        repository="me/mytool",
    )

which adds ``self-update`` (with hidden ``update`` / ``self:update`` aliases)
and ``check-update`` to ``app``. The host's identity is used for the
User-Agent, the up-to-date comparison and the progress messages. Its
repository wins over the shared config file but can still be overridden with
``SELFUPDATE_REPOSITORY``. Log events go to stdlib ``logging``, so the host
decides whether and where they appear.
"""

from __future__ import annotations

import typer

from selfupdate.cli import context
from selfupdate.cli.commands._helpers import (
    COMPATIBLE_OPTION,
    CONSTRAINT_OPTION,
    PREVIEW_OPTION,
    STABLE_OPTION,
)
from selfupdate.cli.commands.check import run_check
from selfupdate.cli.commands.self_update import run_self_update
from selfupdate.core.logging import use_host_logging

__all__ = ["register_self_update"]


def register_self_update(
    app: typer.Typer,
    *,
    application_name: str,
    current_version: str,
    repository: str,
    aliases: bool = True,
) -> None:
    identity = context.AppIdentity(
        application_name=application_name,
        current_version=current_version,
        repository=repository,
    )

    def self_update(
        stable: bool = STABLE_OPTION,
        preview: bool = PREVIEW_OPTION,
        compatible: bool = COMPATIBLE_OPTION,
        constraint: str | None = CONSTRAINT_OPTION,
        dry_run: bool = typer.Option(
            False, "--dry-run", help="Resolve and report the update without installing it."
        ),
    ) -> None:
        use_host_logging()
        run_self_update(
            context.build_context(identity),
            stable=stable,
            preview=preview,
            compatible=compatible,
            constraint=constraint,
            dry_run=dry_run,
        )

    self_update.__doc__ = f"Update {application_name} to the latest release."

    def check_update(
        stable: bool = STABLE_OPTION,
        preview: bool = PREVIEW_OPTION,
        compatible: bool = COMPATIBLE_OPTION,
        constraint: str | None = CONSTRAINT_OPTION,
    ) -> None:
        use_host_logging()
        run_check(
            context.build_context(identity),
            stable=stable,
            preview=preview,
            compatible=compatible,
            constraint=constraint,
        )

    check_update.__doc__ = f"Report whether a newer {application_name} is available."

    app.command("self-update")(self_update)
    if aliases:
        app.command("update", hidden=True)(self_update)
        app.command("self:update", hidden=True)(self_update)
    app.command("check-update")(check_update)
