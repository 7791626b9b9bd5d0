from __future__ import annotations

import os
from pathlib import Path

import typer

from selfupdate import __version__
from selfupdate.cli.commands.check import check
from selfupdate.cli.commands.releases import releases
from selfupdate.cli.commands.self_update import self_update
from selfupdate.core.config import ENV_CONFIG, ENV_NO_CACHE, ENV_REPOSITORY, is_repository
from selfupdate.core.errors import ErrorCode
from selfupdate.core.logging import configure_logging


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# Commands
app.command("self-update")(self_update)
app.command("update", hidden=True)(self_update)
app.command("self:update", hidden=True)(self_update)
app.command("check")(check)
app.command("releases")(releases)


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    config: Path | None = typer.Option(
        None,
        "--config",
        help="Config file (default: $SELFUPDATE_CONFIG or the user config dir)",
    ),
    repository: str | None = typer.Option(
        None,
        "--repository",
        metavar="OWNER/REPO",
        help="GitHub repository publishing the releases",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    log_json: bool = typer.Option(False, "--log-json", help="Emit logs as JSON lines."),
    no_cache: bool = typer.Option(False, "--no-cache", help="Bypass the HTTP response cache."),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    configure_logging(verbose=verbose, log_json=log_json)

    if config is not None:
        os.environ[ENV_CONFIG] = str(config.expanduser())

    if repository is not None:
        repository = repository.strip()
        if not is_repository(repository):
            typer.echo(
                f"error: invalid --repository {repository!r} (expected OWNER/REPO)",
                err=True,
            )
            raise typer.Exit(code=int(ErrorCode.USER_ERROR))
        os.environ[ENV_REPOSITORY] = repository

    if no_cache:
        os.environ[ENV_NO_CACHE] = "1"


def main() -> None:
    app()
