from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from selfupdate import __version__
from selfupdate.core.config import (
    Config,
    default_config_path,
    load_config_or_default,
    repository_override,
)
from selfupdate.core.errors import ErrorCode
from selfupdate.core.result import Err
from selfupdate.http.cache import CachingHttpClient
from selfupdate.http.client import HttpClient, RealHttpClient
from selfupdate.install.replace import SelfReplacer, running_program
from selfupdate.output.console import ConsoleProtocol, RichConsole
from selfupdate.release.github import user_agent_for
from selfupdate.release.manager import SelfUpdateManager


@dataclass(frozen=True, slots=True)
class AppIdentity:
    """The program being updated, as declared by the host application."""

    application_name: str
    current_version: str
    repository: str | None = None


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: Config
    console: ConsoleProtocol
    manager: SelfUpdateManager
    replacer: SelfReplacer
    program: Path


def build_context(identity: AppIdentity | None = None) -> CLIContext:
    config_path = default_config_path()
    config_result = load_config_or_default(config_path)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))
    config = config_result.value.with_overrides()

    if identity is None:
        identity = AppIdentity(
            application_name=config.update.application_name,
            current_version=__version__,
        )

    # --repository / env, then the host's own repository, then the shared config file.
    repository = repository_override() or identity.repository or config.update.repository
    if not repository:
        typer.echo("error: no release repository configured", err=True)
        typer.echo(
            f"hint: pass --repository OWNER/REPO or set update.repository in {config_path}",
            err=True,
        )
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    user_agent = user_agent_for(identity.application_name, repository)
    http: HttpClient = RealHttpClient(timeout=config.update.timeout, user_agent=user_agent)
    if config.cache.enabled:
        http = CachingHttpClient(http, config.cache.dir)

    return CLIContext(
        config=config,
        console=RichConsole(),
        manager=SelfUpdateManager(
            identity.application_name,
            identity.current_version,
            repository,
            http,
            token=config.update.token(),
        ),
        replacer=SelfReplacer(http),
        program=running_program(),
    )
