"""Typed configuration loading.

The config file is optional TOML:

    [update]
    repository = "owner/repo"
    application_name = "myapp"
    timeout = 30.0
    token_env = "GITHUB_TOKEN"

    [cache]
    enabled = true
    dir = "~/.cache/selfupdate/http"
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path

from selfupdate.platform.paths import user_cache_dir, user_config_dir

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_float, get_str, get_table

__all__ = [
    "Config",
    "UpdateConfig",
    "CacheConfig",
    "ConfigError",
    "default_config_path",
    "is_repository",
    "load_config",
    "load_config_or_default",
    "repository_override",
    "DEFAULT_TIMEOUT",
    "DEFAULT_TOKEN_ENV",
]

DEFAULT_TIMEOUT = 30.0
DEFAULT_TOKEN_ENV = "GITHUB_TOKEN"
DEFAULT_APPLICATION_NAME = "selfupdate"

ENV_CONFIG = "SELFUPDATE_CONFIG"
ENV_REPOSITORY = "SELFUPDATE_REPOSITORY"
ENV_NO_CACHE = "SELFUPDATE_NO_CACHE"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class UpdateConfig:
    """Where releases are published and how to talk to GitHub."""

    repository: str | None = None
    application_name: str = DEFAULT_APPLICATION_NAME
    timeout: float = DEFAULT_TIMEOUT
    token_env: str = DEFAULT_TOKEN_ENV

    def token(self) -> str | None:
        """API token read from the configured environment variable, if set."""
        value = os.environ.get(self.token_env, "").strip()
        return value or None


def _default_http_cache_dir() -> Path:
    return user_cache_dir() / "http"


@dataclass(frozen=True, slots=True)
class CacheConfig:
    """HTTP response cache for the release listing."""

    enabled: bool = True
    dir: Path = field(default_factory=_default_http_cache_dir)


@dataclass(frozen=True, slots=True)
class Config:
    update: UpdateConfig = field(default_factory=UpdateConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML)."""
        update: StrDict = get_table(data, "update") or {}
        cache: StrDict = get_table(data, "cache") or {}

        repository = get_str(update, "repository")
        if repository is not None and not is_repository(repository):
            raise ValueError(f"update.repository must look like 'owner/repo', got {repository!r}")

        timeout = get_float(update, "timeout")
        if timeout is not None and timeout <= 0:
            raise ValueError("update.timeout must be positive")

        cache_dir = get_str(cache, "dir")
        enabled = get_bool(cache, "enabled")

        return cls(
            update=UpdateConfig(
                repository=repository,
                application_name=get_str(update, "application_name") or DEFAULT_APPLICATION_NAME,
                timeout=timeout or DEFAULT_TIMEOUT,
                token_env=get_str(update, "token_env") or DEFAULT_TOKEN_ENV,
            ),
            cache=CacheConfig(
                enabled=True if enabled is None else enabled,
                dir=Path(cache_dir).expanduser() if cache_dir else _default_http_cache_dir(),
            ),
        )

    def with_overrides(
        self,
        *,
        repository: str | None = None,
        cache_enabled: bool | None = None,
    ) -> Config:
        """Apply command line / environment overrides on top of file values."""
        update = self.update
        env_repository = repository_override()
        if repository:
            update = replace(update, repository=repository)
        elif env_repository:
            update = replace(update, repository=env_repository)

        cache = self.cache
        if cache_enabled is None and os.environ.get(ENV_NO_CACHE, "").strip():
            cache_enabled = False
        if cache_enabled is not None:
            cache = replace(cache, enabled=cache_enabled)
        return replace(self, update=update, cache=cache)


def repository_override() -> str | None:
    """Repository forced by ``--repository`` / ``$SELFUPDATE_REPOSITORY``, if any."""
    return os.environ.get(ENV_REPOSITORY, "").strip() or None


def is_repository(value: str) -> bool:
    owner, sep, name = value.partition("/")
    return bool(sep) and bool(owner) and bool(name) and "/" not in name


def default_config_path() -> Path:
    """``$SELFUPDATE_CONFIG`` or ``<user config dir>/config.toml``."""
    env = os.environ.get(ENV_CONFIG, "").strip()
    if env:
        return Path(env).expanduser()
    return user_config_dir() / "config.toml"


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and validate configuration from a TOML file."""
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Like load_config, but a missing file yields the defaults.

    A file that exists but is invalid is still an error.
    """
    if not path.exists():
        return Ok(Config())
    return load_config(path)
