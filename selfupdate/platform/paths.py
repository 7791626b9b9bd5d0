"""User-level directory locations.

- config: ``~/.config/selfupdate`` (``%APPDATA%\\selfupdate`` on Windows)
- cache:  ``~/.cache/selfupdate`` (``~/Library/Caches/selfupdate`` on macOS,
  ``%LOCALAPPDATA%\\selfupdate\\Cache`` on Windows)

XDG variables are honored on Linux and macOS.
"""

from __future__ import annotations

import os
import sys
from functools import lru_cache
from pathlib import Path

__all__ = [
    "home",
    "user_config_dir",
    "user_cache_dir",
    "clear_caches",
]

APP_NAME = "selfupdate"


def _is_windows() -> bool:
    return sys.platform == "win32"


@lru_cache(maxsize=1)
def home() -> Path:
    """User home directory, preferring env vars (CI/container friendly)."""
    var = "USERPROFILE" if _is_windows() else "HOME"
    value = os.environ.get(var)
    if value:
        return Path(value)
    return Path.home()


@lru_cache(maxsize=1)
def user_config_dir() -> Path:
    if _is_windows():
        app_data = os.environ.get("APPDATA")
        if app_data:
            return Path(app_data) / APP_NAME
        return home() / "AppData" / "Roaming" / APP_NAME

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / APP_NAME
    return home() / ".config" / APP_NAME


@lru_cache(maxsize=1)
def user_cache_dir() -> Path:
    if _is_windows():
        local = os.environ.get("LOCALAPPDATA")
        base = Path(local) if local else home() / "AppData" / "Local"
        return base / APP_NAME / "Cache"

    xdg_cache = os.environ.get("XDG_CACHE_HOME")
    if xdg_cache:
        return Path(xdg_cache) / APP_NAME
    if sys.platform == "darwin":
        return home() / "Library" / "Caches" / APP_NAME
    return home() / ".cache" / APP_NAME


def clear_caches() -> None:
    """Forget memoized paths (tests change environment variables)."""
    home.cache_clear()
    user_config_dir.cache_clear()
    user_cache_dir.cache_clear()
