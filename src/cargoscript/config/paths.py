"""Shared path utilities for configuration, cache and log locations.

This module centralizes how the application discovers where it keeps its
configuration file, its build cache and its logs.

Policy (platform convention, environment overridable):
- Config: ``$CARGOSCRIPT_CONFIG`` or ``<config dir>/cargoscript/config.toml``
- Cache: ``$CARGOSCRIPT_CACHE_DIR`` or the platform cache directory
- Logs: ``<data dir>/cargoscript/logs/cargoscript.log``
"""

from __future__ import annotations

import os
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Callable, Final


APP_DIR_NAME: Final[str] = "cargoscript"

_ENV_CONFIG_FILE: Final[str] = "CARGOSCRIPT_CONFIG"
_ENV_CACHE_DIR: Final[str] = "CARGOSCRIPT_CACHE_DIR"


def resolve_overridable_path(
    *,
    explicit_path: Path | str | None,
    env: Mapping[str, str] | None,
    env_var: str | None,
    default_factory: Callable[[], Path],
) -> Path:
    """Resolve a configuration path honoring explicit and environment overrides."""

    if explicit_path is not None:
        return Path(explicit_path).expanduser().resolve()

    mapping = env if env is not None else os.environ
    if env_var:
        candidate = mapping.get(env_var) or ""
        candidate = candidate.strip()
        if candidate:
            return Path(candidate).expanduser().resolve()

    default_path = default_factory()
    return default_path.expanduser().resolve()


def _platform_dir(
    *,
    windows_var: str,
    macos_subdir: str,
    xdg_var: str,
    xdg_default: str,
    env: Mapping[str, str] | None = None,
    platform: str | None = None,
) -> Path:
    """Return the per-user base directory for the current platform."""

    mapping = env if env is not None else os.environ
    current = platform or sys.platform
    home = Path.home()

    if current == "win32":
        base = mapping.get(windows_var) or str(home / "AppData" / "Local")
        return Path(base)
    if current == "darwin":
        return home / "Library" / macos_subdir
    xdg = (mapping.get(xdg_var) or "").strip()
    return Path(xdg) if xdg else home / xdg_default


def platform_cache_dir(
    env: Mapping[str, str] | None = None,
    platform: str | None = None,
) -> Path:
    """Get the conventional per-user cache directory for cargoscript."""

    current = platform or sys.platform
    base = _platform_dir(
        windows_var="LOCALAPPDATA",
        macos_subdir="Caches",
        xdg_var="XDG_CACHE_HOME",
        xdg_default=".cache",
        env=env,
        platform=current,
    )
    if current == "win32":
        return base / APP_DIR_NAME / "cache"
    return base / APP_DIR_NAME


def default_cache_dir(
    explicit_path: Path | str | None = None,
    *,
    configured: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> Path:
    """Resolve the cache root: explicit, environment, configuration, platform."""

    def _fallback() -> Path:
        if configured is not None:
            return configured
        return platform_cache_dir(env)

    return resolve_overridable_path(
        explicit_path=explicit_path,
        env=env,
        env_var=_ENV_CACHE_DIR,
        default_factory=_fallback,
    )


def default_config_path(env: Mapping[str, str] | None = None) -> Path:
    """Get the path to the TOML config file."""

    def _fallback() -> Path:
        base = _platform_dir(
            windows_var="APPDATA",
            macos_subdir="Application Support",
            xdg_var="XDG_CONFIG_HOME",
            xdg_default=".config",
            env=env,
        )
        return base / APP_DIR_NAME / "config.toml"

    return resolve_overridable_path(
        explicit_path=None,
        env=env,
        env_var=_ENV_CONFIG_FILE,
        default_factory=_fallback,
    )


def default_log_dir() -> Path:
    """Get the default directory for log files."""

    base = _platform_dir(
        windows_var="LOCALAPPDATA",
        macos_subdir="Logs",
        xdg_var="XDG_STATE_HOME",
        xdg_default=".local/state",
    )
    return (base / APP_DIR_NAME / "logs").resolve()


def default_log_file() -> Path:
    """Get the default log file path."""

    return (default_log_dir() / "cargoscript.log").resolve()


__all__ = [
    "APP_DIR_NAME",
    "default_cache_dir",
    "default_config_path",
    "default_log_dir",
    "default_log_file",
    "platform_cache_dir",
    "resolve_overridable_path",
]
