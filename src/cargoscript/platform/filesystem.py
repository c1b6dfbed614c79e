"""Filesystem helpers reused across multiple layers."""

from __future__ import annotations

import os
from pathlib import Path


def ensure_directory(directory: Path) -> Path:
    """Ensure ``directory`` exists as a folder and return it."""

    if directory.exists():
        if not directory.is_dir():
            raise NotADirectoryError(f"Path exists but is not a directory: {directory}")
        return directory

    directory.mkdir(parents=True, exist_ok=True)
    return directory


def touch_directory(directory: Path) -> None:
    """Refresh the modification time of ``directory`` to mark it as used."""

    os.utime(directory, None)


def make_executable(path: Path) -> None:
    """Add execute permission bits matching the existing read bits."""

    mode = path.stat().st_mode
    path.chmod(mode | ((mode & 0o444) >> 2))


__all__ = ["ensure_directory", "make_executable", "touch_directory"]
