"""
Summary: Result of one external build.
Why: Success and failure carry different payloads; callers branch on the type.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from cargoscript.features.cache import CacheEntry
from cargoscript.shared.errors import DiagnosticPosition


@dataclass(slots=True, frozen=True)
class BuildSuccess:
    """The toolchain exited with status 0 and the entry is now marked built."""

    binary: Path
    entry: CacheEntry


@dataclass(slots=True, frozen=True)
class BuildFailed:
    """The toolchain exited non-zero; diagnostics are already in script coordinates."""

    returncode: int
    diagnostics: str
    positions: tuple[DiagnosticPosition, ...]


BuildResult = BuildSuccess | BuildFailed


__all__ = ["BuildFailed", "BuildResult", "BuildSuccess"]
