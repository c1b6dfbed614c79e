"""
Summary: Error taxonomy shared by every stage of the run pipeline.
Why: Let the CLI map failures to messages and exit codes in one place.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


class CargoScriptError(Exception):
    """Base class for all errors raised by cargoscript."""


class ExtractionError(CargoScriptError):
    """The embedded manifest is present but malformed."""

    line: int | None

    def __init__(self, message: str, *, line: int | None = None) -> None:
        self.line = line
        if line is not None:
            message = f"line {line}: {message}"
        super().__init__(message)


class SynthesisError(CargoScriptError):
    """Internal invariant violated while composing the synthesized package."""


class StoreError(CargoScriptError):
    """Filesystem failure inside the cache store."""

    path: Path

    def __init__(self, message: str, path: Path) -> None:
        self.path = path
        super().__init__(f"{message}: {path}")


class Busy(CargoScriptError):
    """Another process holds the build lock for a cache entry."""

    key: str
    waited: float

    def __init__(self, key: str, waited: float) -> None:
        self.key = key
        self.waited = waited
        super().__init__(
            f"cache entry {key} is being built by another process "
            + f"(waited {waited:.0f}s); try again once it finishes"
        )


@dataclass(slots=True, frozen=True)
class DiagnosticPosition:
    """A diagnostic location expressed in script coordinates.

    ``line`` is ``None`` when the diagnostic pointed at injected boilerplate and
    therefore refers to the script as a whole.
    """

    line: int | None
    column: int | None


class BuildFailure(CargoScriptError):
    """The external toolchain rejected the synthesized package."""

    diagnostics: str
    positions: tuple[DiagnosticPosition, ...]

    def __init__(
        self,
        message: str,
        *,
        diagnostics: str = "",
        positions: tuple[DiagnosticPosition, ...] = (),
    ) -> None:
        self.diagnostics = diagnostics
        self.positions = positions
        super().__init__(message)


class ArtifactMissing(CargoScriptError):
    """An entry is recorded as built but its binary no longer exists."""

    binary: Path

    def __init__(self, binary: Path) -> None:
        self.binary = binary
        super().__init__(f"built binary is missing: {binary}")


class ExecutionError(CargoScriptError):
    """The compiled binary could not be launched."""


class ToolchainError(CargoScriptError):
    """The external build toolchain is missing or unusable."""


__all__ = [
    "ArtifactMissing",
    "BuildFailure",
    "Busy",
    "CargoScriptError",
    "DiagnosticPosition",
    "ExecutionError",
    "ExtractionError",
    "StoreError",
    "SynthesisError",
    "ToolchainError",
]
