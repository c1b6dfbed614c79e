"""
Summary: Ports the build orchestrator needs from the external toolchain.
Why: Keep the orchestrator testable with a fake toolchain.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from cargoscript.features.manifest import BuildProfile


class Toolchain(Protocol):
    """External compiler/resolver invoked as a subprocess."""

    def identity(self) -> str:
        """Return an opaque version string that participates in the cache key."""

        ...

    def build_command(
        self,
        manifest_path: Path,
        *,
        target_dir: Path,
        profile: BuildProfile,
    ) -> list[str]:
        """Return the argv that builds the package described by ``manifest_path``."""

        ...

    def binary_path(self, target_dir: Path, *, package_name: str, profile: BuildProfile) -> Path:
        """Return where a successful build leaves the binary."""

        ...
