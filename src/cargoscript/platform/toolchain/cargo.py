"""Where: src/cargoscript/platform/toolchain/cargo.py
What: Cargo-backed implementation of the build toolchain port.
Why: Isolate every detail of the cargo command line and output layout.
"""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path
from typing import final

from cargoscript.features.manifest import BuildProfile
from cargoscript.platform.logging import logger
from cargoscript.shared.errors import ToolchainError


@final
class CargoToolchain:
    """Drive ``cargo build`` for synthesized packages."""

    cargo: str
    rustc: str
    _identity: str | None

    def __init__(self, *, cargo: str = "cargo", rustc: str = "rustc") -> None:
        self.cargo = cargo
        self.rustc = rustc
        self._identity = None

    def identity(self) -> str:
        """Return ``rustc -vV`` and ``cargo -V`` output, queried once per instance.

        Raises:
            ToolchainError: If either command is missing or fails.
        """
        if self._identity is None:
            rustc = self._query([self.rustc, "-vV"])
            cargo = self._query([self.cargo, "-V"])
            self._identity = f"{rustc}\n{cargo}"
            logger.debug("Toolchain identity: %s", self._identity.replace("\n", " | "))
        return self._identity

    def build_command(
        self,
        manifest_path: Path,
        *,
        target_dir: Path,
        profile: BuildProfile,
    ) -> list[str]:
        command = [
            self.cargo,
            "build",
            "--manifest-path",
            str(manifest_path),
            "--target-dir",
            str(target_dir),
            "--color",
            "never",
        ]
        if profile is BuildProfile.RELEASE:
            command.append("--release")
        return command

    def binary_path(self, target_dir: Path, *, package_name: str, profile: BuildProfile) -> Path:
        suffix = ".exe" if sys.platform == "win32" else ""
        return target_dir / profile.value / f"{package_name}{suffix}"

    @staticmethod
    def _query(command: list[str]) -> str:
        try:
            completed = subprocess.run(
                command,
                check=True,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as exc:
            raise ToolchainError(f"'{command[0]}' not found; is the Rust toolchain installed?") from exc
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip()
            raise ToolchainError(f"'{' '.join(command)}' failed: {detail}") from exc
        return completed.stdout.strip()


__all__ = ["CargoToolchain"]
