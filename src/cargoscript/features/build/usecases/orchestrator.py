"""
Summary: Run the external toolchain against a cache entry and record the outcome.
Why: The only place allowed to spawn the compiler; its exit code decides the result.
"""

from __future__ import annotations

import subprocess
import sys
import time
from typing import TextIO, final

from cargoscript.features.cache import CacheEntry, CacheStore
from cargoscript.features.manifest import BuildProfile
from cargoscript.platform.logging import logger
from cargoscript.shared.errors import ToolchainError

from ..domain.models import BuildFailed, BuildResult, BuildSuccess
from .diagnostics import DiagnosticRemapper
from .ports import Toolchain

# Seconds a terminated build gets to exit before it is killed.
TERMINATE_GRACE: float = 5.0


@final
class BuildOrchestrator:
    """Compile cache entries and promote them to built on success.

    Output is remapped line by line as it arrives. In verbose mode it is
    streamed to ``output`` immediately; otherwise it is held back, dropped on
    success and replayed on failure.
    """

    toolchain: Toolchain
    store: CacheStore
    verbose: bool
    output: TextIO

    def __init__(
        self,
        toolchain: Toolchain,
        store: CacheStore,
        *,
        verbose: bool = False,
        output: TextIO | None = None,
    ) -> None:
        self.toolchain = toolchain
        self.store = store
        self.verbose = verbose
        self.output = output if output is not None else sys.stderr

    def build(self, entry: CacheEntry, *, profile: BuildProfile, display_name: str) -> BuildResult:
        """Build ``entry``; the caller must hold its build lock.

        Args:
            entry: Cache entry whose synthesized package is compiled.
            profile: Build profile passed to the toolchain.
            display_name: Script path (or ``<name>``) substituted into diagnostics.

        Returns:
            BuildResult: ``BuildSuccess`` with the promoted entry, or ``BuildFailed``
            with diagnostics in script coordinates.

        Raises:
            ToolchainError: If the toolchain executable cannot be started.
        """
        command = self.toolchain.build_command(
            entry.manifest_path, target_dir=entry.target_dir, profile=profile
        )
        remapper = DiagnosticRemapper(
            entry.line_map,
            source_file=entry.record.source_file,
            display_name=display_name,
            package_dir=entry.path,
        )
        logger.info("Building %s (%s)", display_name, profile.value)
        logger.debug("Running %s", " ".join(command))

        started = time.monotonic()
        captured: list[str] = []
        try:
            process = subprocess.Popen(
                command,
                cwd=entry.path,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError as exc:
            raise ToolchainError(f"'{command[0]}' not found; is the Rust toolchain installed?") from exc

        try:
            assert process.stdout is not None
            for raw in process.stdout:
                line = remapper.remap_line(raw)
                captured.append(line)
                if self.verbose:
                    _ = self.output.write(line)
                    self.output.flush()
            returncode = process.wait()
        except BaseException:
            _stop(process)
            raise
        finally:
            if process.stdout is not None:
                process.stdout.close()

        elapsed = time.monotonic() - started
        diagnostics = "".join(captured)

        if returncode != 0:
            logger.debug("Build of %s failed with status %d", entry.key, returncode)
            if not self.verbose:
                _ = self.output.write(diagnostics)
                self.output.flush()
            return BuildFailed(
                returncode=returncode,
                diagnostics=diagnostics,
                positions=tuple(remapper.positions),
            )

        binary = self.toolchain.binary_path(
            entry.target_dir, package_name=entry.record.package_name, profile=profile
        )
        if not binary.is_file():
            message = f"toolchain reported success but produced no binary at {binary}\n"
            return BuildFailed(returncode=returncode, diagnostics=message, positions=())

        promoted = self.store.mark_built(entry, binary)
        logger.info("Built %s in %.1fs", display_name, elapsed)
        return BuildSuccess(binary=binary, entry=promoted)


def _stop(process: subprocess.Popen[str]) -> None:
    """Terminate an in-flight build so no orphan outlives the invocation."""

    if process.poll() is not None:
        return
    logger.debug("Stopping build process %d", process.pid)
    process.terminate()
    try:
        _ = process.wait(timeout=TERMINATE_GRACE)
    except subprocess.TimeoutExpired:
        process.kill()
        _ = process.wait()


__all__ = ["BuildOrchestrator", "TERMINATE_GRACE"]
