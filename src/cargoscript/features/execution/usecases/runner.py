"""
Summary: Launch a built script binary with transparent stdio passthrough.
Why: The script must behave as if the user had run the binary directly.
"""

from __future__ import annotations

import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import final

from cargoscript.features.cache import CacheEntry
from cargoscript.platform.logging import logger
from cargoscript.shared.errors import ArtifactMissing, ExecutionError

from ..domain.models import ExecutionOutcome


@final
class ExecutionRunner:
    """Run the binary recorded in a built cache entry."""

    def run(
        self,
        entry: CacheEntry,
        args: Sequence[str] = (),
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ExecutionOutcome:
        """Execute ``entry``'s binary and wait for it.

        Standard streams are inherited. An interrupt reaches the child through
        the terminal's process group, so the runner keeps waiting for the child
        to finish and reports its status.

        Raises:
            ArtifactMissing: If the recorded binary no longer exists.
            ExecutionError: If the binary cannot be launched.
        """
        binary = entry.binary_path
        if binary is None:
            raise ExecutionError(f"cache entry {entry.key} has not been built")
        if not binary.is_file():
            raise ArtifactMissing(binary)

        command = [str(binary), *args]
        logger.debug("Executing %s", " ".join(command))
        try:
            process = subprocess.Popen(
                command,
                cwd=cwd,
                env=dict(env) if env is not None else None,
            )
        except FileNotFoundError as exc:
            raise ArtifactMissing(binary) from exc
        except OSError as exc:
            raise ExecutionError(f"cannot execute {binary}: {exc.strerror}") from exc

        while True:
            try:
                returncode = process.wait()
                break
            except KeyboardInterrupt:
                logger.debug("Interrupt received; waiting for %s to exit", binary.name)

        outcome = ExecutionOutcome(returncode=returncode)
        logger.debug("%s exited with status %d", binary.name, outcome.exit_status)
        return outcome


__all__ = ["ExecutionRunner"]
