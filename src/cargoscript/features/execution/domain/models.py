"""
Summary: Exit status of an executed script binary.
Why: Signal deaths must be forwarded distinctly from ordinary exit codes.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class ExecutionOutcome:
    """Status reported by the operating system for the finished binary.

    ``returncode`` follows :mod:`subprocess`: negative values mean the process
    was killed by that signal number.
    """

    returncode: int

    @property
    def signal(self) -> int | None:
        return -self.returncode if self.returncode < 0 else None

    @property
    def exit_status(self) -> int:
        """Status to exit with: the code itself, or ``128 + signal`` as shells report it."""

        signal = self.signal
        return 128 + signal if signal is not None else self.returncode


__all__ = ["ExecutionOutcome"]
