"""
Summary: Public API for compiling cache entries with the external toolchain.
Why: Give the application layer one import path for build types.
"""

from __future__ import annotations

from .domain.models import BuildFailed, BuildResult, BuildSuccess
from .usecases.diagnostics import DiagnosticRemapper, remap_diagnostics
from .usecases.orchestrator import BuildOrchestrator
from .usecases.ports import Toolchain

__all__ = [
    "BuildFailed",
    "BuildOrchestrator",
    "BuildResult",
    "BuildSuccess",
    "DiagnosticRemapper",
    "Toolchain",
    "remap_diagnostics",
]
