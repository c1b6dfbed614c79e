"""
Summary: Cross-feature value objects and errors.
Why: Give features a dependency-free module to share.
"""

from __future__ import annotations

from .errors import (
    ArtifactMissing,
    BuildFailure,
    Busy,
    CargoScriptError,
    DiagnosticPosition,
    ExecutionError,
    ExtractionError,
    StoreError,
    SynthesisError,
    ToolchainError,
)

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
