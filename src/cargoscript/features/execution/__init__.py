"""
Summary: Public API for running built script binaries.
Why: Keep process launching details out of the application layer.
"""

from __future__ import annotations

from .domain.models import ExecutionOutcome
from .usecases.runner import ExecutionRunner

__all__ = ["ExecutionOutcome", "ExecutionRunner"]
