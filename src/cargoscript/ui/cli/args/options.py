"""Command line argument options."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, final

from cargoscript.application.services.run_service import RunMode
from cargoscript.features.manifest import BuildProfile, ScriptKind


@final
@dataclass(slots=True)
class RunArgs:
    """Command line arguments for the ``run``, ``expr`` and ``loop`` subcommands.

    ``script_path`` is set for ``run`` (``None`` reads standard input);
    ``source`` holds the inline text for ``expr`` and ``loop``.
    """

    command: Literal["run", "expr", "loop"]
    script_path: Path | None
    source: str | None
    args: list[str]
    kind: ScriptKind | None
    dependencies: dict[str, Any] = field(default_factory=dict)
    profile: BuildProfile | None = None
    mode: RunMode = RunMode.RUN
    force: bool = False
    loop_count: bool = False
    cache_dir: Path | None = None
    verbose: bool = False
    quiet: bool = False


@final
@dataclass(slots=True)
class CacheArgs:
    """Command line arguments for the ``list`` and ``clear-cache`` subcommands."""

    command: Literal["list", "clear-cache"]
    clear_all: bool
    cache_dir: Path | None
    verbose: bool
    quiet: bool


@final
@dataclass(slots=True)
class ConfigArgs:
    """Command line arguments for the ``config`` subcommand."""

    command: Literal["config"]
    path: Path | None


CLIArgs = RunArgs | CacheArgs | ConfigArgs

__all__ = ["CLIArgs", "CacheArgs", "ConfigArgs", "RunArgs"]
