"""Config command: create the configuration file on first use and show where it lives."""

from __future__ import annotations

from typing import final

from rich.console import Console

from cargoscript.config.config import Config
from cargoscript.config.paths import default_config_path
from cargoscript.ui.cli.args.options import ConfigArgs


@final
class ConfigCommand:
    """Write a default configuration file if none exists."""

    def __init__(self, args: ConfigArgs, *, console: Console | None = None) -> None:
        self.args = args
        self._console = console or Console(soft_wrap=True)

    def execute(self) -> int:
        target = self.args.path or default_config_path()
        if target.exists():
            self._console.print(f"Configuration file: {target}")
            return 0

        written = Config().save(target)
        self._console.print(f"Created configuration file: {written}")
        return 0
