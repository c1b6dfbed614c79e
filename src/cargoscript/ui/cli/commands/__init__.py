"""Command execution package for CLI."""

from cargoscript.ui.cli.commands.cache import CacheCommand
from cargoscript.ui.cli.commands.config import ConfigCommand
from cargoscript.ui.cli.commands.run import RunCommand

__all__ = ["CacheCommand", "ConfigCommand", "RunCommand"]
