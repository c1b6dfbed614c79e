"""Command line argument handling package."""

from cargoscript.ui.cli.args.parser import ArgumentParser
from cargoscript.ui.cli.args.options import CLIArgs, CacheArgs, ConfigArgs, RunArgs

__all__ = ["ArgumentParser", "CLIArgs", "CacheArgs", "ConfigArgs", "RunArgs"]
