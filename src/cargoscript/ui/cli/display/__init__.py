"""Console display helpers for the CLI."""

from cargoscript.ui.cli.display.cache_table import CacheTableDisplay

__all__ = ["CacheTableDisplay"]
