"""Display utilities for cache listings."""

from __future__ import annotations

from datetime import datetime
from typing import final

from rich import box
from rich.console import Console
from rich.table import Table

from cargoscript.features.cache import CacheEntry


@final
class CacheTableDisplay:
    """Render cache entries in a Rich table."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def show_entries(self, entries: list[CacheEntry]) -> None:
        if not entries:
            self.console.print("[yellow]The cache is empty.[/yellow]")
            return

        table = Table(box=box.SIMPLE_HEAVY, show_lines=False)
        table.add_column("Key", style="cyan", no_wrap=True)
        table.add_column("Package")
        table.add_column("Profile")
        table.add_column("Built", justify="center")
        table.add_column("Builds", justify="right")
        table.add_column("Last used", no_wrap=True)
        table.add_column("Script", overflow="fold")

        for entry in entries:
            record = entry.record
            table.add_row(
                entry.key,
                record.package_name,
                record.profile,
                "[green]yes[/green]" if entry.is_built else "[red]no[/red]",
                str(record.build_count),
                datetime.fromtimestamp(entry.last_used).strftime("%Y-%m-%d %H:%M"),
                record.script or "",
            )

        self.console.print(table)

    def show_purged(self, count: int, *, quiet: bool = False) -> None:
        if quiet:
            return
        noun = "entry" if count == 1 else "entries"
        self.console.print(f"Removed {count} cache {noun}.")
