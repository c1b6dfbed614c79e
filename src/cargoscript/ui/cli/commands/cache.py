"""Cache maintenance commands for the CLI."""

from __future__ import annotations

from collections.abc import Callable
from typing import final

from cargoscript.application.services.cache_service import CacheMaintenanceService
from cargoscript.config.config import Config
from cargoscript.config.paths import default_cache_dir
from cargoscript.features.cache import CacheStore
from cargoscript.ui.cli.args.options import CacheArgs
from cargoscript.ui.cli.display.cache_table import CacheTableDisplay


@final
class CacheCommand:
    """List or clear cache entries."""

    def __init__(
        self,
        args: CacheArgs,
        *,
        service_factory: Callable[[CacheArgs, Config], CacheMaintenanceService] | None = None,
        display: CacheTableDisplay | None = None,
    ) -> None:
        self.args = args
        self._service_factory = service_factory or self._default_service_factory
        self.display = display or CacheTableDisplay()

    def execute(self) -> int:
        service = self._service_factory(self.args, Config.load())
        if self.args.command == "list":
            self.display.show_entries(service.list_entries())
            return 0

        purged = service.clear(everything=self.args.clear_all)
        self.display.show_purged(len(purged), quiet=self.args.quiet)
        return 0

    @staticmethod
    def _default_service_factory(args: CacheArgs, configuration: Config) -> CacheMaintenanceService:
        root = default_cache_dir(args.cache_dir, configured=configuration.cache_dir)
        store = CacheStore(root, lock_timeout=configuration.lock_timeout)
        return CacheMaintenanceService(store, max_age_days=configuration.max_cache_age_days)
