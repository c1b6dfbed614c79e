"""Application service for inspecting and pruning the script cache."""

from __future__ import annotations

from datetime import timedelta
from typing import final

from cargoscript.features.cache import CacheEntry, CacheStore
from cargoscript.features.hashing import CacheKey
from cargoscript.platform.logging import logger


@final
class CacheMaintenanceService:
    """List and clear cache entries."""

    store: CacheStore
    max_age: timedelta

    def __init__(self, store: CacheStore, *, max_age_days: int = 7) -> None:
        self.store = store
        self.max_age = timedelta(days=max_age_days)

    def list_entries(self) -> list[CacheEntry]:
        return self.store.entries()

    def clear(self, *, everything: bool = False) -> list[CacheKey]:
        """Purge stale entries, or all of them when ``everything`` is set."""

        purged = self.store.prune(None if everything else self.max_age)
        logger.info("Removed %d cache entr%s", len(purged), "y" if len(purged) == 1 else "ies")
        return purged


__all__ = ["CacheMaintenanceService"]
