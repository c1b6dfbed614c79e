"""Tests for cache listing and clearing."""

from __future__ import annotations

import os
import time

from cargoscript.application.services.cache_service import CacheMaintenanceService
from cargoscript.features.cache import CacheStore
from cargoscript.features.hashing import CacheKey
from cargoscript.features.manifest import extract_manifest
from cargoscript.features.synthesis import TemplateSynthesizer

OLD = CacheKey("11111111111111111111111111111111")
NEW = CacheKey("22222222222222222222222222222222")


def _populate(store: CacheStore) -> None:
    package = TemplateSynthesizer().synthesize(extract_manifest(b"1\n"), package_name="demo")
    old = store.create(OLD, package, profile="release", toolchain="t")
    _ = store.create(NEW, package, profile="release", toolchain="t")
    stale = time.time() - 10 * 24 * 3600
    os.utime(old.path, (stale, stale))


def test_clear_removes_only_stale_entries(store: CacheStore) -> None:
    _populate(store)
    service = CacheMaintenanceService(store, max_age_days=7)

    purged = service.clear()

    assert purged == [OLD]
    assert [entry.key for entry in service.list_entries()] == [NEW]


def test_clear_everything(store: CacheStore) -> None:
    _populate(store)
    service = CacheMaintenanceService(store, max_age_days=7)

    purged = service.clear(everything=True)

    assert sorted(purged) == [OLD, NEW]
    assert service.list_entries() == []
