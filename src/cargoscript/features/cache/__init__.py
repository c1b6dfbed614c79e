"""
Summary: Public API for the content-addressed build cache.
Why: Keep callers independent of the on-disk layout.
"""

from __future__ import annotations

from .domain.models import CacheEntry, FreshnessRecord
from .usecases.store import CacheStore

__all__ = ["CacheEntry", "CacheStore", "FreshnessRecord"]
