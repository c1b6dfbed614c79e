"""
Summary: Public API for cache key computation.
Why: Keep the key type importable without reaching into use-case modules.
"""

from __future__ import annotations

from .usecases.hasher import CacheKey, ContentHasher

__all__ = ["CacheKey", "ContentHasher"]
