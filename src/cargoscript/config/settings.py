"""Where: src/cargoscript/config/settings.py
What: Fixed constants shared by synthesis, hashing and the cache store.
Why: Keep layout and versioning knobs in one place so changes are deliberate.
Assumptions: - Bumping TEMPLATE_VERSION invalidates every existing cache entry.
"""

from __future__ import annotations

from typing import Final

# Identifies the wrapper templates; part of every cache key.
TEMPLATE_VERSION: Final[str] = "3"

# Number of hex nibbles of the SHA-256 digest used as a cache key.
CACHE_KEY_LENGTH: Final[int] = 32

# Extensions tried, in order, when a script path does not exist as given.
SEARCH_EXTENSIONS: Final[tuple[str, ...]] = ("crs", "rs")

# Files inside each cache entry directory.
MANIFEST_FILE_NAME: Final[str] = "Cargo.toml"
METADATA_FILE_NAME: Final[str] = "metadata.json"
LOCK_FILE_NAME: Final[str] = ".build.lock"
TARGET_DIR_NAME: Final[str] = "target"

# Interval between non-blocking lock attempts while waiting for another builder.
LOCK_POLL_INTERVAL: Final[float] = 0.1

# Package version and names; the package name depends only on the script kind.
PACKAGE_VERSION: Final[str] = "0.1.0"
SCRIPT_PACKAGE_NAME: Final[str] = "script"
EXPR_PACKAGE_NAME: Final[str] = "expr"
LOOP_PACKAGE_NAME: Final[str] = "loop"
STDIN_SCRIPT_NAME: Final[str] = "stdin"


__all__ = [
    "CACHE_KEY_LENGTH",
    "EXPR_PACKAGE_NAME",
    "LOCK_FILE_NAME",
    "LOCK_POLL_INTERVAL",
    "LOOP_PACKAGE_NAME",
    "MANIFEST_FILE_NAME",
    "METADATA_FILE_NAME",
    "PACKAGE_VERSION",
    "SCRIPT_PACKAGE_NAME",
    "SEARCH_EXTENSIONS",
    "STDIN_SCRIPT_NAME",
    "TARGET_DIR_NAME",
    "TEMPLATE_VERSION",
]
