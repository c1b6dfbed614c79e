"""
Summary: On-disk cache entry and its freshness record.
Why: The record's binary field is the single source of truth for "built".
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any

from cargoscript.config.settings import (
    LOCK_FILE_NAME,
    MANIFEST_FILE_NAME,
    METADATA_FILE_NAME,
    TARGET_DIR_NAME,
)
from cargoscript.features.hashing import CacheKey
from cargoscript.features.synthesis import LineMap


@dataclass(slots=True, frozen=True)
class FreshnessRecord:
    """Contents of ``metadata.json`` inside a cache entry.

    Attributes:
        key: Cache key (the digest of the exact inputs) the entry was created for.
        package_name: Cargo package and binary name.
        source_file: Synthesized source file name inside the entry.
        line_map: Synthesized-to-script line mapping for diagnostics.
        profile: Build profile the key was computed with.
        toolchain: Toolchain identity the key was computed with.
        template_version: Wrapper template version the key was computed with.
        script: Display name of the script that first created the entry.
        created_at: ISO-8601 creation timestamp.
        build_count: Number of successful builds of this entry.
        binary: Binary path relative to the entry directory; ``None`` until built.
        built_at: ISO-8601 timestamp of the latest successful build.
    """

    key: str
    package_name: str
    source_file: str
    line_map: LineMap
    profile: str
    toolchain: str
    template_version: str
    script: str | None
    created_at: str
    build_count: int = 0
    binary: str | None = None
    built_at: str | None = None

    def to_json(self) -> str:
        data = asdict(self)
        data["line_map"] = self.line_map.to_dict()
        return json.dumps(data, indent=2, sort_keys=True) + "\n"

    @classmethod
    def from_json(cls, text: str) -> "FreshnessRecord":
        """Parse a record; raises ``ValueError``/``KeyError``/``TypeError`` when malformed."""

        data: dict[str, Any] = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("metadata must be a JSON object")
        data["line_map"] = LineMap.from_dict(data["line_map"])
        return cls(**data)

    def promoted(self, binary: str, built_at: str) -> "FreshnessRecord":
        """Return the record after one more successful build."""

        return replace(self, binary=binary, built_at=built_at, build_count=self.build_count + 1)


@dataclass(slots=True, frozen=True)
class CacheEntry:
    """One content-addressed directory in the cache root."""

    key: CacheKey
    path: Path
    record: FreshnessRecord

    @property
    def manifest_path(self) -> Path:
        return self.path / MANIFEST_FILE_NAME

    @property
    def source_path(self) -> Path:
        return self.path / self.record.source_file

    @property
    def metadata_path(self) -> Path:
        return self.path / METADATA_FILE_NAME

    @property
    def lock_path(self) -> Path:
        return self.path / LOCK_FILE_NAME

    @property
    def target_dir(self) -> Path:
        return self.path / TARGET_DIR_NAME

    @property
    def line_map(self) -> LineMap:
        return self.record.line_map

    @property
    def is_built(self) -> bool:
        """Whether a successful build has been recorded for this entry."""

        return self.record.binary is not None

    @property
    def binary_path(self) -> Path | None:
        """Absolute path of the recorded binary, ``None`` while unbuilt."""

        if self.record.binary is None:
            return None
        return self.path / self.record.binary

    @property
    def last_used(self) -> float:
        """Modification time of the entry directory, refreshed on every use."""

        return self.path.stat().st_mtime


__all__ = ["CacheEntry", "FreshnessRecord"]
