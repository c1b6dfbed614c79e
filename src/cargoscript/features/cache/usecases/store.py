"""
Summary: Filesystem-backed, hash-keyed store of synthesized packages and binaries.
Why: Separate invocations are separate processes, so all coordination lives on disk.
"""

from __future__ import annotations

import os
import re
import shutil
import tempfile
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import ClassVar, final

from filelock import FileLock, Timeout

from cargoscript.config.file_ops import write_text_atomic, write_text_file
from cargoscript.config.settings import (
    LOCK_FILE_NAME,
    LOCK_POLL_INTERVAL,
    MANIFEST_FILE_NAME,
    METADATA_FILE_NAME,
    TEMPLATE_VERSION,
)
from cargoscript.features.hashing import CacheKey
from cargoscript.features.synthesis import SynthesizedPackage
from cargoscript.platform.filesystem import ensure_directory, touch_directory
from cargoscript.platform.logging import logger
from cargoscript.shared.errors import Busy, StoreError

from ..domain.models import CacheEntry, FreshnessRecord


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@final
class CacheStore:
    """Content-addressed cache rooted at an explicit directory.

    Layout: ``<root>/<key>/`` holds ``Cargo.toml``, the synthesized source,
    ``metadata.json`` and, once built, ``target/<profile>/<binary>``.
    Entries appear atomically (staged in a hidden directory, then renamed) and
    their sources are never rewritten.
    """

    KEY_PATTERN: ClassVar[re.Pattern[str]] = re.compile(r"^[0-9a-f]{8,64}$")

    root: Path
    lock_timeout: float
    poll_interval: float

    def __init__(
        self,
        root: Path,
        *,
        lock_timeout: float = 600.0,
        poll_interval: float = LOCK_POLL_INTERVAL,
    ) -> None:
        self.root = root
        self.lock_timeout = lock_timeout
        self.poll_interval = poll_interval

    def entry_dir(self, key: CacheKey) -> Path:
        if not self.KEY_PATTERN.match(key):
            raise ValueError(f"invalid cache key: {key!r}")
        return self.root / key

    def lookup(self, key: CacheKey) -> CacheEntry | None:
        """Return the entry for ``key``, or ``None`` if absent or unreadable."""

        path = self.entry_dir(key)
        metadata = path / METADATA_FILE_NAME
        try:
            text = metadata.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StoreError(f"cannot read cache metadata ({exc.strerror})", metadata) from exc

        try:
            record = FreshnessRecord.from_json(text)
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Ignoring corrupt cache metadata %s: %s", metadata, exc)
            return None
        if record.key != key:
            logger.warning("Cache metadata %s belongs to key %s", metadata, record.key)
            return None
        return CacheEntry(key=key, path=path, record=record)

    def create(
        self,
        key: CacheKey,
        package: SynthesizedPackage,
        *,
        profile: str,
        toolchain: str,
        script: str | None = None,
    ) -> CacheEntry:
        """Create the entry for ``key``; an existing entry is returned untouched.

        Raises:
            StoreError: On filesystem failure.
        """
        existing = self.lookup(key)
        if existing is not None:
            return existing

        final_dir = self.entry_dir(key)
        if final_dir.exists():
            # Directory without readable metadata: damaged, not a live entry.
            logger.warning("Replacing damaged cache entry %s", final_dir)
            self._discard(final_dir)

        record = FreshnessRecord(
            key=key,
            package_name=package.name,
            source_file=package.source_file,
            line_map=package.line_map,
            profile=profile,
            toolchain=toolchain,
            template_version=TEMPLATE_VERSION,
            script=script,
            created_at=_now(),
        )

        try:
            _ = ensure_directory(self.root)
            staging = Path(tempfile.mkdtemp(prefix=f".{key}.", dir=self.root))
        except OSError as exc:
            raise StoreError(f"cannot create cache directory ({exc.strerror})", self.root) from exc

        try:
            write_text_file(staging / MANIFEST_FILE_NAME, package.manifest_text)
            write_text_file(staging / package.source_file, package.source_text)
            write_text_file(staging / METADATA_FILE_NAME, record.to_json())
            (staging / LOCK_FILE_NAME).touch()
            os.rename(staging, final_dir)
        except OSError as exc:
            shutil.rmtree(staging, ignore_errors=True)
            winner = self.lookup(key)
            if winner is not None:
                logger.debug("Cache entry %s was created concurrently", key)
                return winner
            raise StoreError(f"cannot create cache entry ({exc.strerror})", final_dir) from exc

        logger.debug("Created cache entry %s for %s", final_dir, script or package.name)
        return CacheEntry(key=key, path=final_dir, record=record)

    def mark_built(self, entry: CacheEntry, binary: Path) -> CacheEntry:
        """Record ``binary`` as the entry's artifact; only called after a successful build.

        Raises:
            StoreError: If ``binary`` lies outside the entry or metadata cannot be written.
        """
        try:
            relative = binary.resolve().relative_to(entry.path.resolve())
        except ValueError as exc:
            raise StoreError("binary is outside its cache entry", binary) from exc

        current = self.lookup(entry.key) or entry
        promoted = current.record.promoted(relative.as_posix(), _now())
        try:
            write_text_atomic(entry.metadata_path, promoted.to_json())
        except OSError as exc:
            raise StoreError(
                f"cannot write cache metadata ({exc.strerror})", entry.metadata_path
            ) from exc
        logger.debug("Marked %s built (build #%d)", entry.key, promoted.build_count)
        return CacheEntry(key=entry.key, path=entry.path, record=promoted)

    @contextmanager
    def acquire_build_lock(
        self,
        entry: CacheEntry,
        *,
        timeout: float | None = None,
    ) -> Iterator[FileLock]:
        """Hold the entry's exclusive build lock for the duration of the block.

        The lock is an OS file lock tied to an open handle, so it is released
        when the holding process exits, however it exits.

        Raises:
            Busy: If another process keeps the lock past the timeout.
            StoreError: If the lock file cannot be opened.
        """
        limit = self.lock_timeout if timeout is None else timeout
        lock = FileLock(entry.lock_path)
        started = time.monotonic()
        try:
            try:
                _ = lock.acquire(blocking=False)
            except Timeout:
                logger.info("Waiting for another process building %s", entry.key)
                _ = lock.acquire(timeout=limit, poll_interval=self.poll_interval)
        except Timeout as exc:
            raise Busy(entry.key, time.monotonic() - started) from exc
        except OSError as exc:
            raise StoreError(f"cannot open build lock ({exc.strerror})", entry.lock_path) from exc

        try:
            yield lock
        finally:
            lock.release()

    def purge(self, key: CacheKey, *, timeout: float | None = None) -> bool:
        """Remove the entry for ``key``; returns False when there was none.

        The build lock is taken first so an in-progress build is never removed.

        Raises:
            Busy: If the entry is being built.
            StoreError: On filesystem failure.
        """
        path = self.entry_dir(key)
        if not path.exists():
            return False

        lock = FileLock(path / LOCK_FILE_NAME)
        started = time.monotonic()
        try:
            _ = lock.acquire(
                timeout=self.lock_timeout if timeout is None else timeout,
                poll_interval=self.poll_interval,
            )
        except Timeout as exc:
            raise Busy(key, time.monotonic() - started) from exc
        except OSError as exc:
            raise StoreError(f"cannot open build lock ({exc.strerror})", path) from exc

        try:
            trash = self._trash_path(key)
            try:
                os.rename(path, trash)
            except FileNotFoundError:
                return False
            except OSError as exc:
                raise StoreError(f"cannot remove cache entry ({exc.strerror})", path) from exc
        finally:
            lock.release()

        shutil.rmtree(trash, ignore_errors=True)
        logger.info("Purged cache entry %s", key)
        return True

    def touch(self, entry: CacheEntry) -> None:
        """Mark ``entry`` as used now; failures only cost pruning accuracy."""

        try:
            touch_directory(entry.path)
        except OSError as exc:
            logger.debug("Could not refresh last-use time of %s: %s", entry.path, exc)

    def entries(self) -> list[CacheEntry]:
        """Return every readable entry, most recently used first."""

        if not self.root.is_dir():
            return []
        found: list[CacheEntry] = []
        for child in self.root.iterdir():
            if not child.is_dir() or not self.KEY_PATTERN.match(child.name):
                continue
            entry = self.lookup(CacheKey(child.name))
            if entry is not None:
                found.append(entry)
        return sorted(found, key=lambda e: e.last_used, reverse=True)

    def prune(self, max_age: timedelta | None = None) -> list[CacheKey]:
        """Purge entries unused for longer than ``max_age`` (all entries if ``None``).

        Entries busy building are skipped.
        """
        cutoff = None if max_age is None else time.time() - max_age.total_seconds()
        purged: list[CacheKey] = []
        for entry in self.entries():
            if cutoff is not None and entry.last_used >= cutoff:
                continue
            try:
                if self.purge(entry.key, timeout=0):
                    purged.append(entry.key)
            except Busy:
                logger.info("Skipping %s: a build is in progress", entry.key)
        self._sweep_leftovers()
        return purged

    def _trash_path(self, key: str) -> Path:
        return self.root / f".trash-{key}-{uuid.uuid4().hex[:8]}"

    def _discard(self, path: Path) -> None:
        trash = self._trash_path(path.name)
        try:
            os.rename(path, trash)
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StoreError(f"cannot remove damaged cache entry ({exc.strerror})", path) from exc
        shutil.rmtree(trash, ignore_errors=True)

    def _sweep_leftovers(self) -> None:
        """Remove stale staging and trash directories left by crashed processes."""

        cutoff = time.time() - 3600
        for child in self.root.iterdir():
            if not child.name.startswith(".") or not child.is_dir():
                continue
            try:
                if child.stat().st_mtime < cutoff:
                    shutil.rmtree(child, ignore_errors=True)
            except OSError:
                continue


__all__ = ["CacheStore"]
