"""
Summary: Extract, synthesize, hash, build-if-needed and execute one script.
Why: Single place that sequences the pipeline and owns the cache-hit decision.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Final, final

from cargoscript.features.build import BuildFailed, BuildOrchestrator, Toolchain
from cargoscript.features.cache import CacheEntry, CacheStore
from cargoscript.features.execution import ExecutionOutcome, ExecutionRunner
from cargoscript.features.hashing import CacheKey, ContentHasher
from cargoscript.features.manifest import (
    BuildProfile,
    ExtractedScript,
    ManifestExtractor,
    ScriptKind,
)
from cargoscript.features.synthesis import (
    SynthesizedPackage,
    TemplateSynthesizer,
    package_name_for_kind,
)
from cargoscript.platform.logging import logger
from cargoscript.shared.errors import ArtifactMissing, BuildFailure, StoreError
from cargoscript.shared.script import Script

# Attempts at recreating an entry that another process purged meanwhile.
MAX_ENTRY_ATTEMPTS: Final[int] = 3


class RunMode(str, Enum):
    """How far the pipeline goes."""

    RUN = "run"
    BUILD_ONLY = "build-only"
    GEN_PKG_ONLY = "gen-pkg-only"


@dataclass(slots=True)
class RunRequest:
    """Parameters describing one invocation."""

    script: Script
    args: list[str] = field(default_factory=list)
    kind: ScriptKind | None = None
    dependencies: dict[str, Any] = field(default_factory=dict)
    profile: BuildProfile | None = None
    mode: RunMode = RunMode.RUN
    force: bool = False
    loop_count: bool = False
    cwd: Path | None = None
    env: Mapping[str, str] | None = None


@dataclass(slots=True, frozen=True)
class PreparedScript:
    """Everything derived from the script before touching the cache."""

    extracted: ExtractedScript
    package: SynthesizedPackage
    profile: BuildProfile
    toolchain_identity: str
    key: CacheKey


@dataclass(slots=True, frozen=True)
class RunResult:
    """Outcome of :meth:`RunScriptService.run`."""

    entry: CacheEntry
    built: bool
    outcome: ExecutionOutcome | None = None

    @property
    def exit_status(self) -> int:
        return self.outcome.exit_status if self.outcome is not None else 0


@final
class RunScriptService:
    """Application façade over extractor, synthesizer, hasher, store, builder and runner."""

    store: CacheStore
    toolchain: Toolchain
    default_profile: BuildProfile
    _extractor: ManifestExtractor
    _synthesizer: TemplateSynthesizer
    _hasher: ContentHasher
    _orchestrator: BuildOrchestrator
    _runner: ExecutionRunner

    def __init__(
        self,
        *,
        store: CacheStore,
        toolchain: Toolchain,
        default_profile: BuildProfile = BuildProfile.RELEASE,
        synthesizer: TemplateSynthesizer | None = None,
        orchestrator: BuildOrchestrator | None = None,
        runner: ExecutionRunner | None = None,
        verbose: bool = False,
    ) -> None:
        self.store = store
        self.toolchain = toolchain
        self.default_profile = default_profile
        self._extractor = ManifestExtractor()
        self._synthesizer = synthesizer or TemplateSynthesizer()
        self._hasher = ContentHasher()
        self._orchestrator = orchestrator or BuildOrchestrator(toolchain, store, verbose=verbose)
        self._runner = runner or ExecutionRunner()

    def prepare(self, request: RunRequest) -> PreparedScript:
        """Run the pure stages and compute the cache key.

        Extraction and synthesis errors surface here, before any cache entry or
        subprocess exists.
        """
        extracted = self._extractor.extract(request.script.content, kind=request.kind)
        if request.dependencies:
            extracted = ExtractedScript(
                manifest=extracted.manifest.with_dependencies(request.dependencies),
                kind=extracted.kind,
                body=extracted.body,
                manifest_lines=extracted.manifest_lines,
            )
        profile = request.profile or extracted.manifest.profile or self.default_profile
        package = self._synthesizer.synthesize(
            extracted,
            package_name=package_name_for_kind(extracted.kind),
            loop_count=request.loop_count,
        )
        identity = self.toolchain.identity()
        key = self._hasher.compute(
            extracted,
            package,
            toolchain_identity=identity,
            profile=profile,
            loop_count=request.loop_count,
        )
        logger.debug(
            "%s: kind=%s profile=%s key=%s",
            request.script.display_name,
            extracted.kind.value,
            profile.value,
            key,
        )
        return PreparedScript(
            extracted=extracted,
            package=package,
            profile=profile,
            toolchain_identity=identity,
            key=key,
        )

    def run(self, request: RunRequest) -> RunResult:
        """Execute the request according to its mode.

        Raises:
            ExtractionError: Malformed embedded manifest.
            BuildFailure: The toolchain rejected the script.
            Busy: Another process kept the build lock past the timeout.
            StoreError: Cache filesystem failure.
            ArtifactMissing: The binary vanished again right after a rebuild.
            ExecutionError: The binary could not be launched.
        """
        prepared = self.prepare(request)

        if request.mode is RunMode.GEN_PKG_ONLY:
            entry = self._create(prepared, request)
            return RunResult(entry=entry, built=False)

        entry, built = self.ensure_built(prepared, request, force=request.force)
        if request.mode is RunMode.BUILD_ONLY:
            return RunResult(entry=entry, built=built)

        try:
            outcome = self._runner.run(entry, request.args, cwd=request.cwd, env=request.env)
        except ArtifactMissing as exc:
            logger.warning("%s; rebuilding", exc)
            entry, rebuilt = self.ensure_built(prepared, request, force=False)
            built = built or rebuilt
            outcome = self._runner.run(entry, request.args, cwd=request.cwd, env=request.env)
        return RunResult(entry=entry, built=built, outcome=outcome)

    def ensure_built(
        self,
        prepared: PreparedScript,
        request: RunRequest,
        *,
        force: bool = False,
    ) -> tuple[CacheEntry, bool]:
        """Return a built entry for ``prepared`` and whether this call built it."""

        entry = self.store.lookup(prepared.key)
        if entry is not None and not force and _is_fresh(entry):
            logger.debug("Cache hit for %s", prepared.key)
            self.store.touch(entry)
            return entry, False

        logger.debug("Cache miss for %s", prepared.key)
        if entry is None:
            entry = self._create(prepared, request)

        display_name = request.script.display_name
        for _ in range(MAX_ENTRY_ATTEMPTS):
            try:
                with self.store.acquire_build_lock(entry):
                    current = self.store.lookup(prepared.key)
                    if current is None:
                        logger.debug("Entry %s was purged while waiting", prepared.key)
                    elif not force and _is_fresh(current):
                        logger.debug("Entry %s was built by another process", prepared.key)
                        self.store.touch(current)
                        return current, False
                    else:
                        result = self._orchestrator.build(
                            current, profile=prepared.profile, display_name=display_name
                        )
                        if isinstance(result, BuildFailed):
                            raise BuildFailure(
                                f"failed to build {display_name}",
                                diagnostics=result.diagnostics,
                                positions=result.positions,
                            )
                        return result.entry, True
            except StoreError:
                if entry.path.exists():
                    raise
                logger.debug("Entry %s disappeared before it could be locked", prepared.key)
            entry = self._create(prepared, request)

        raise StoreError("cache entry was removed repeatedly during the build", entry.path)

    def _create(self, prepared: PreparedScript, request: RunRequest) -> CacheEntry:
        return self.store.create(
            prepared.key,
            prepared.package,
            profile=prepared.profile.value,
            toolchain=prepared.toolchain_identity,
            script=request.script.display_name,
        )


def _is_fresh(entry: CacheEntry) -> bool:
    binary = entry.binary_path
    return binary is not None and binary.is_file()


__all__ = [
    "PreparedScript",
    "RunMode",
    "RunRequest",
    "RunResult",
    "RunScriptService",
]
