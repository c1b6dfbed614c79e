"""Tests for the build orchestrator against a fake toolchain."""

from __future__ import annotations

import io
import sys
from pathlib import Path

import pytest
from pytest_mock import MockerFixture

from cargoscript.features.build import BuildFailed, BuildOrchestrator, BuildSuccess
from cargoscript.features.cache import CacheEntry, CacheStore
from cargoscript.features.hashing import CacheKey
from cargoscript.features.manifest import BuildProfile, extract_manifest
from cargoscript.features.synthesis import TemplateSynthesizer
from cargoscript.shared.errors import DiagnosticPosition, ToolchainError

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="fake binaries are shell scripts")

KEY = CacheKey("00112233445566778899aabbccddeeff")


def _entry(store: CacheStore, source: bytes) -> CacheEntry:
    extracted = extract_manifest(source)
    package = TemplateSynthesizer().synthesize(extracted, package_name="demo")
    return store.create(KEY, package, profile="debug", toolchain="fake", script="demo.crs")


def test_successful_build_marks_entry_built(store: CacheStore, fake_toolchain) -> None:
    entry = _entry(store, b"let x = 1;\n")
    output = io.StringIO()
    orchestrator = BuildOrchestrator(fake_toolchain, store, output=output)

    result = orchestrator.build(entry, profile=BuildProfile.DEBUG, display_name="demo.crs")

    assert isinstance(result, BuildSuccess)
    assert result.binary == entry.target_dir / "debug" / "demo"
    assert result.entry.is_built
    lookup = store.lookup(KEY)
    assert lookup is not None
    assert lookup.is_built
    assert output.getvalue() == ""
    assert fake_toolchain.builds == 1


def test_verbose_build_streams_remapped_output(store: CacheStore, fake_toolchain) -> None:
    entry = _entry(store, b"let x = 1;\n")
    output = io.StringIO()
    orchestrator = BuildOrchestrator(fake_toolchain, store, verbose=True, output=output)

    _ = orchestrator.build(entry, profile=BuildProfile.DEBUG, display_name="demo.crs")

    assert "Compiling demo v0.1.0 (demo.crs)" in output.getvalue()
    assert str(entry.path) not in output.getvalue()


def test_failed_build_replays_remapped_diagnostics(store: CacheStore, fake_toolchain) -> None:
    source = b'// cargo-deps: rand="0.8"\nlet x = 1;\nlet y = COMPILE_ERROR;\n'
    entry = _entry(store, source)
    output = io.StringIO()
    orchestrator = BuildOrchestrator(fake_toolchain, store, output=output)

    result = orchestrator.build(entry, profile=BuildProfile.DEBUG, display_name="/src/demo.crs")

    assert isinstance(result, BuildFailed)
    assert result.returncode == 101
    assert result.positions == (DiagnosticPosition(line=3, column=9),)
    assert " --> /src/demo.crs:3:9" in result.diagnostics
    assert output.getvalue() == result.diagnostics
    assert "demo.rs" not in result.diagnostics
    lookup = store.lookup(KEY)
    assert lookup is not None
    assert not lookup.is_built


def test_missing_binary_after_success_is_a_failure(
    store: CacheStore, fake_toolchain, mocker: MockerFixture
) -> None:
    entry = _entry(store, b"let x = 1;\n")
    _ = mocker.patch.object(
        fake_toolchain, "binary_path", return_value=entry.target_dir / "nowhere"
    )
    orchestrator = BuildOrchestrator(fake_toolchain, store, output=io.StringIO())

    result = orchestrator.build(entry, profile=BuildProfile.DEBUG, display_name="demo.crs")

    assert isinstance(result, BuildFailed)
    assert "no binary" in result.diagnostics
    lookup = store.lookup(KEY)
    assert lookup is not None
    assert not lookup.is_built


def test_missing_toolchain_raises(
    store: CacheStore, fake_toolchain, tmp_path: Path, mocker: MockerFixture
) -> None:
    entry = _entry(store, b"let x = 1;\n")
    _ = mocker.patch.object(
        fake_toolchain, "build_command", return_value=[str(tmp_path / "no-such-cargo"), "build"]
    )
    orchestrator = BuildOrchestrator(fake_toolchain, store, output=io.StringIO())

    with pytest.raises(ToolchainError):
        _ = orchestrator.build(entry, profile=BuildProfile.DEBUG, display_name="demo.crs")
