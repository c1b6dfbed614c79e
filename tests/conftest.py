"""Shared pytest fixtures: isolated cache roots and a fake build toolchain."""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

from cargoscript.features.cache import CacheStore
from cargoscript.features.manifest import BuildProfile

# Stands in for `cargo build`: records the invocation, fails on COMPILE_ERROR
# with a rustc-style location, otherwise writes a shell script as the binary.
FAKE_BUILD_SCRIPT = r"""
import os, pathlib, re, sys, time
manifest, target, profile, name, counter, delay = sys.argv[1:7]
with open(counter, "a", encoding="utf-8") as handle:
    handle.write("build\n")
time.sleep(float(delay))
package = pathlib.Path(manifest).parent
source_path = package / (name + ".rs")
source = source_path.read_text(encoding="utf-8")
print("   Compiling " + name + " v0.1.0 (" + str(package) + ")")
for number, line in enumerate(source.split("\n"), 1):
    if "COMPILE_ERROR" in line:
        column = line.index("COMPILE_ERROR") + 1
        print("error[E0425]: cannot find value `COMPILE_ERROR` in this scope")
        print(" --> " + str(source_path) + ":" + str(number) + ":" + str(column))
        sys.exit(101)
match = re.search(r"std::process::exit\((\d+)\)", source)
code = match.group(1) if match else "0"
binary = pathlib.Path(target) / profile / name
binary.parent.mkdir(parents=True, exist_ok=True)
binary.write_text('#!/bin/sh\necho "$@"\nexit ' + code + "\n", encoding="utf-8")
os.chmod(binary, 0o755)
"""


class FakeToolchain:
    """Toolchain port implementation backed by the running Python interpreter."""

    def __init__(self, counter: Path, *, identity: str = "fake-rustc 1.0", delay: float = 0.0) -> None:
        self.counter = counter
        self._identity = identity
        self.delay = delay
        self.identity_calls = 0

    def identity(self) -> str:
        self.identity_calls += 1
        return self._identity

    def build_command(
        self,
        manifest_path: Path,
        *,
        target_dir: Path,
        profile: BuildProfile,
    ) -> list[str]:
        return [
            sys.executable,
            "-c",
            FAKE_BUILD_SCRIPT,
            str(manifest_path),
            str(target_dir),
            profile.value,
            self._package_name(manifest_path),
            str(self.counter),
            str(self.delay),
        ]

    def binary_path(self, target_dir: Path, *, package_name: str, profile: BuildProfile) -> Path:
        return target_dir / profile.value / package_name

    @property
    def builds(self) -> int:
        if not self.counter.exists():
            return 0
        return len(self.counter.read_text(encoding="utf-8").splitlines())

    @staticmethod
    def _package_name(manifest_path: Path) -> str:
        rs_files = sorted(manifest_path.parent.glob("*.rs"))
        return rs_files[0].stem


@pytest.fixture
def cache_root(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def store(cache_root: Path) -> CacheStore:
    return CacheStore(cache_root, lock_timeout=5.0, poll_interval=0.01)


@pytest.fixture
def fake_toolchain(tmp_path: Path) -> FakeToolchain:
    return FakeToolchain(tmp_path / "builds.log")


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Point configuration and cache lookups at the test's temporary directory."""

    import cargoscript.config.config as config_module

    monkeypatch.setenv("CARGOSCRIPT_CONFIG", str(tmp_path / "config" / "config.toml"))
    monkeypatch.setenv("CARGOSCRIPT_CACHE_DIR", str(tmp_path / "env-cache"))
    config_module.Config.reset()
    try:
        yield None
    finally:
        config_module.Config.reset()

