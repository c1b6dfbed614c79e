"""End-to-end tests of the run pipeline with a fake toolchain."""

from __future__ import annotations

import os
import shutil
import subprocess
import sys
import threading
from pathlib import Path
from typing import Any

import pytest
from pytest_mock import MockerFixture

from cargoscript.application.services.run_service import (
    RunMode,
    RunRequest,
    RunScriptService,
)
from cargoscript.features.build import BuildOrchestrator
from cargoscript.features.cache import CacheStore
from cargoscript.features.manifest import BuildProfile, ScriptKind
from cargoscript.platform.toolchain import CargoToolchain
from cargoscript.shared.errors import BuildFailure, ExtractionError
from cargoscript.shared.script import Script

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="fake binaries are shell scripts")

BARE_SCRIPT = (
    "//! ```cargo\n"
    "//! [dependencies]\n"
    '//! time = "0.1.25"\n'
    "//! ```\n"
    'println!("hello");\n'
    "std::process::exit(7);\n"
)


def _service(store: CacheStore, toolchain) -> RunScriptService:
    orchestrator = BuildOrchestrator(toolchain, store)
    return RunScriptService(store=store, toolchain=toolchain, orchestrator=orchestrator)


def _script(tmp_path: Path, text: str, name: str = "hello.crs") -> Script:
    path = tmp_path / name
    _ = path.write_text(text, encoding="utf-8")
    return Script.from_path(path)


def test_first_run_builds_and_forwards_exit_code(
    store: CacheStore, fake_toolchain, tmp_path: Path, capfd: pytest.CaptureFixture[str]
) -> None:
    service = _service(store, fake_toolchain)

    result = service.run(RunRequest(script=_script(tmp_path, BARE_SCRIPT), args=["x", "y"]))

    assert result.built
    assert result.exit_status == 7
    assert result.entry.is_built
    assert fake_toolchain.builds == 1
    assert capfd.readouterr().out == "x y\n"


def test_second_run_is_a_cache_hit(store: CacheStore, fake_toolchain, tmp_path: Path) -> None:
    service = _service(store, fake_toolchain)
    script = _script(tmp_path, BARE_SCRIPT)

    first = service.run(RunRequest(script=script))
    second = service.run(RunRequest(script=script))

    assert fake_toolchain.builds == 1
    assert not second.built
    assert second.entry.key == first.entry.key
    assert second.exit_status == first.exit_status


def test_changed_script_builds_a_new_entry(
    store: CacheStore, fake_toolchain, tmp_path: Path
) -> None:
    service = _service(store, fake_toolchain)

    first = service.run(RunRequest(script=_script(tmp_path, BARE_SCRIPT)))
    changed = BARE_SCRIPT.replace("exit(7)", "exit(3)")
    second = service.run(RunRequest(script=_script(tmp_path, changed)))

    assert fake_toolchain.builds == 2
    assert second.entry.key != first.entry.key
    assert second.exit_status == 3
    assert first.entry.path.exists()


def test_identical_scripts_share_an_entry_whatever_their_names(
    store: CacheStore, fake_toolchain, tmp_path: Path
) -> None:
    service = _service(store, fake_toolchain)
    alpha = _script(tmp_path, BARE_SCRIPT, name="alpha.crs")
    beta = _script(tmp_path, BARE_SCRIPT, name="beta.rs")

    assert service.prepare(RunRequest(script=alpha)).key == service.prepare(
        RunRequest(script=beta)
    ).key
    first = service.run(RunRequest(script=alpha))
    second = service.run(RunRequest(script=beta))

    assert first.built
    assert not second.built
    assert second.entry.key == first.entry.key
    assert fake_toolchain.builds == 1
    assert second.exit_status == 7


def test_profile_resolution_order(store: CacheStore, fake_toolchain, tmp_path: Path) -> None:
    service = _service(store, fake_toolchain)
    script = _script(tmp_path, '//! ```cargo\n//! [script]\n//! profile = "debug"\n//! ```\n1\n')

    assert service.prepare(RunRequest(script=script)).profile is BuildProfile.DEBUG
    overridden = RunRequest(script=script, profile=BuildProfile.RELEASE)
    assert service.prepare(overridden).profile is BuildProfile.RELEASE
    plain = _script(tmp_path, "1\n", name="plain.crs")
    assert service.prepare(RunRequest(script=plain)).profile is BuildProfile.RELEASE


def test_command_line_dependencies_change_the_key(
    store: CacheStore, fake_toolchain, tmp_path: Path
) -> None:
    service = _service(store, fake_toolchain)
    script = _script(tmp_path, BARE_SCRIPT)

    base = service.prepare(RunRequest(script=script))
    extra = service.prepare(RunRequest(script=script, dependencies={"rand": "0.8"}))

    assert base.key != extra.key
    assert 'rand = "0.8"' in extra.package.manifest_text


def test_malformed_manifest_fails_before_any_side_effect(
    store: CacheStore, fake_toolchain, tmp_path: Path
) -> None:
    service = _service(store, fake_toolchain)
    script = _script(tmp_path, "//! ```cargo\n//! [dependencies\n//! ```\nfn main() {}\n")

    with pytest.raises(ExtractionError):
        _ = service.run(RunRequest(script=script))

    assert fake_toolchain.builds == 0
    assert fake_toolchain.identity_calls == 0
    assert not store.root.exists() or not any(store.root.iterdir())


def test_build_failure_leaves_entry_unbuilt_and_retry_rebuilds(
    store: CacheStore, fake_toolchain, tmp_path: Path
) -> None:
    service = _service(store, fake_toolchain)
    broken = _script(tmp_path, "let x = COMPILE_ERROR;\n")

    with pytest.raises(BuildFailure) as excinfo:
        _ = service.run(RunRequest(script=broken))
    with pytest.raises(BuildFailure):
        _ = service.run(RunRequest(script=broken))

    assert excinfo.value.positions[0].line == 1
    assert str(broken.path) in excinfo.value.diagnostics
    assert fake_toolchain.builds == 2
    entries = store.entries()
    assert len(entries) == 1
    assert not entries[0].is_built


def test_form_feed_does_not_shift_diagnostic_lines(
    store: CacheStore, fake_toolchain, tmp_path: Path
) -> None:
    service = _service(store, fake_toolchain)
    broken = _script(tmp_path, "let a = 1;\x0c let b = 2;\nlet c = COMPILE_ERROR;\n")

    with pytest.raises(BuildFailure) as excinfo:
        _ = service.run(RunRequest(script=broken))

    assert excinfo.value.positions[0].line == 2
    assert f"{broken.path}:2:9" in excinfo.value.diagnostics


def test_missing_artifact_triggers_one_rebuild(
    store: CacheStore, fake_toolchain, tmp_path: Path
) -> None:
    service = _service(store, fake_toolchain)
    script = _script(tmp_path, BARE_SCRIPT)
    first = service.run(RunRequest(script=script))
    assert first.entry.binary_path is not None
    first.entry.binary_path.unlink()

    second = service.run(RunRequest(script=script))

    assert second.built
    assert second.exit_status == 7
    assert fake_toolchain.builds == 2
    assert second.entry.record.build_count == 2


def test_force_rebuilds(store: CacheStore, fake_toolchain, tmp_path: Path) -> None:
    service = _service(store, fake_toolchain)
    script = _script(tmp_path, BARE_SCRIPT)

    _ = service.run(RunRequest(script=script, mode=RunMode.BUILD_ONLY))
    forced = service.run(RunRequest(script=script, mode=RunMode.BUILD_ONLY, force=True))

    assert forced.built
    assert forced.outcome is None
    assert fake_toolchain.builds == 2


def test_gen_pkg_only_creates_entry_without_building(
    store: CacheStore, fake_toolchain, tmp_path: Path
) -> None:
    service = _service(store, fake_toolchain)

    result = service.run(
        RunRequest(script=_script(tmp_path, BARE_SCRIPT), mode=RunMode.GEN_PKG_ONLY)
    )

    assert fake_toolchain.builds == 0
    assert not result.entry.is_built
    assert result.entry.manifest_path.exists()
    assert result.exit_status == 0


def test_inline_expression_and_loop(store: CacheStore, fake_toolchain) -> None:
    service = _service(store, fake_toolchain)

    expr = service.prepare(
        RunRequest(script=Script.from_text("1 + 1", name="expr"), kind=ScriptKind.EXPRESSION)
    )
    loop = service.prepare(
        RunRequest(
            script=Script.from_text("|l, n| (n, l)", name="loop"),
            kind=ScriptKind.LOOP,
            loop_count=True,
        )
    )

    assert expr.extracted.kind is ScriptKind.EXPRESSION
    assert expr.package.name == "expr"
    assert loop.extracted.kind is ScriptKind.LOOP
    assert loop.package.name == "script_loop"


def test_concurrent_invocations_build_once(
    store: CacheStore, fake_toolchain, tmp_path: Path
) -> None:
    toolchain = fake_toolchain
    toolchain.delay = 0.5
    script = _script(tmp_path, BARE_SCRIPT)
    results: list[int] = []
    errors: list[BaseException] = []

    def invoke() -> None:
        try:
            service = _service(store, toolchain)
            results.append(service.run(RunRequest(script=script)).exit_status)
        except BaseException as exc:  # pragma: no cover - surfaced by the assertion below
            errors.append(exc)

    threads = [threading.Thread(target=invoke) for _ in range(3)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert results == [7, 7, 7]
    assert toolchain.builds == 1


INVOKE_IN_PROCESS = """
import sys
from pathlib import Path

from conftest import FakeToolchain

from cargoscript.application.services.run_service import RunRequest, RunScriptService
from cargoscript.features.cache import CacheStore
from cargoscript.shared.script import Script

root, counter, script = sys.argv[1:4]
toolchain = FakeToolchain(Path(counter), delay=0.5)
store = CacheStore(Path(root), lock_timeout=30.0, poll_interval=0.01)
service = RunScriptService(store=store, toolchain=toolchain)
sys.exit(service.run(RunRequest(script=Script.from_path(Path(script)))).exit_status)
"""


def test_concurrent_processes_build_once(
    store: CacheStore, fake_toolchain, tmp_path: Path
) -> None:
    script = _script(tmp_path, BARE_SCRIPT)
    assert script.path is not None
    env = {**os.environ, "PYTHONPATH": os.pathsep.join(sys.path)}
    command = [
        sys.executable,
        "-c",
        INVOKE_IN_PROCESS,
        str(store.root),
        str(fake_toolchain.counter),
        str(script.path),
    ]

    processes = [
        subprocess.Popen(command, env=env, stdout=subprocess.DEVNULL, stderr=subprocess.PIPE)
        for _ in range(2)
    ]
    errors = [process.communicate(timeout=60)[1] for process in processes]

    assert [process.returncode for process in processes] == [7, 7], errors
    assert fake_toolchain.builds == 1
    entries = store.entries()
    assert len(entries) == 1
    assert entries[0].record.build_count == 1


@pytest.mark.skipif(shutil.which("cargo") is None, reason="cargo is not installed")
def test_real_cargo_evaluates_expression(store: CacheStore, capfd: pytest.CaptureFixture[str]) -> None:
    toolchain = CargoToolchain()
    service = _service(store, toolchain)

    result = service.run(
        RunRequest(
            script=Script.from_text("1 + 1", name="expr"),
            kind=ScriptKind.EXPRESSION,
            profile=BuildProfile.DEBUG,
        )
    )

    assert result.exit_status == 0
    assert capfd.readouterr().out == "2\n"


def test_artifact_vanishing_before_launch_is_rebuilt_once(
    store: CacheStore, fake_toolchain, tmp_path: Path, mocker: MockerFixture
) -> None:
    service = _service(store, fake_toolchain)
    script = _script(tmp_path, BARE_SCRIPT)
    _ = service.run(RunRequest(script=script, mode=RunMode.BUILD_ONLY))
    entry = store.entries()[0]
    assert entry.binary_path is not None
    binary = entry.binary_path
    runner = service._runner  # pyright: ignore[reportPrivateUsage]
    original_run = runner.run
    calls: list[int] = []

    def delete_then_run(*args: Any, **kwargs: Any) -> Any:
        calls.append(1)
        if len(calls) == 1:
            binary.unlink()
        return original_run(*args, **kwargs)

    _ = mocker.patch.object(runner, "run", side_effect=delete_then_run)

    result = service.run(RunRequest(script=script))

    assert len(calls) == 2
    assert result.built
    assert result.exit_status == 7
    assert fake_toolchain.builds == 2
