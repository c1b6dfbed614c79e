"""Run command implementation for the CLI."""

from __future__ import annotations

import sys
from collections.abc import Callable
from typing import final

from rich.console import Console

from cargoscript.application.services.run_service import (
    RunMode,
    RunRequest,
    RunResult,
    RunScriptService,
)
from cargoscript.config.config import Config
from cargoscript.config.paths import default_cache_dir
from cargoscript.config.settings import (
    EXPR_PACKAGE_NAME,
    LOOP_PACKAGE_NAME,
    STDIN_SCRIPT_NAME,
)
from cargoscript.features.cache import CacheStore
from cargoscript.features.manifest import BuildProfile
from cargoscript.features.synthesis import TemplateSynthesizer
from cargoscript.platform.toolchain import CargoToolchain
from cargoscript.shared.script import Script
from cargoscript.ui.cli.args.options import RunArgs


@final
class RunCommand:
    """Command that builds (if needed) and runs a script file or inline source."""

    def __init__(
        self,
        args: RunArgs,
        *,
        service_factory: Callable[[RunArgs, Config], RunScriptService] | None = None,
        console: Console | None = None,
    ) -> None:
        self.args = args
        self._service_factory = service_factory or self._default_service_factory
        self._console = console or Console(soft_wrap=True, highlight=False)

    def execute(self) -> int:
        """Execute the run command and return the exit status to propagate."""

        configuration = Config.load()
        service = self._service_factory(self.args, configuration)
        request = RunRequest(
            script=self._load_script(),
            args=self.args.args,
            kind=self.args.kind,
            dependencies=self.args.dependencies,
            profile=self.args.profile,
            mode=self.args.mode,
            force=self.args.force,
            loop_count=self.args.loop_count,
        )
        result = service.run(request)
        self._report(result)
        return result.exit_status

    def _load_script(self) -> Script:
        if self.args.source is not None:
            name = EXPR_PACKAGE_NAME if self.args.command == "expr" else LOOP_PACKAGE_NAME
            return Script.from_text(self.args.source, name=name)
        if self.args.script_path is None:
            return Script.from_text(sys.stdin.read(), name=STDIN_SCRIPT_NAME)
        return Script.from_path(self.args.script_path)

    def _report(self, result: RunResult) -> None:
        if self.args.mode is RunMode.GEN_PKG_ONLY:
            self._console.print(str(result.entry.path))
        elif self.args.mode is RunMode.BUILD_ONLY and not self.args.quiet:
            binary = result.entry.binary_path
            self._console.print(str(binary) if binary is not None else "")

    @staticmethod
    def _default_service_factory(args: RunArgs, configuration: Config) -> RunScriptService:
        root = default_cache_dir(args.cache_dir, configured=configuration.cache_dir)
        store = CacheStore(root, lock_timeout=configuration.lock_timeout)
        toolchain = CargoToolchain(cargo=configuration.cargo, rustc=configuration.rustc)
        return RunScriptService(
            store=store,
            toolchain=toolchain,
            default_profile=BuildProfile.from_user_input(configuration.default_profile),
            synthesizer=TemplateSynthesizer(edition=configuration.edition),
            verbose=args.verbose,
        )
