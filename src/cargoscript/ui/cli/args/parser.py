"""Command line argument parser."""

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any, Final, final

from cargoscript import __version__
from cargoscript.application.services.run_service import RunMode
from cargoscript.config.config import Config
from cargoscript.features.manifest import BuildProfile, ScriptKind
from cargoscript.platform.logging import logger, setup_logger
from cargoscript.ui.cli.args.options import CacheArgs, CLIArgs, ConfigArgs, RunArgs

COMMANDS: Final[frozenset[str]] = frozenset(
    {"run", "expr", "loop", "list", "clear-cache", "config"}
)
TOP_LEVEL_FLAGS: Final[frozenset[str]] = frozenset({"-h", "--help", "--version"})


@final
class ArgumentParser:
    """Command line argument parser."""

    @staticmethod
    def create_parser() -> argparse.ArgumentParser:
        """Create argument parser.

        Returns:
            argparse.ArgumentParser: Configured argument parser.
        """
        parser = argparse.ArgumentParser(
            prog="cargoscript",
            description="Run Rust source files as scripts. Builds are cached by content.",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="A script path given without a command is run: `cargoscript hello.crs`.",
        )
        _ = parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

        subparsers = parser.add_subparsers(dest="command", required=True)

        run_parser = subparsers.add_parser("run", help="Build (if needed) and run a script file")
        ArgumentParser._configure_build_options(run_parser)
        _ = run_parser.add_argument(
            "script",
            type=str,
            help="Path to the script; '-' reads it from standard input",
            metavar="SCRIPT",
        )
        _ = run_parser.add_argument(
            "args",
            nargs=argparse.REMAINDER,
            help="Arguments passed to the script",
        )

        expr_parser = subparsers.add_parser("expr", help="Evaluate a Rust expression and print it")
        ArgumentParser._configure_build_options(expr_parser)
        _ = expr_parser.add_argument("source", type=str, metavar="EXPR")
        _ = expr_parser.add_argument("args", nargs=argparse.REMAINDER)

        loop_parser = subparsers.add_parser(
            "loop", help="Call a closure once per line of standard input"
        )
        ArgumentParser._configure_build_options(loop_parser)
        _ = loop_parser.add_argument(
            "--count",
            action="store_true",
            help="Also pass the 1-based line number to the closure",
        )
        _ = loop_parser.add_argument("source", type=str, metavar="CLOSURE")
        _ = loop_parser.add_argument("args", nargs=argparse.REMAINDER)

        list_parser = subparsers.add_parser("list", help="Show cached script builds")
        ArgumentParser._configure_cache_options(list_parser)

        clear_parser = subparsers.add_parser(
            "clear-cache", help="Remove cache entries unused for a while"
        )
        ArgumentParser._configure_cache_options(clear_parser)
        _ = clear_parser.add_argument(
            "--all",
            action="store_true",
            help="Remove every entry regardless of age",
        )

        config_parser = subparsers.add_parser(
            "config", help="Create the configuration file if missing and show its location"
        )
        _ = config_parser.add_argument(
            "--path",
            type=str,
            help="Configuration file to create instead of the default location",
            metavar="FILE",
        )

        return parser

    @staticmethod
    def normalize(args_list: Sequence[str]) -> list[str]:
        """Insert ``run`` when invoked as ``cargoscript SCRIPT ...`` (for example from a shebang)."""

        normalized = list(args_list)
        if normalized and normalized[0] not in COMMANDS and normalized[0] not in TOP_LEVEL_FLAGS:
            normalized.insert(0, "run")
        return normalized

    @staticmethod
    def process_args(args_list: Sequence[str] | None = None) -> CLIArgs:
        """Process command line arguments.

        Args:
            args_list: List of command line arguments (for testing).

        Returns:
            CLIArgs: Processed command line arguments.

        Raises:
            SystemExit: If the arguments are invalid.
        """
        raw = list(sys.argv[1:] if args_list is None else args_list)
        parser = ArgumentParser.create_parser()
        parsed_args = parser.parse_args(ArgumentParser.normalize(raw))

        # Set log level based on verbosity flags
        is_quiet = bool(getattr(parsed_args, "quiet", False))
        is_verbose = bool(getattr(parsed_args, "verbose", False))

        if is_quiet:
            log_level = logging.ERROR
        elif is_verbose:
            log_level = logging.DEBUG
        else:
            log_level = logging.WARNING

        configuration = Config.load()
        _ = setup_logger(log_file=configuration.log_file, console_level=log_level)

        command: str = parsed_args.command

        if command in {"run", "expr", "loop"}:
            return ArgumentParser._process_run(parser, parsed_args)

        if command in {"list", "clear-cache"}:
            return CacheArgs(
                command=command,  # pyright: ignore[reportArgumentType]
                clear_all=bool(getattr(parsed_args, "all", False)),
                cache_dir=Path(parsed_args.cache_dir) if parsed_args.cache_dir else None,
                verbose=is_verbose,
                quiet=is_quiet,
            )

        if command == "config":
            return ConfigArgs(
                command="config",
                path=Path(parsed_args.path).expanduser() if parsed_args.path else None,
            )

        logger.error("Unsupported command: %s", command)
        sys.exit(2)

    @staticmethod
    def _configure_build_options(parser: argparse.ArgumentParser) -> None:
        """Apply options shared by every subcommand that builds a script."""

        _ = parser.add_argument(
            "-d",
            "--dep",
            action="append",
            default=[],
            help="Extra dependency NAME[=VERSION]; may be repeated",
            metavar="DEP",
        )
        profile_group = parser.add_mutually_exclusive_group()
        _ = profile_group.add_argument(
            "--debug",
            dest="profile",
            action="store_const",
            const=BuildProfile.DEBUG.value,
            help="Build without optimizations",
        )
        _ = profile_group.add_argument(
            "--release",
            dest="profile",
            action="store_const",
            const=BuildProfile.RELEASE.value,
            help="Build with optimizations",
        )
        mode_group = parser.add_mutually_exclusive_group()
        _ = mode_group.add_argument(
            "--build-only",
            dest="mode",
            action="store_const",
            const=RunMode.BUILD_ONLY.value,
            help="Build the script but do not run it",
        )
        _ = mode_group.add_argument(
            "--gen-pkg-only",
            dest="mode",
            action="store_const",
            const=RunMode.GEN_PKG_ONLY.value,
            help="Generate the package, print its directory and stop",
        )
        _ = parser.add_argument(
            "--force",
            action="store_true",
            help="Rebuild even if a cached binary exists",
        )
        ArgumentParser._configure_cache_options(parser)

    @staticmethod
    def _configure_cache_options(parser: argparse.ArgumentParser) -> None:
        _ = parser.add_argument(
            "--cache-dir",
            type=str,
            help="Cache root to use instead of the configured one",
            metavar="DIR",
        )
        verbosity = parser.add_mutually_exclusive_group()
        _ = verbosity.add_argument(
            "-v",
            "--verbose",
            action="store_true",
            help="Show build output and debug logging",
        )
        _ = verbosity.add_argument(
            "-q",
            "--quiet",
            action="store_true",
            help="Suppress all output except errors",
        )

    @staticmethod
    def _process_run(parser: argparse.ArgumentParser, parsed_args: argparse.Namespace) -> RunArgs:
        command: str = parsed_args.command
        dependencies: dict[str, Any] = {}
        for spec in parsed_args.dep:
            try:
                name, version = parse_dependency(spec)
            except ValueError as exc:
                parser.error(str(exc))
            dependencies[name] = version

        script_path: Path | None = None
        source: str | None = None
        kind: ScriptKind | None = None
        if command == "run":
            script_path = None if parsed_args.script == "-" else Path(parsed_args.script)
        else:
            source = parsed_args.source
            kind = ScriptKind.EXPRESSION if command == "expr" else ScriptKind.LOOP

        args: list[str] = list(parsed_args.args)
        if args and args[0] == "--":
            args = args[1:]

        return RunArgs(
            command=command,  # pyright: ignore[reportArgumentType]
            script_path=script_path,
            source=source,
            args=args,
            kind=kind,
            dependencies=dependencies,
            profile=BuildProfile(parsed_args.profile) if parsed_args.profile else None,
            mode=RunMode(parsed_args.mode) if parsed_args.mode else RunMode.RUN,
            force=parsed_args.force,
            loop_count=bool(getattr(parsed_args, "count", False)),
            cache_dir=Path(parsed_args.cache_dir) if parsed_args.cache_dir else None,
            verbose=parsed_args.verbose,
            quiet=parsed_args.quiet,
        )


def parse_dependency(spec: str) -> tuple[str, str]:
    """Split ``NAME[=VERSION]``; a bare name means any version.

    >>> parse_dependency("regex=1.10")
    ('regex', '1.10')
    >>> parse_dependency("rand")
    ('rand', '*')
    """
    name, sep, version = spec.partition("=")
    name = name.strip()
    version = version.strip().strip('"')
    if not name or (sep and not version):
        raise ValueError(f"invalid dependency '{spec}'; expected NAME or NAME=VERSION")
    return name, version or "*"
