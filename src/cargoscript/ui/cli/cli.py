"""Command line interface for cargoscript."""

import sys
from collections.abc import Sequence
from typing import final

from cargoscript.platform.logging import logger
from cargoscript.shared.errors import CargoScriptError
from cargoscript.ui.cli.args import ArgumentParser
from cargoscript.ui.cli.args.options import CacheArgs, CLIArgs, RunArgs
from cargoscript.ui.cli.commands import CacheCommand, ConfigCommand, RunCommand

EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


@final
class CommandProcessor:
    """Command line interface processor."""

    @staticmethod
    def process_command(args_list: Sequence[str] | None = None) -> int:
        """Process command line arguments.

        Args:
            args_list: List of command line arguments (for testing).

        Returns:
            int: Exit status; for ``run`` the executed program's own status.
        """
        try:
            args: CLIArgs = ArgumentParser.process_args(args_list)

            if isinstance(args, RunArgs):
                return RunCommand(args).execute()

            if isinstance(args, CacheArgs):
                return CacheCommand(args).execute()

            return ConfigCommand(args).execute()

        except KeyboardInterrupt:
            logger.info("Operation cancelled by user")
            return EXIT_INTERRUPTED
        except CargoScriptError as e:
            logger.error("%s", e)
            return EXIT_FAILURE
        except OSError as e:
            logger.error("%s", e)
            return EXIT_FAILURE


def main() -> int:
    """Main entry point.

    Returns:
        int: Process exit code.
    """
    status = CommandProcessor.process_command()
    sys.stdout.flush()
    return status
