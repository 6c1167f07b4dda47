"""vsix-harvester - Download VS Code extensions for offline use.

    Returns:
        int: Exit code
"""
import asyncio
import logging
import sys

from harvester.args import parse_args
from harvester.cli_config import HarvestConfig
from harvester.common.logging_utils import configure_logging, extra_context, is_debug_enabled
from harvester.constants import ExitCodes
from harvester.errors import (
    ConfigError,
    FilesystemError,
    HarvesterError,
    InvalidIdentifier,
    InvalidPlatform,
    ManifestError,
)
from harvester.pipeline import run


def exit_code_for(exc: HarvesterError) -> int:
    """Map a run-aborting error to the process exit code."""
    if isinstance(exc, (InvalidIdentifier, InvalidPlatform)):
        return ExitCodes.INVALID_INPUT.value
    if isinstance(exc, (ManifestError, FilesystemError, ConfigError)):
        return ExitCodes.FILE_ERROR.value
    return ExitCodes.CONNECTION_ERROR.value


def main(argv=None) -> int:
    """Main function of the program."""
    args = parse_args(argv)
    configure_logging(getattr(args, "log_level", None), getattr(args, "log_file", None))
    logger = logging.getLogger("harvester")

    try:
        config = HarvestConfig.from_args(args)
    except ConfigError as exc:
        logger.error("%s", exc)
        return ExitCodes.FILE_ERROR.value

    # Config may have raised or lowered verbosity (env/config file).
    configure_logging(config.effective_log_level, config.log_file)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(
                event="function_entry",
                component="cli",
                action="main",
                outcome="direct" if config.download else "manifest",
            ),
        )

    try:
        report = asyncio.run(run(config, log=logger))
    except HarvesterError as exc:
        logger.error("%s", exc)
        return exit_code_for(exc)

    if report.has_failures and config.error_on_failures:
        logger.error("%d extension(s) failed, exiting with non-zero status code.", len(report.failures))
        return ExitCodes.EXIT_FAILURES.value
    return ExitCodes.SUCCESS.value


def cli() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
