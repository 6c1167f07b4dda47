"""Argument parsing functionality for vsix-harvester."""

import argparse

from harvester import __version__
from harvester.constants import Constants


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser.

    Every option defaults to None so configuration precedence (CLI, then
    environment, then config file, then built-in default) can be applied in
    ``cli_config``.
    """
    parser = argparse.ArgumentParser(
        prog="vsix-harvester",
        description="Download VSCode extensions for offline use",
        add_help=True,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    parser.add_argument("-i", "--input",
                        dest="input",
                        help=f"Path to {Constants.DEFAULT_FILE_NAME} [env: EXTENSIONS_FILE]",
                        action="store", type=str)
    parser.add_argument("-d", "--destination",
                        dest="destination",
                        help="Output directory [env: OUTPUT_DIR]",
                        action="store", type=str)
    parser.add_argument("--no-cache",
                        dest="no_cache",
                        help="Force redownload if exists [env: NO_CACHE]",
                        action="store_true", default=None)
    parser.add_argument("--proxy",
                        dest="proxy",
                        help="Specify proxy url [env: PROXY]",
                        action="store", type=str)
    parser.add_argument("-D", "--download",
                        dest="download",
                        help="Download a single extension (e.g., 'golang.Go') [env: DOWNLOAD]",
                        action="store", type=str)
    parser.add_argument("-a", "--arch",
                        dest="arch",
                        help=("Architecture for single extension download "
                              "(e.g., 'linux_x64', 'darwin_arm64') [env: ARCH]"),
                        action="store", type=str)
    parser.add_argument("-e", "--engine-version",
                        dest="engine_version",
                        help="Engine version to be compatible with, e.g. 1.97.0 [env: ENGINE_VERSION]",
                        action="store", type=str)
    parser.add_argument("--allow-pre-release",
                        dest="allow_pre_release",
                        help="Allow pre-release versions when matching an engine [env: ALLOW_PRE_RELEASE]",
                        action="store_true", default=None)
    parser.add_argument("--serial-download",
                        dest="serial",
                        help="Disable parallel downloads [env: SERIAL_DOWNLOAD]",
                        action="store_true", default=None)
    parser.add_argument("--max-concurrency",
                        dest="max_concurrency",
                        help=(f"Downloads in flight per platform (default: "
                              f"{Constants.MAX_CONCURRENT_DOWNLOADS}) [env: MAX_CONCURRENT_DOWNLOADS]"),
                        action="store", type=int)
    parser.add_argument("--timeout",
                        dest="timeout",
                        help=(f"HTTP timeout in seconds (default: {Constants.REQUEST_TIMEOUT}) "
                              "[env: REQUEST_TIMEOUT]"),
                        action="store", type=float)
    parser.add_argument("-v", "--verbose",
                        dest="verbose",
                        help="Show verbose information [env: VERBOSE]",
                        action="store_true", default=None)
    parser.add_argument("--loglevel",
                        dest="log_level",
                        help=f"Set the logging level [env: {Constants.ENV_LOG_LEVEL}]",
                        action="store", type=str.upper,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    parser.add_argument("--logfile",
                        dest="log_file",
                        help="Log output file",
                        action="store", type=str)
    parser.add_argument("--dump-responses",
                        dest="dump_responses",
                        help="Save raw registry responses to this directory [env: DUMP_RESPONSES_DIR]",
                        action="store", type=str)
    parser.add_argument("--error-on-failures",
                        dest="error_on_failures",
                        help=("Exit with a non-zero status code if any extension failed "
                              "[env: ERROR_ON_FAILURES]"),
                        action="store_true", default=None)
    parser.add_argument("-c", "--config",
                        dest="config",
                        help=f"Path to configuration file (YAML, YML, or JSON) [env: {Constants.ENV_CONFIG}]",
                        action="store", type=str)
    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
