"""Constants used in the project."""

from enum import Enum

from harvester import __version__


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    INVALID_INPUT = 3
    EXIT_FAILURES = 4


class PropertyKeys:  # pylint: disable=too-few-public-methods
    """Well-known keys found in marketplace version properties and files."""

    ENGINE = "Microsoft.VisualStudio.Code.Engine"
    PRE_RELEASE = "Microsoft.VisualStudio.Code.PreRelease"
    VSIX_PACKAGE = "Microsoft.VisualStudio.Services.VSIXPackage"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    API_URL = "https://marketplace.visualstudio.com/_apis/public/gallery/extensionquery"
    MARKETPLACE_URL = "https://marketplace.visualstudio.com/_apis/public/gallery/publishers"
    MARKETPLACE_API_VERSION = "3.0-preview.1"
    USER_AGENT = f"Offline VSIX/{__version__}"
    FILTER_TYPE_EXTENSION_NAME = 7

    DEFAULT_FILE_NAME = "extensions.json"
    DEFAULT_PATH = "extensions"
    MAX_CONCURRENT_DOWNLOADS = 5
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "HARVESTER_LOG_LEVEL"
    ENV_CONFIG = "HARVESTER_CONFIG"
    RESPONSE_DUMP_PREFIX = "vsix_harvester_"
