"""Exception hierarchy for resolution and fetch failures."""

from __future__ import annotations

from typing import Optional


class HarvesterError(Exception):
    """Base class for all errors raised by the harvester."""


class InvalidIdentifier(HarvesterError, ValueError):
    """Raised when an extension id is not of the form ``publisher.name``."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Invalid extension identifier: {value!r}")


class InvalidPlatform(HarvesterError, ValueError):
    """Raised when a platform/architecture name is not recognized."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Unknown platform: {value!r}")


class RegistryQueryFailed(HarvesterError):
    """Raised on a non-success status or transport failure querying the registry."""

    def __init__(self, identifier: str, reason: str, status: Optional[int] = None):
        self.identifier = identifier
        self.status = status
        super().__init__(f"Failed to query marketplace API for {identifier}: {reason}")


class ResponseParseFailed(HarvesterError):
    """Raised when a registry response body does not have the expected shape."""

    def __init__(self, identifier: str, reason: str, body: str = ""):
        self.identifier = identifier
        self.body = body
        super().__init__(f"Failed to parse marketplace response for {identifier}: {reason}")


class NoVersionsAvailable(HarvesterError):
    """Raised when the registry answered but listed no versions."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"No versions available for {identifier}")


class DownloadFailed(HarvesterError):
    """Raised on a non-success status or transport failure downloading a package."""

    def __init__(self, identifier: str, reason: str = ""):
        self.identifier = identifier
        message = f"Failed to download extension: {identifier}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class FilesystemError(HarvesterError):
    """Raised when a directory cannot be created or a file cannot be written."""

    def __init__(self, path: str, reason: str):
        self.path = path
        super().__init__(f"Filesystem error at {path}: {reason}")


class ManifestError(HarvesterError):
    """Raised when the extensions manifest is unreadable or malformed."""


class ConfigError(HarvesterError):
    """Raised when a configuration file or value cannot be used."""
