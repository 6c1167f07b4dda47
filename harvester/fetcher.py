"""Resolve, locate and download a single extension package."""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from typing import Optional

import aiohttp

from harvester.constants import Constants
from harvester.common.http_client import TRANSPORT_ERRORS, get_bytes
from harvester.common.logging_utils import safe_url
from harvester.errors import DownloadFailed, FilesystemError
from harvester.locator import locate
from harvester.models import FetchOutcome, FetchStatus, FetchTask, Identifier, ResolveRequest
from harvester.platforms import PlatformTag
from harvester.registry.client import RegistryClient

logger = logging.getLogger(__name__)

DOWNLOAD_HEADERS = {
    "Accept-Encoding": "gzip",
    "User-Agent": Constants.USER_AGENT,
}


def ensure_directory(path: str) -> None:
    """Create ``path`` (and parents) if it does not exist.

    Raises:
        FilesystemError: if the directory cannot be created.
    """
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as exc:
        raise FilesystemError(path, str(exc)) from exc


def write_atomic(path: str, content: bytes) -> None:
    """Write ``content`` to a temp file beside ``path`` then move it into place.

    Raises:
        FilesystemError: on any write or rename failure.
    """
    directory = os.path.dirname(path) or "."
    tmp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            dir=directory,
            prefix=".",
            suffix=".part",
            delete=False,
        ) as fh:
            tmp_path = fh.name
            fh.write(content)
        os.replace(tmp_path, path)
    except OSError as exc:
        if tmp_path and os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise FilesystemError(path, str(exc)) from exc


class Fetcher:
    """Downloads extension packages into a destination directory.

    The on-disk file name is the cache key: an existing file for the resolved
    version and platform is reused unless a re-download is forced.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        registry: RegistryClient,
        marketplace_url: str = Constants.MARKETPLACE_URL,
        log: Optional[logging.Logger] = None,
    ):
        self._session = session
        self._registry = registry
        self._marketplace_url = marketplace_url
        self._log = log or logger

    async def fetch(self, task: FetchTask) -> FetchOutcome:
        """Resolve the version for ``task`` and make sure its package is on disk.

        Raises:
            RegistryQueryFailed, ResponseParseFailed, NoVersionsAvailable:
                from version resolution.
            DownloadFailed: on transport failure or a non-success status.
            FilesystemError: if the package cannot be written.
        """
        ident = task.identifier.format()
        self._log.info("Progress in extension: %s", ident)

        resolution = await self._registry.resolve(task.request, task.proxy)
        if resolution.fallback:
            self._log.warning(
                "Using latest version %s of %s; it may not support engine %s",
                resolution.version,
                ident,
                task.request.engine_version,
            )
        else:
            self._log.info("Selected version of %s: %s", ident, resolution.version)

        target = locate(
            task.identifier,
            resolution.version,
            task.destination,
            task.platform,
            base_url=self._marketplace_url,
        )
        self._log.debug("Download URL: %s", target.url)

        outcome = FetchOutcome(
            identifier=ident,
            platform=task.platform,
            status=FetchStatus.CACHED,
            version=resolution.version,
            local_path=target.local_path,
            fallback=resolution.fallback,
        )

        if not task.force_redownload and os.path.exists(target.local_path):
            self._log.info("Skip download: File already exists. File Name %s.", target.local_path)
            return outcome

        if task.proxy:
            self._log.info("Using proxy: %s", safe_url(task.proxy))
        self._log.info("Download from %s", target.url)
        try:
            status, content = await get_bytes(
                self._session,
                target.url,
                context=ident,
                headers=DOWNLOAD_HEADERS,
                proxy=task.proxy,
            )
        except TRANSPORT_ERRORS as exc:
            raise DownloadFailed(ident, str(exc) or type(exc).__name__) from exc
        if not 200 <= status < 300:
            self._log.error("Failed download of %s", ident)
            raise DownloadFailed(ident, f"HTTP {status}")

        await asyncio.to_thread(write_atomic, target.local_path, content)
        self._log.info("Saved in %s", target.local_path)
        outcome.status = FetchStatus.DOWNLOADED
        return outcome

    async def fetch_extension(
        self,
        identifier: Identifier,
        destination: str,
        force_redownload: bool = False,
        proxy: Optional[str] = None,
        platform: Optional[PlatformTag] = None,
        engine_version: Optional[str] = None,
        allow_pre_release: bool = False,
    ) -> FetchOutcome:
        """Build a FetchTask from plain arguments and run it."""
        task = FetchTask(
            request=ResolveRequest(
                identifier=identifier,
                engine_version=engine_version,
                allow_pre_release=allow_pre_release,
            ),
            destination=destination,
            force_redownload=force_redownload,
            proxy=proxy,
            platform=platform,
        )
        return await self.fetch(task)
