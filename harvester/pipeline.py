"""Fan resolve-then-fetch work out across platform categories.

Each platform category of the manifest runs as one bounded window of
concurrent fetches; the next category starts only once every task of the
current one has finished. A failing task is reported and never cancels its
siblings.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from harvester.constants import Constants
from harvester.cli_config import HarvestConfig
from harvester.common.http_client import create_session
from harvester.common.logging_utils import extra_context, is_debug_enabled
from harvester.errors import HarvesterError
from harvester.fetcher import Fetcher, ensure_directory
from harvester.manifest import Manifest, load_manifest
from harvester.models import (
    BatchReport,
    FetchOutcome,
    FetchStatus,
    FetchTask,
    Identifier,
    ResolveRequest,
)
from harvester.platforms import PlatformTag
from harvester.registry.client import RegistryClient

logger = logging.getLogger(__name__)


class HarvestPipeline:
    """Runs direct single-extension downloads and manifest batches."""

    def __init__(
        self,
        destination: str,
        force_redownload: bool = False,
        proxy: Optional[str] = None,
        engine_version: Optional[str] = None,
        allow_pre_release: bool = False,
        concurrency: int = Constants.MAX_CONCURRENT_DOWNLOADS,
        timeout: float = Constants.REQUEST_TIMEOUT,
        api_url: str = Constants.API_URL,
        marketplace_url: str = Constants.MARKETPLACE_URL,
        dump_dir: Optional[str] = None,
        log: Optional[logging.Logger] = None,
    ):
        """Initialize the pipeline.

        Args:
            destination: Directory the packages are written to.
            force_redownload: Ignore files already present in ``destination``.
            proxy: Optional forward proxy URL for every request.
            engine_version: Engine version the chosen versions should support.
            allow_pre_release: Accept pre-release versions when matching an engine.
            concurrency: Fetches in flight per platform category (1 = serial).
            timeout: Per-request timeout in seconds.
            api_url: Registry query endpoint.
            marketplace_url: Base URL for package downloads.
            dump_dir: Directory for raw registry responses, if wanted.
            log: Logger handle threaded through the registry client and fetcher.
        """
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.destination = destination
        self.force_redownload = force_redownload
        self.proxy = proxy
        self.engine_version = engine_version
        self.allow_pre_release = allow_pre_release
        self.concurrency = concurrency
        self.timeout = timeout
        self.api_url = api_url
        self.marketplace_url = marketplace_url
        self.dump_dir = dump_dir
        self._log = log or logger

    @classmethod
    def from_config(cls, config: HarvestConfig, log: Optional[logging.Logger] = None) -> "HarvestPipeline":
        """Create a pipeline from the runtime configuration record."""
        return cls(
            destination=config.destination,
            force_redownload=config.no_cache,
            proxy=config.proxy,
            engine_version=config.engine_version,
            allow_pre_release=config.allow_pre_release,
            concurrency=config.concurrency,
            timeout=config.timeout,
            dump_dir=config.dump_responses,
            log=log,
        )

    def _fetcher(self, session) -> Fetcher:
        registry = RegistryClient(
            session,
            api_url=self.api_url,
            dump_dir=self.dump_dir,
            log=self._log,
        )
        return Fetcher(session, registry, marketplace_url=self.marketplace_url, log=self._log)

    def build_task(self, identifier: Identifier, platform: Optional[PlatformTag]) -> FetchTask:
        """One FetchTask for ``identifier`` in ``platform``'s category."""
        if platform is not None and not platform.is_concrete:
            platform = None
        return FetchTask(
            request=ResolveRequest(
                identifier=identifier,
                engine_version=self.engine_version,
                allow_pre_release=self.allow_pre_release,
            ),
            destination=self.destination,
            force_redownload=self.force_redownload,
            proxy=self.proxy,
            platform=platform,
        )

    async def run_direct(self, identifier_text: str, platform: Optional[PlatformTag] = None) -> FetchOutcome:
        """Download a single extension; any error propagates to the caller.

        Raises:
            InvalidIdentifier: if ``identifier_text`` is malformed.
            FilesystemError: if the destination cannot be created.
            HarvesterError: any resolution or download failure.
        """
        identifier = Identifier.parse(identifier_text)
        self._log.debug("Direct download mode for extension: %s", identifier)
        if platform is not None and platform.is_concrete:
            self._log.debug("Using architecture: %s", platform.target_platform)
        else:
            self._log.debug("Using universal architecture")

        ensure_directory(self.destination)
        async with create_session(self.timeout) as session:
            fetcher = self._fetcher(session)
            try:
                return await fetcher.fetch(self.build_task(identifier, platform))
            except HarvesterError as exc:
                self._log.error("Error occurred when downloading %s: %s", identifier_text, exc)
                raise

    async def run_batch(self, manifest: Manifest) -> BatchReport:
        """Fetch every manifest entry, one platform category at a time.

        Raises:
            FilesystemError: if the destination cannot be created.
        """
        ensure_directory(self.destination)
        report = BatchReport()
        async with create_session(self.timeout) as session:
            fetcher = self._fetcher(session)
            for platform in PlatformTag.ordered():
                entries = manifest.get(platform) or []
                if not entries:
                    continue
                await self.run_category(fetcher, platform, entries, report)

        self._log.info(
            "Finished: %d downloaded, %d cached, %d failed",
            report.count(FetchStatus.DOWNLOADED),
            report.count(FetchStatus.CACHED),
            report.count(FetchStatus.FAILED),
        )
        for failure in report.failures:
            self._log.warning("Failed: %s (%s): %s", failure.identifier, failure.platform or "universal", failure.error)
        return report

    async def run_category(
        self,
        fetcher: Fetcher,
        platform: PlatformTag,
        entries: List[str],
        report: BatchReport,
    ) -> None:
        """Run all entries of one category with at most ``concurrency`` in flight."""
        if is_debug_enabled(self._log):
            self._log.debug(
                "Processing platform category",
                extra=extra_context(
                    event="function_entry",
                    component="pipeline",
                    action="run_category",
                    target=platform.field_name,
                    count=len(entries),
                ),
            )
        window = asyncio.Semaphore(self.concurrency)
        jobs = [self._run_entry(fetcher, window, platform, entry) for entry in entries]
        results = await asyncio.gather(*jobs, return_exceptions=True)

        # _run_entry turns every Exception into an outcome; only BaseException
        # (cancellation, interrupts) can show up here.
        for result in results:
            if isinstance(result, BaseException):
                raise result
            report.add(result)

    async def _run_entry(
        self,
        fetcher: Fetcher,
        window: asyncio.Semaphore,
        platform: PlatformTag,
        entry: str,
    ) -> FetchOutcome:
        task_platform = platform if platform.is_concrete else None
        async with window:
            try:
                identifier = Identifier.parse(entry)
                self._log.debug("Attempting to download extension: %s", identifier)
                return await fetcher.fetch(self.build_task(identifier, task_platform))
            except HarvesterError as exc:
                self._log.error("Error occurred when downloading %s: %s", entry, exc)
                return self._failed(entry, task_platform, str(exc))
            except Exception as exc:  # pylint: disable=broad-exception-caught
                self._log.exception("Unexpected error when downloading %s", entry)
                return self._failed(entry, task_platform, f"{type(exc).__name__}: {exc}")

    @staticmethod
    def _failed(entry: str, platform: Optional[PlatformTag], error: str) -> FetchOutcome:
        return FetchOutcome(
            identifier=entry,
            platform=platform,
            status=FetchStatus.FAILED,
            error=error,
        )


async def run(config: HarvestConfig, log: Optional[logging.Logger] = None) -> BatchReport:
    """Run the pipeline described by ``config``.

    Direct mode (``config.download`` set) fetches one extension and lets any
    error propagate. Otherwise the manifest at ``config.input`` is processed
    as a batch and item failures are only reported.
    """
    pipeline = HarvestPipeline.from_config(config, log=log)
    if config.download:
        platform = PlatformTag.parse(config.arch) if config.arch else None
        report = BatchReport()
        report.add(await pipeline.run_direct(config.download, platform))
        return report

    manifest = load_manifest(config.input)
    return await pipeline.run_batch(manifest)
