"""Marketplace registry client: query an extension and pick its version."""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import aiohttp

from harvester.constants import Constants
from harvester.common.http_client import TRANSPORT_ERRORS, post_json
from harvester.common.logging_utils import extra_context, is_debug_enabled, safe_url
from harvester.errors import RegistryQueryFailed, ResponseParseFailed
from harvester.models import Identifier, Resolution, ResolveRequest
from harvester.registry.flags import QueryFlags
from harvester.registry.types import MarketplaceResponse, decode_body, parse_marketplace_response
from harvester.versioning.resolver import CompatibilityResolver

logger = logging.getLogger(__name__)


def build_query_payload(identifier: Identifier, flags: QueryFlags) -> Dict[str, Any]:
    """Build the ``extensionquery`` body selecting one extension by exact name."""
    return {
        "filters": [
            {
                "criteria": [
                    {
                        "filterType": Constants.FILTER_TYPE_EXTENSION_NAME,
                        "value": identifier.format(),
                    }
                ]
            }
        ],
        "flags": flags.to_bits(),
    }


def build_query_headers() -> Dict[str, str]:
    """Headers required by the marketplace query API."""
    return {
        "Content-Type": "application/json",
        "Accept": f"application/json;api-version={Constants.MARKETPLACE_API_VERSION}",
        "User-Agent": Constants.USER_AGENT,
    }


def flags_for(req: ResolveRequest) -> QueryFlags:
    """Full version history when an engine constraint must be matched, else latest only."""
    if req.engine_version is not None:
        return QueryFlags.all_versions()
    return QueryFlags.standard()


class RegistryClient:
    """Client for the marketplace ``extensionquery`` endpoint.

    Shares the caller's aiohttp session; one POST per resolution, no retries.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        api_url: str = Constants.API_URL,
        dump_dir: Optional[str] = None,
        resolver: Optional[CompatibilityResolver] = None,
        log: Optional[logging.Logger] = None,
    ):
        """Initialize the client.

        Args:
            session: Open aiohttp session.
            api_url: Query endpoint URL.
            dump_dir: If set, raw response bodies are saved there for diagnostics.
            resolver: Version resolver; a default one is created when omitted.
            log: Logger to report through.
        """
        self._session = session
        self._api_url = api_url
        self._dump_dir = dump_dir
        self._log = log or logger
        self._resolver = resolver or CompatibilityResolver(log=self._log)

    async def query(self, req: ResolveRequest, proxy: Optional[str] = None) -> MarketplaceResponse:
        """Query the registry for one extension and decode the response.

        Raises:
            RegistryQueryFailed: on transport failure or a non-success status.
            ResponseParseFailed: if the body is not a valid query response.
        """
        ident = req.identifier.format()
        payload = build_query_payload(req.identifier, flags_for(req))
        if is_debug_enabled(self._log):
            self._log.debug("Using search payload: %s", payload)
        if proxy:
            self._log.info("Using proxy for API request: %s", safe_url(proxy))

        try:
            status, body = await post_json(
                self._session,
                self._api_url,
                context=ident,
                payload=payload,
                headers=build_query_headers(),
                proxy=proxy,
            )
        except TRANSPORT_ERRORS as exc:
            raise RegistryQueryFailed(ident, str(exc) or type(exc).__name__) from exc

        if not 200 <= status < 300:
            self._log.error(
                "Failed query for Marketplace API",
                extra=extra_context(
                    event="http_response",
                    component="registry",
                    outcome="error_status",
                    status_code=status,
                    target=ident,
                ),
            )
            raise RegistryQueryFailed(ident, f"HTTP {status}", status=status)

        self._dump_response(ident, body)
        try:
            return parse_marketplace_response(body, ident)
        except ResponseParseFailed:
            self._log.error("Failed to parse JSON response for %s", ident)
            if is_debug_enabled(self._log):
                self._log.debug("JSON was:\n%s", decode_body(body))
            raise

    async def resolve(self, req: ResolveRequest, proxy: Optional[str] = None) -> Resolution:
        """Query the registry and choose a version for ``req``."""
        response = await self.query(req, proxy)
        candidates = response.candidates(req.identifier.format())
        if is_debug_enabled(self._log):
            self._log.debug("Got %d version results", len(candidates))
        return self._resolver.resolve(req, candidates)

    async def resolve_version(
        self,
        identifier: Identifier,
        proxy: Optional[str] = None,
        engine_version: Optional[str] = None,
        allow_pre_release: bool = False,
    ) -> str:
        """Return the version string chosen for ``identifier``."""
        req = ResolveRequest(
            identifier=identifier,
            engine_version=engine_version,
            allow_pre_release=allow_pre_release,
        )
        resolution = await self.resolve(req, proxy)
        return resolution.version

    def _dump_response(self, ident: str, body: bytes) -> None:
        if not self._dump_dir:
            return
        path = os.path.join(self._dump_dir, f"{Constants.RESPONSE_DUMP_PREFIX}{ident}.json")
        try:
            os.makedirs(self._dump_dir, exist_ok=True)
            with open(path, "wb") as fh:
                fh.write(body)
        except OSError as exc:
            self._log.warning("Could not save response for %s to %s: %s", ident, path, exc)
            return
        self._log.debug("Saved JSON response to %s", path)
