"""In-process fake of the marketplace query and download APIs."""

import asyncio
from contextlib import asynccontextmanager
from typing import Dict, List, Optional, Tuple, Union

from aiohttp import web
from aiohttp.test_utils import TestServer

LATEST_ONLY_BIT = 0x200


def make_version(
    version: str,
    engine: Optional[str] = None,
    pre_release: Optional[str] = None,
    target_platform: Optional[str] = None,
) -> dict:
    """Build one ``versions[]`` entry as the marketplace returns it."""
    properties = []
    if engine is not None:
        properties.append({"key": "Microsoft.VisualStudio.Code.Engine", "value": engine})
    if pre_release is not None:
        properties.append({"key": "Microsoft.VisualStudio.Code.PreRelease", "value": pre_release})
    entry = {
        "version": version,
        "flags": "validated",
        "lastUpdated": "2025-03-09T04:19:46.193Z",
        "files": [
            {
                "assetType": "Microsoft.VisualStudio.Services.VSIXPackage",
                "source": f"https://cdn.example/{version}/Microsoft.VisualStudio.Services.VSIXPackage",
            }
        ],
        "properties": properties,
        "assetUri": f"https://cdn.example/{version}",
        "fallbackAssetUri": f"https://fallback.example/{version}",
    }
    if target_platform:
        entry["targetPlatform"] = target_platform
    return entry


def make_response(identifier: str, versions: List[dict]) -> dict:
    """Wrap versions into a full ``extensionquery`` response body."""
    publisher, name = identifier.split(".")
    return {
        "results": [
            {
                "extensions": [
                    {
                        "publisher": {
                            "publisherId": f"{publisher}-id",
                            "publisherName": publisher,
                            "displayName": publisher,
                            "flags": "verified",
                            "domain": None,
                            "isDomainVerified": False,
                        },
                        "extensionId": f"{identifier}-id",
                        "extensionName": name,
                        "displayName": name,
                        "flags": "validated, public",
                        "lastUpdated": "2025-03-09T04:19:46.193Z",
                        "publishedDate": "2021-06-29T14:26:17.88Z",
                        "releaseDate": "2021-06-29T14:26:17.88Z",
                        "shortDescription": "",
                        "versions": versions,
                        "deploymentType": 0,
                    }
                ],
                "pagingToken": None,
                "resultMetadata": [
                    {
                        "metadataType": "ResultCount",
                        "metadataItems": [{"name": "TotalCount", "count": 1}],
                    }
                ],
            }
        ]
    }


class FakeMarketplace:
    """Configurable stand-in for the query endpoint and package downloads."""

    def __init__(self, delay: float = 0.0):
        self.delay = delay
        self.extensions: Dict[str, List[dict]] = {}
        self.query_status: Dict[str, int] = {}
        self.raw_bodies: Dict[str, Union[str, bytes]] = {}
        self.download_status: Dict[str, int] = {}
        # identifier -> (chunk count, chunk size, pause between chunks)
        self.streamed: Dict[str, Tuple[int, int, float]] = {}
        self.queries: List[Tuple[str, int]] = []
        self.query_headers: List[Dict[str, str]] = []
        self.downloads: List[Tuple[str, str, Optional[str]]] = []
        self.download_headers: List[Dict[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def add(self, identifier: str, *versions: dict) -> None:
        self.extensions[identifier] = list(versions)

    @staticmethod
    def package_bytes(identifier: str, version: str, platform: Optional[str]) -> bytes:
        return f"VSIX:{identifier}:{version}:{platform or 'universal'}".encode()

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/extensionquery", self._query)
        app.router.add_get(
            "/publishers/{publisher}/vsextensions/{name}/{version}/vspackage",
            self._download,
        )
        return app

    async def _enter(self) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        if self.delay:
            await asyncio.sleep(self.delay)

    def _leave(self) -> None:
        self.in_flight -= 1

    async def _query(self, request: web.Request) -> web.Response:
        data = await request.json()
        ident = data["filters"][0]["criteria"][0]["value"]
        flags = data["flags"]
        self.queries.append((ident, flags))
        self.query_headers.append(dict(request.headers))
        await self._enter()
        try:
            if ident in self.query_status:
                return web.Response(status=self.query_status[ident], text="error")
            if ident in self.raw_bodies:
                raw = self.raw_bodies[ident]
                if isinstance(raw, bytes):
                    return web.Response(body=raw, content_type="application/json")
                return web.Response(text=raw, content_type="application/json")
            if ident not in self.extensions:
                return web.json_response({"results": [{"extensions": [], "resultMetadata": []}]})
            versions = self.extensions[ident]
            if flags & LATEST_ONLY_BIT:
                versions = versions[:1]
            return web.json_response(make_response(ident, versions))
        finally:
            self._leave()

    async def _download(self, request: web.Request) -> web.StreamResponse:
        info = request.match_info
        ident = f"{info['publisher']}.{info['name']}"
        platform = request.query.get("targetPlatform")
        self.downloads.append((ident, info["version"], platform))
        self.download_headers.append(dict(request.headers))
        await self._enter()
        try:
            if ident in self.download_status:
                return web.Response(status=self.download_status[ident], text="nope")
            if ident in self.streamed:
                return await self._stream(request, *self.streamed[ident])
            return web.Response(body=self.package_bytes(ident, info["version"], platform))
        finally:
            self._leave()

    @staticmethod
    async def _stream(request: web.Request, count: int, size: int, pause: float) -> web.StreamResponse:
        response = web.StreamResponse()
        response.content_length = count * size
        await response.prepare(request)
        for _ in range(count):
            await asyncio.sleep(pause)
            await response.write(b"x" * size)
        await response.write_eof()
        return response


@asynccontextmanager
async def serve(market: FakeMarketplace):
    """Serve ``market`` and yield ``(api_url, marketplace_url)``."""
    async with TestServer(market.app()) as server:
        yield str(server.make_url("/extensionquery")), str(server.make_url("/publishers"))
