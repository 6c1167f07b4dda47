"""Shared aiohttp helpers used by the registry client and the fetcher.

Encapsulates session setup and DEBUG request/response traces so callers only
deal with status codes and bodies. Transport errors are logged and re-raised;
callers translate them into their own error types.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

import aiohttp

from harvester.constants import Constants
from harvester.common.logging_utils import Timer, extra_context, is_debug_enabled, safe_url

logger = logging.getLogger(__name__)

# Errors that mean "the request never produced a usable response".
TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError)


def create_session(timeout: Optional[float] = None, limit: int = 100) -> aiohttp.ClientSession:
    """Create a client session with the default request timeout.

    ``timeout`` bounds connecting and each socket read, not the whole
    transfer, so a large package that keeps streaming is never cut off.
    Must be called from within a running event loop.
    """
    seconds = timeout if timeout is not None else Constants.REQUEST_TIMEOUT
    return aiohttp.ClientSession(
        timeout=aiohttp.ClientTimeout(total=None, sock_connect=seconds, sock_read=seconds),
        connector=aiohttp.TCPConnector(limit=limit),
    )


def _log_request(method: str, url: str, context: str, proxy: Optional[str]) -> None:
    if is_debug_enabled(logger):
        logger.debug(
            "HTTP request",
            extra=extra_context(
                event="http_request",
                component="http_client",
                action=method,
                target=safe_url(url),
                context=context,
                proxy=safe_url(proxy) if proxy else None,
            ),
        )


def _log_response(method: str, url: str, context: str, status: int, timer: Timer) -> None:
    if is_debug_enabled(logger):
        logger.debug(
            "HTTP response",
            extra=extra_context(
                event="http_response",
                component="http_client",
                action=method,
                outcome="success" if 200 <= status < 300 else "error_status",
                status_code=status,
                duration_ms=timer.duration_ms(),
                target=safe_url(url),
                context=context,
            ),
        )


async def post_json(
    session: aiohttp.ClientSession,
    url: str,
    *,
    context: str,
    payload: Any,
    headers: Optional[Dict[str, str]] = None,
    proxy: Optional[str] = None,
) -> Tuple[int, bytes]:
    """POST a JSON payload and return ``(status, body_bytes)``.

    The body is returned undecoded; callers decide how to interpret it.

    Args:
        session: Open client session.
        url: Target URL.
        context: Human-readable source tag for logs (e.g., an extension id).
        payload: JSON-serializable request body.
        headers: Extra request headers.
        proxy: Optional forward proxy URL.
    """
    _log_request("POST", url, context, proxy)
    with Timer() as t:
        try:
            async with session.post(url, json=payload, headers=headers, proxy=proxy) as res:
                body = await res.read()
                _log_response("POST", url, context, res.status, t)
                return res.status, body
        except TRANSPORT_ERRORS as exc:
            logger.error("%s connection error: %s", context, exc or type(exc).__name__)
            raise


async def get_bytes(
    session: aiohttp.ClientSession,
    url: str,
    *,
    context: str,
    headers: Optional[Dict[str, str]] = None,
    proxy: Optional[str] = None,
) -> Tuple[int, bytes]:
    """GET a URL and return ``(status, body_bytes)``; the body is decompressed."""
    _log_request("GET", url, context, proxy)
    with Timer() as t:
        try:
            async with session.get(url, headers=headers, proxy=proxy) as res:
                body = await res.read() if 200 <= res.status < 300 else b""
                _log_response("GET", url, context, res.status, t)
                return res.status, body
        except TRANSPORT_ERRORS as exc:
            logger.error("%s connection error: %s", context, exc or type(exc).__name__)
            raise
