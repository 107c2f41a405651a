"""Upstream client for forwarding requests to the real registry."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

import aiohttp
from aiohttp import web
from multidict import CIMultiDict, CIMultiDictProxy
from yarl import URL

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

# Request key holding the streamed response once forwarding has started.
STREAM_RESPONSE_KEY = web.RequestKey("stream_response", web.StreamResponse)

# Defaults aiohttp would otherwise add to requests that lack them.
SKIP_AUTO_HEADERS = ("Accept", "Accept-Encoding", "Content-Type", "User-Agent")

HOP_BY_HOP_HEADERS = frozenset({
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "proxy-connection",
    "te",
    "trailer",
    "transfer-encoding",
    "upgrade",
})


def parse_upstream_url(raw_url: str) -> URL:
    """Validate the configured upstream origin.

    Args:
        raw_url: Value from configuration, e.g. ``https://ghcr.io``.

    Returns:
        Parsed URL.

    Raises:
        ValueError: If the value is not an absolute http(s) URL with a host.
    """
    try:
        url = URL(raw_url.strip())
    except (TypeError, ValueError) as exc:
        raise ValueError(f"invalid upstream URL {raw_url!r}: {exc}") from exc
    if url.scheme not in ("http", "https"):
        raise ValueError(f"invalid upstream URL {raw_url!r}: scheme must be http or https")
    if not url.host:
        raise ValueError(f"invalid upstream URL {raw_url!r}: missing host")
    return url


def abort_stream(request: web.Request) -> None:
    """Drop the client connection of a response that is already streaming.

    The chunked terminator is never written, so the client sees a truncated
    body instead of a short but complete one.
    """
    transport = request.transport
    if transport is not None:
        transport.close()


def _connection_tokens(headers: CIMultiDictProxy) -> set:
    tokens = set()
    for value in headers.getall("Connection", []):
        tokens.update(token.strip().lower() for token in value.split(",") if token.strip())
    return tokens


class UpstreamClient:
    """Reverse proxy to a single upstream registry origin.

    Only the destination is rewritten; method, path, query, headers and body
    are passed through and the upstream response is streamed back as is.
    Redirects are returned to the caller rather than followed.
    """

    def __init__(self, upstream_url: URL, timeout: Optional[int] = None):
        """Initialize the upstream client.

        Args:
            upstream_url: Validated upstream origin (see ``parse_upstream_url``).
            timeout: Total timeout in seconds for one upstream exchange.
        """
        self._upstream = upstream_url
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def upstream_url(self) -> URL:
        return self._upstream

    async def start(self) -> None:
        """Start the HTTP session."""
        if self._session is None:
            connector = aiohttp.TCPConnector(limit=100)
            self._session = aiohttp.ClientSession(
                timeout=self._timeout,
                connector=connector,
                auto_decompress=False,
                skip_auto_headers=SKIP_AUTO_HEADERS,
            )

    async def stop(self) -> None:
        """Stop the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    def build_url(self, request_url: URL) -> URL:
        """Rewrite a request URL onto the upstream origin.

        The upstream path, if any, prefixes the request path; query strings
        from both sides are kept.
        """
        base_path = self._upstream.raw_path.rstrip("/")
        request_path = request_url.raw_path
        if not request_path.startswith("/"):
            request_path = f"/{request_path}"

        query = "&".join(
            part for part in (self._upstream.raw_query_string, request_url.raw_query_string) if part
        )

        return URL.build(
            scheme=self._upstream.scheme,
            authority=self._upstream.raw_authority,
            path=f"{base_path}{request_path}",
            query_string=query,
            encoded=True,
        )

    def _build_request_headers(self, headers: CIMultiDictProxy) -> CIMultiDict:
        """Build request headers to send upstream.

        Hop-by-hop headers, headers listed in ``Connection`` and ``Host`` are
        dropped; the client session sets ``Host`` for the upstream.
        """
        connection_tokens = _connection_tokens(headers)
        request_headers: CIMultiDict = CIMultiDict()
        for key, value in headers.items():
            key_lower = key.lower()
            if key_lower in HOP_BY_HOP_HEADERS or key_lower in connection_tokens:
                continue
            if key_lower == "host":
                continue
            request_headers.add(key, value)
        return request_headers

    def filter_response_headers(self, headers: CIMultiDictProxy) -> CIMultiDict:
        """Copy upstream response headers, minus hop-by-hop ones."""
        connection_tokens = _connection_tokens(headers)
        filtered: CIMultiDict = CIMultiDict()
        for key, value in headers.items():
            key_lower = key.lower()
            if key_lower in HOP_BY_HOP_HEADERS or key_lower in connection_tokens:
                continue
            filtered.add(key, value)
        return filtered

    async def forward(self, request: web.Request) -> web.StreamResponse:
        """Forward ``request`` upstream and stream the answer back.

        Args:
            request: Incoming request that no registry handler claimed.

        Returns:
            The streamed upstream response, or 502 if the upstream could not
            be reached. A failure after streaming has started drops the
            client connection.
        """
        if self._session is None:
            await self.start()
        assert self._session is not None

        url = self.build_url(request.rel_url)
        headers = self._build_request_headers(request.headers)
        body = request.content.iter_chunked(CHUNK_SIZE) if request.body_exists else None

        response: Optional[web.StreamResponse] = None
        try:
            async with self._session.request(
                request.method,
                url,
                headers=headers,
                data=body,
                allow_redirects=False,
            ) as upstream:
                response = web.StreamResponse(
                    status=upstream.status,
                    reason=upstream.reason,
                    headers=self.filter_response_headers(upstream.headers),
                )
                request[STREAM_RESPONSE_KEY] = response
                await response.prepare(request)
                async for chunk in upstream.content.iter_chunked(CHUNK_SIZE):
                    await response.write(chunk)
                await response.write_eof()
                return response
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            if response is not None and response.prepared:
                logger.warning("Upstream stream interrupted: %s %s: %s", request.method, url, exc)
                abort_stream(request)
                return response
            logger.warning("Upstream request failed: %s %s: %s", request.method, url, exc)
            return web.Response(status=502, text=f"upstream request failed: {exc}")

    async def __aenter__(self) -> "UpstreamClient":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.stop()
