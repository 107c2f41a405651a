"""Docker Registry V2 proxy server using aiohttp."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

from aiohttp import web

from ghcr_proxy.constants import Constants
from ghcr_proxy.github.client import GitHubPackagesClient, PackageDirectory

from .errors import error_response, json_response
from .translate import repositories_from_packages, repository_name, tags_from_versions
from .upstream import STREAM_RESPONSE_KEY, UpstreamClient, abort_stream, parse_upstream_url

logger = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]


@dataclass(frozen=True)
class ProxyConfig:
    """Configuration for the proxy server, fixed at startup."""

    host: str = Constants.DEFAULT_HOST
    port: int = Constants.DEFAULT_PORT
    upstream_url: str = Constants.DEFAULT_UPSTREAM_URL
    # Empty means the authenticated user's packages are listed.
    owner: str = ""
    github_token: str = field(default="", repr=False)
    github_api_url: str = Constants.GITHUB_API_BASE
    timeout: float = Constants.REQUEST_TIMEOUT

    @classmethod
    def from_args(cls, args: Any) -> "ProxyConfig":
        """Create config from CLI arguments.

        The GitHub token is only ever read from the environment.

        Args:
            args: Parsed CLI arguments namespace.

        Returns:
            ProxyConfig instance.
        """
        return cls(
            host=getattr(args, "PROXY_HOST", None) or Constants.DEFAULT_HOST,
            port=int(getattr(args, "PROXY_PORT", None) or Constants.DEFAULT_PORT),
            upstream_url=getattr(args, "UPSTREAM_URL", None) or Constants.DEFAULT_UPSTREAM_URL,
            owner=getattr(args, "PACKAGES_OWNER", None) or "",
            github_token=os.environ.get(Constants.ENV_GITHUB_TOKEN, ""),
            github_api_url=getattr(args, "GITHUB_API_URL", None) or Constants.GITHUB_API_BASE,
            timeout=float(getattr(args, "PROXY_TIMEOUT", None) or Constants.REQUEST_TIMEOUT),
        )


def timeout_middleware(timeout: float):
    """Bound every request to ``timeout`` seconds.

    On expiry the handler task is cancelled, which aborts any pending GitHub
    or upstream call, and the client receives 504. A fallback response that
    has already started streaming cannot be replaced; its connection is
    dropped instead, so the client never sees a complete body.
    """

    @web.middleware
    async def middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        try:
            return await asyncio.wait_for(handler(request), timeout=timeout)
        except asyncio.TimeoutError:
            started = request.get(STREAM_RESPONSE_KEY)
            if started is not None and started.prepared:
                logger.warning(
                    "Request timed out after %ss while streaming: %s %s",
                    timeout, request.method, request.path_qs,
                )
                abort_stream(request)
                return started
            logger.warning(
                "Request timed out after %ss: %s %s",
                timeout, request.method, request.path_qs,
            )
            raise web.HTTPGatewayTimeout()

    return middleware


class RegistryProxyServer:
    """Registry front end for GitHub Packages.

    Answers the catalog and tag list endpoints of the Docker Registry HTTP
    API V2 from the GitHub Packages API, and forwards every other request to
    the upstream registry.
    """

    def __init__(self, config: ProxyConfig, directory: PackageDirectory):
        """Initialize the proxy server.

        Args:
            config: Server configuration.
            directory: Source of package and version listings.

        Raises:
            ValueError: If the configured upstream URL is invalid.
        """
        self._config = config
        self._directory = directory
        self._app: Optional[web.Application] = None
        self._runner: Optional[web.AppRunner] = None
        self._listening = False

        upstream_url = parse_upstream_url(config.upstream_url)
        self._upstream = UpstreamClient(upstream_url)

        if config.owner:
            logger.info("packages owner set to: %s", config.owner)

    def _create_app(self) -> web.Application:
        """Create the aiohttp application."""
        app = web.Application(middlewares=[timeout_middleware(self._config.timeout)])
        app.router.add_get("/v2/_catalog", self.catalog, allow_head=False)
        app.router.add_get("/v2/{owner}/{name}/tags/list", self.tags_list, allow_head=False)
        app.router.add_route("*", "/{path:.*}", self._forward_request)
        app.on_startup.append(self._on_startup)
        app.on_cleanup.append(self._on_cleanup)
        return app

    async def _on_startup(self, app: web.Application) -> None:
        """Called when the server starts."""
        await self._upstream.start()

    async def _on_cleanup(self, app: web.Application) -> None:
        """Called when the server stops."""
        await self._upstream.stop()

    async def catalog(self, request: web.Request) -> web.Response:
        """List the container repositories visible to the configured owner.

        Args:
            request: ``GET /v2/_catalog`` request.

        Returns:
            ``{"repositories": [...]}`` or an error envelope.
        """
        try:
            packages = await self._directory.list_packages(
                self._config.owner,
                Constants.PACKAGE_TYPE_CONTAINER,
            )
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("ListPackages failed: %s", exc)
            return error_response("ListPackages", exc)

        return json_response({"repositories": repositories_from_packages(packages)})

    async def tags_list(self, request: web.Request) -> web.Response:
        """List the tags of one repository.

        Args:
            request: ``GET /v2/{owner}/{name}/tags/list`` request.

        Returns:
            ``{"name": "owner/name", "tags": [...]}`` or an error envelope.
        """
        owner = request.match_info["owner"]
        name = request.match_info["name"]

        try:
            versions = await self._directory.package_get_all_versions(
                owner,
                Constants.PACKAGE_TYPE_CONTAINER,
                name,
            )
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("PackageGetAllVersions failed for %s/%s: %s", owner, name, exc)
            return error_response("PackageGetAllVersions", exc)

        return json_response(
            {"name": repository_name(owner, name), "tags": tags_from_versions(versions)},
        )

    async def _forward_request(self, request: web.Request) -> web.StreamResponse:
        """Forward any other request to the upstream registry."""
        logger.info("%s %s -> %s", request.method, request.path_qs, self._upstream.upstream_url)
        return await self._upstream.forward(request)

    async def start(self) -> None:
        """Start the proxy server.

        Raises:
            OSError: If the listening socket cannot be bound.
        """
        self._app = self._create_app()
        self._runner = web.AppRunner(self._app)
        await self._runner.setup()

        site = web.TCPSite(
            self._runner,
            self._config.host,
            self._config.port,
        )
        try:
            await site.start()
        except OSError:
            await self.stop()
            raise
        self._listening = True

        logger.info(
            "starting container registry proxy on %s:%s",
            self._config.host, self._config.port,
        )
        logger.info("Upstream registry: %s", self._upstream.upstream_url)

    async def stop(self) -> None:
        """Stop the proxy server."""
        if self._runner:
            await self._runner.cleanup()
            self._runner = None
            self._app = None
        if self._listening:
            self._listening = False
            logger.info("Proxy server stopped")


def run_proxy_server_sync(config: ProxyConfig) -> None:
    """Run the proxy server synchronously.

    Installs signal handlers for SIGTERM and SIGINT for clean shutdown.

    Args:
        config: Server configuration.

    Raises:
        ValueError: If the upstream URL is invalid.
        OSError: If the listening socket cannot be bound.
    """
    loop = asyncio.new_event_loop()

    async def run():
        async with GitHubPackagesClient(
            token=config.github_token,
            base_url=config.github_api_url,
            timeout=config.timeout,
        ) as directory:
            server = RegistryProxyServer(config, directory)
            await server.start()
            stop_event = asyncio.Event()
            running_loop = asyncio.get_running_loop()
            for sig in (signal.SIGTERM, signal.SIGINT):
                running_loop.add_signal_handler(sig, stop_event.set)
            try:
                await stop_event.wait()
                logger.info("Shutdown signal received, stopping...")
            finally:
                await server.stop()
        logger.info("Proxy server shutdown complete")

    try:
        loop.run_until_complete(run())
    except KeyboardInterrupt:
        # Fallback for platforms where signal handlers don't work (Windows)
        logger.info("Interrupted, stopping...")
    finally:
        loop.close()
