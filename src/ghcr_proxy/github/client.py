"""GitHub Packages REST client.

``PackageDirectory`` is the capability the registry handlers depend on;
``GitHubPackagesClient`` implements it with aiohttp against the GitHub REST
API. Tests substitute their own ``PackageDirectory``.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Protocol
from urllib.parse import quote

import aiohttp

from ghcr_proxy.common.logging_utils import Timer, extra_context, is_debug_enabled, safe_url
from ghcr_proxy.constants import Constants

from .models import Package, PackageVersion

logger = logging.getLogger(__name__)


class GitHubAPIError(Exception):
    """Raised when a GitHub API call fails for any reason."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class PackageDirectory(Protocol):
    """Read-only view of packages hosted on GitHub.

    An empty ``user`` means the authenticated user.
    """

    async def list_packages(self, user: str, package_type: str) -> List[Package]:
        ...

    async def package_get_all_versions(
        self,
        user: str,
        package_type: str,
        package_name: str,
    ) -> List[PackageVersion]:
        ...


class GitHubPackagesClient:
    """aiohttp-based client for the GitHub Packages endpoints.

    Only the first page of each listing is fetched.
    """

    def __init__(
        self,
        token: str = "",
        base_url: str = Constants.GITHUB_API_BASE,
        timeout: float = Constants.REQUEST_TIMEOUT,
    ):
        """Initialize the client.

        Args:
            token: GitHub token; requests are anonymous when empty.
            base_url: REST API root.
            timeout: Total timeout for one API call, in seconds.
        """
        self._token = token
        self._base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    async def start(self) -> None:
        """Start the HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession(timeout=self._timeout)

    async def stop(self) -> None:
        """Stop the HTTP session."""
        if self._session:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "GitHubPackagesClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()

    def _user_prefix(self, user: str) -> str:
        if not user:
            return f"{self._base_url}/user"
        return f"{self._base_url}/users/{quote(user, safe='')}"

    def _get_headers(self) -> Dict[str, str]:
        headers = {
            "Accept": Constants.GITHUB_MEDIA_TYPE,
            "X-GitHub-Api-Version": Constants.GITHUB_API_VERSION,
            "User-Agent": Constants.USER_AGENT,
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def packages_url(self, user: str) -> str:
        return f"{self._user_prefix(user)}/packages"

    def versions_url(self, user: str, package_type: str, package_name: str) -> str:
        return (
            f"{self._user_prefix(user)}/packages/"
            f"{quote(package_type, safe='')}/{quote(package_name, safe='')}/versions"
        )

    async def list_packages(self, user: str, package_type: str) -> List[Package]:
        """List packages of ``package_type`` owned by ``user``."""
        data = await self._get_json(
            self.packages_url(user),
            params={"package_type": package_type},
        )
        return [Package.from_dict(item) for item in _as_list(data)]

    async def package_get_all_versions(
        self,
        user: str,
        package_type: str,
        package_name: str,
    ) -> List[PackageVersion]:
        """List the versions of a package owned by ``user``."""
        data = await self._get_json(self.versions_url(user, package_type, package_name))
        return [PackageVersion.from_dict(item) for item in _as_list(data)]

    async def _get_json(self, url: str, params: Optional[Dict[str, str]] = None) -> Any:
        if self._session is None:
            await self.start()
        assert self._session is not None

        target = safe_url(url)
        with Timer() as t:
            try:
                async with self._session.get(
                    url, params=params, headers=self._get_headers()
                ) as response:
                    if is_debug_enabled(logger):
                        logger.debug(
                            "GitHub API response",
                            extra=extra_context(
                                event="http_response",
                                component="github_client",
                                action="GET",
                                status_code=response.status,
                                duration_ms=t.duration_ms(),
                                target=target,
                            ),
                        )
                    if response.status >= 300:
                        raise GitHubAPIError(
                            await _error_text(response),
                            status=response.status,
                        )
                    return await response.json(content_type=None)
            except aiohttp.ClientError as exc:
                raise GitHubAPIError(f"GET {target}: {exc}") from exc
            except asyncio.TimeoutError as exc:
                raise GitHubAPIError(f"GET {target}: request timed out") from exc
            except ValueError as exc:
                raise GitHubAPIError(f"GET {target}: invalid JSON response: {exc}") from exc


def _as_list(data: Any) -> List[Any]:
    return data if isinstance(data, list) else []


async def _error_text(response: aiohttp.ClientResponse) -> str:
    """Format a failed response like ``GET <url>: 404 Not Found``."""
    message = ""
    try:
        body = await response.json(content_type=None)
    except (aiohttp.ClientError, ValueError):
        body = None
    if isinstance(body, dict) and isinstance(body.get("message"), str):
        message = body["message"]

    text = f"{response.method} {safe_url(str(response.url))}: {response.status}"
    if response.reason:
        text = f"{text} {response.reason}"
    if message:
        text = f"{text} - {message}"
    return text
