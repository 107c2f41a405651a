"""Tests for the GitHub Packages client."""

import asyncio

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from ghcr_proxy.github.client import GitHubAPIError, GitHubPackagesClient
from ghcr_proxy.github.models import Package, PackageVersion


PACKAGES = [
    {"id": 1, "name": "some-package", "package_type": "container", "owner": {"login": "some-owner"}},
    {"id": 2, "package_type": "container", "owner": {"login": "some-owner"}},
]

VERSIONS = [
    {"id": 10, "name": "sha256:aaa", "metadata": {"package_type": "container",
                                                 "container": {"tags": ["latest", "v1"]}}},
    {"id": 11, "name": "sha256:bbb", "metadata": {"package_type": "container"}},
]


def _fake_github(seen):
    async def user_packages(request):
        seen.append((request.path, dict(request.query), request.headers.get("Authorization")))
        return web.json_response(PACKAGES)

    async def users_packages(request):
        seen.append((request.path, dict(request.query), request.headers.get("Authorization")))
        if request.match_info["user"] == "missing":
            return web.json_response({"message": "Not Found"}, status=404)
        return web.json_response(PACKAGES[:1])

    async def versions(request):
        seen.append((request.path, dict(request.query), request.headers.get("Authorization")))
        return web.json_response(VERSIONS)

    async def broken(request):
        return web.Response(text="<html>", content_type="text/html")

    app = web.Application()
    app.router.add_get("/user/packages", user_packages)
    app.router.add_get("/users/{user}/packages", users_packages)
    app.router.add_get("/user/packages/{type}/{name}/versions", versions)
    app.router.add_get("/users/broken/packages/{type}/{name}/versions", broken)
    app.router.add_get("/users/{user}/packages/{type}/{name}/versions", versions)
    return app


def _call(method, *args, token="ghp_token"):
    seen = []

    async def _run():
        async with TestServer(_fake_github(seen)) as server:
            base_url = str(server.make_url("/"))
            async with GitHubPackagesClient(token=token, base_url=base_url) as client:
                return await getattr(client, method)(*args)

    return asyncio.run(_run()), seen


class TestUrls:
    """Tests for endpoint selection."""

    def test_authenticated_user_paths(self):
        """An empty user targets the /user endpoints."""
        client = GitHubPackagesClient(base_url="https://api.github.com/")
        assert client.packages_url("") == "https://api.github.com/user/packages"
        assert client.versions_url("", "container", "img") == (
            "https://api.github.com/user/packages/container/img/versions"
        )

    def test_named_user_paths_are_escaped(self):
        """Path segments are percent-escaped."""
        client = GitHubPackagesClient()
        assert client.versions_url("some-owner", "container", "group/img") == (
            "https://api.github.com/users/some-owner/packages/container/group%2Fimg/versions"
        )


class TestListPackages:
    """Tests for package listing."""

    def test_authenticated_user(self):
        """Packages of the authenticated user are decoded in order."""
        packages, seen = _call("list_packages", "", "container")

        assert seen == [("/user/packages", {"package_type": "container"}, "Bearer ghp_token")]
        assert [p.name for p in packages] == ["some-package", None]
        assert all(isinstance(p, Package) for p in packages)
        assert packages[0].owner.login == "some-owner"

    def test_named_owner(self):
        """A named owner uses the /users/{user} endpoint."""
        packages, seen = _call("list_packages", "some-owner", "container")
        assert seen[0][0] == "/users/some-owner/packages"
        assert len(packages) == 1

    def test_anonymous(self):
        """No Authorization header is sent without a token."""
        _, seen = _call("list_packages", "", "container", token="")
        assert seen[0][2] is None

    def test_not_found_raises(self):
        """Non-2xx responses raise GitHubAPIError carrying GitHub's message."""
        with pytest.raises(GitHubAPIError) as excinfo:
            _call("list_packages", "missing", "container")

        assert excinfo.value.status == 404
        text = str(excinfo.value)
        assert text.startswith("GET ")
        assert "/users/missing/packages" in text
        assert "404" in text
        assert text.endswith("- Not Found")


class TestPackageGetAllVersions:
    """Tests for version listing."""

    def test_versions_decoded(self):
        """Versions carry their container tags."""
        versions, seen = _call("package_get_all_versions", "some-owner", "container", "some-package")

        assert seen[0][0] == "/users/some-owner/packages/container/some-package/versions"
        assert seen[0][1] == {}
        assert all(isinstance(v, PackageVersion) for v in versions)
        assert versions[0].metadata.container.tags == ["latest", "v1"]
        assert versions[1].metadata.container is None

    def test_invalid_json_raises(self):
        """Undecodable bodies are reported as GitHubAPIError."""
        with pytest.raises(GitHubAPIError):
            _call("package_get_all_versions", "broken", "container", "img")

    def test_connection_error_raises(self):
        """Transport failures are reported as GitHubAPIError."""
        async def _run():
            server = TestServer(web.Application())
            await server.start_server()
            base_url = str(server.make_url("/"))
            await server.close()
            async with GitHubPackagesClient(base_url=base_url) as client:
                await client.package_get_all_versions("some-owner", "container", "img")

        with pytest.raises(GitHubAPIError):
            asyncio.run(_run())
