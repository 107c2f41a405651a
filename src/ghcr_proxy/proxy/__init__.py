"""Registry proxy server package.

This package serves the Docker Registry HTTP API V2 catalog and tag list
endpoints from GitHub Packages and forwards every other request to the
upstream registry.
"""

from .errors import ERROR_UNKNOWN, error_response, make_error
from .server import ProxyConfig, RegistryProxyServer
from .translate import repositories_from_packages, tags_from_versions
from .upstream import UpstreamClient, parse_upstream_url

__all__ = [
    "ERROR_UNKNOWN",
    "error_response",
    "make_error",
    "ProxyConfig",
    "RegistryProxyServer",
    "repositories_from_packages",
    "tags_from_versions",
    "UpstreamClient",
    "parse_upstream_url",
]
