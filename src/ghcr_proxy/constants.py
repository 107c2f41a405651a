"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    CONFIG_ERROR = 1
    BIND_ERROR = 2


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    DEFAULT_HOST = "127.0.0.1"
    DEFAULT_PORT = 10000
    DEFAULT_UPSTREAM_URL = "https://ghcr.io"
    REQUEST_TIMEOUT = 30  # Per-request server-side timeout in seconds

    PACKAGE_TYPE_CONTAINER = "container"

    # GitHub REST API
    GITHUB_API_BASE = "https://api.github.com"
    GITHUB_API_VERSION = "2022-11-28"
    GITHUB_MEDIA_TYPE = "application/vnd.github+json"

    # Environment variables
    ENV_HOST = "HOST"
    ENV_PORT = "PORT"
    ENV_UPSTREAM_URL = "UPSTREAM_URL"
    ENV_GITHUB_TOKEN = "GITHUB_TOKEN"
    ENV_GITHUB_PACKAGES_OWNER = "GITHUB_PACKAGES_OWNER"
    ENV_GITHUB_API_URL = "GITHUB_API_URL"
    ENV_TIMEOUT = "PROXY_TIMEOUT"
    ENV_LOG_LEVEL = "GHCR_PROXY_LOG_LEVEL"

    LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    USER_AGENT = "ghcr-proxy/1.0"
