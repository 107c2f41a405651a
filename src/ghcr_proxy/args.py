"""Argument parsing for the ghcr-proxy command.

Every option defaults to an environment variable so the proxy can be
configured either way; the GitHub token is environment-only.
"""

import argparse
import os

from ghcr_proxy.constants import Constants


def _env(name, default=None):
    value = os.environ.get(name)
    return value if value else default


def build_parser():
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="ghcr-proxy",
        description=(
            "Docker Registry HTTP API V2 proxy answering catalog and tag list "
            "requests from GitHub Packages. The GitHub token is read from "
            f"${Constants.ENV_GITHUB_TOKEN}."
        ),
        add_help=True,
    )

    parser.add_argument("--host",
                        dest="PROXY_HOST",
                        help=f"Listening address (env {Constants.ENV_HOST}, default {Constants.DEFAULT_HOST})",
                        action="store", type=str,
                        default=_env(Constants.ENV_HOST, Constants.DEFAULT_HOST))
    parser.add_argument("--port",
                        dest="PROXY_PORT",
                        help=f"Listening port (env {Constants.ENV_PORT}, default {Constants.DEFAULT_PORT})",
                        action="store", type=int,
                        default=_env(Constants.ENV_PORT, Constants.DEFAULT_PORT))
    parser.add_argument("--upstream-url",
                        dest="UPSTREAM_URL",
                        help=("Registry receiving every request that is not a catalog or tag list "
                              f"(env {Constants.ENV_UPSTREAM_URL}, default {Constants.DEFAULT_UPSTREAM_URL})"),
                        action="store", type=str,
                        default=_env(Constants.ENV_UPSTREAM_URL, Constants.DEFAULT_UPSTREAM_URL))
    parser.add_argument("--owner",
                        dest="PACKAGES_OWNER",
                        help=("User or organization whose packages make up the catalog; defaults to "
                              f"the authenticated user (env {Constants.ENV_GITHUB_PACKAGES_OWNER})"),
                        action="store", type=str,
                        default=_env(Constants.ENV_GITHUB_PACKAGES_OWNER, ""))
    parser.add_argument("--github-api-url",
                        dest="GITHUB_API_URL",
                        help=f"GitHub REST API root (env {Constants.ENV_GITHUB_API_URL})",
                        action="store", type=str,
                        default=_env(Constants.ENV_GITHUB_API_URL, Constants.GITHUB_API_BASE))
    parser.add_argument("--timeout",
                        dest="PROXY_TIMEOUT",
                        help=("Per-request timeout in seconds "
                              f"(env {Constants.ENV_TIMEOUT}, default {Constants.REQUEST_TIMEOUT})"),
                        action="store", type=float,
                        default=_env(Constants.ENV_TIMEOUT, Constants.REQUEST_TIMEOUT))
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Also write log records to this file",
                        action="store",
                        type=str)
    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
