"""CLI entry point for the ghcr-proxy server."""

from __future__ import annotations

import logging
import sys
from typing import Any, Optional, Sequence

from ghcr_proxy.args import parse_args
from ghcr_proxy.common.logging_utils import configure_logging
from ghcr_proxy.constants import Constants, ExitCodes
from ghcr_proxy.proxy.server import ProxyConfig, run_proxy_server_sync
from ghcr_proxy.proxy.upstream import parse_upstream_url

logger = logging.getLogger(__name__)


def _setup_logging(args: Any) -> None:
    """Configure logging based on CLI arguments.

    Args:
        args: Parsed CLI arguments.
    """
    configure_logging(getattr(args, "LOG_LEVEL", None))

    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def run_proxy_server(args: Any) -> None:
    """Start the proxy server; fatal configuration errors exit the process.

    Args:
        args: Parsed CLI arguments namespace.
    """
    _setup_logging(args)

    config = ProxyConfig.from_args(args)
    try:
        parse_upstream_url(config.upstream_url)
    except ValueError as exc:
        logger.critical("%s", exc)
        sys.exit(ExitCodes.CONFIG_ERROR.value)

    if not config.github_token:
        logger.warning(
            "%s is not set; GitHub API calls will be anonymous",
            Constants.ENV_GITHUB_TOKEN,
        )

    try:
        run_proxy_server_sync(config)
    except OSError as exc:
        logger.critical("cannot listen on %s:%s: %s", config.host, config.port, exc)
        sys.exit(ExitCodes.BIND_ERROR.value)


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Console script entry point."""
    run_proxy_server(parse_args(argv))
