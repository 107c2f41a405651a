"""Docker Registry V2 error envelope."""

from __future__ import annotations

import json
from functools import partial
from typing import Any, Dict

from aiohttp import web

ERROR_UNKNOWN = "UNKNOWN"

# Compact separators, matching what registry clients usually receive.
dumps = partial(json.dumps, separators=(",", ":"))


def json_response(data: Any, status: int = 200) -> web.Response:
    """Compact JSON response with a bare ``application/json`` content type."""
    return web.Response(
        body=dumps(data).encode("utf-8"),
        status=status,
        content_type="application/json",
    )


def make_error(code: str, message: str, detail: str = "") -> Dict[str, Any]:
    """Build an error envelope holding a single error item."""
    return {
        "errors": [
            {"code": code, "message": message, "detail": detail},
        ],
    }


def error_response(operation: str, exc: BaseException) -> web.Response:
    """Report a failed GitHub call to the registry client.

    Every failure is classified as UNKNOWN and answered with 400, whatever
    its cause.

    Args:
        operation: Name of the failed call, used as the message prefix.
        exc: The failure raised by the package directory.

    Returns:
        400 JSON response.
    """
    return json_response(make_error(ERROR_UNKNOWN, f"{operation}: {exc}"), status=400)
