"""
Cross-origin headers for the checkout endpoint.
"""

from typing import Iterable, Optional

from fastapi import Response

ALLOW_METHODS = "POST, OPTIONS"
ALLOW_HEADERS = "Content-Type"


def apply_cors_headers(response: Response, origin: Optional[str], allowed_origins: Iterable[str]) -> Response:
    """
    Add the checkout CORS headers to ``response``.

    ``Access-Control-Allow-Origin`` echoes the request origin only when it is in
    the allow-list; the other headers are always present.
    """
    response.headers["Access-Control-Allow-Methods"] = ALLOW_METHODS
    response.headers["Access-Control-Allow-Headers"] = ALLOW_HEADERS
    response.headers["Vary"] = "Origin"
    if origin and origin.rstrip("/") in set(allowed_origins):
        response.headers["Access-Control-Allow-Origin"] = origin
    return response
