"""
API key access control for the Portfolio Snapshots service.

When ``API_KEY`` is configured, every request outside the excluded paths must
send it in the ``X-API-Key`` header. Users, sessions and password flows are
left to the identity provider in front of the service.

To generate a key:
    python scripts/generate_api_key.py
"""

import logging
import secrets

from starlette.requests import Request
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)

API_KEY_HEADER = "X-API-Key"


def verify_api_key(provided: str, expected: str) -> bool:
    """Constant-time comparison of the provided key against the configured one."""
    if not provided or not expected:
        return False
    return secrets.compare_digest(provided.encode(), expected.encode())


class ApiKeyMiddleware:
    """
    Middleware that rejects requests without a valid API key.
    Excludes health and documentation paths.
    """

    EXCLUDED_PATHS = {
        "/",
        "/health",
        "/docs",
        "/openapi.json",
        "/redoc",
    }

    EXCLUDED_PREFIXES = (
        "/docs/",
    )

    def __init__(self, app, api_key: str):
        self.app = app
        self.api_key = api_key

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope["path"]

        if path in self.EXCLUDED_PATHS or any(path.startswith(p) for p in self.EXCLUDED_PREFIXES):
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        if verify_api_key(request.headers.get(API_KEY_HEADER, ""), self.api_key):
            await self.app(scope, receive, send)
            return

        logger.warning(f"Rejected {request.method} {path}: missing or invalid API key")
        response = JSONResponse(status_code=401, content={"detail": "Not authenticated"})
        await response(scope, receive, send)
