"""Bearer API key authentication for the proxy."""

from __future__ import annotations

import hmac
import logging
from typing import Awaitable, Callable, Optional

from fastapi import Request, Response

from ..core.errors import error_response
from ..core.exceptions import AuthenticationError

logger = logging.getLogger("ocproxy")

# Paths reachable without a key
EXEMPT_PATHS = frozenset({"/openapi.json"})


def extract_bearer_token(auth_header: Optional[str]) -> Optional[str]:
    """Return the token of an ``Authorization: Bearer <token>`` header.

    The header must be exactly two space-separated fields, the first being
    the literal ``Bearer``.
    """
    if not auth_header:
        return None
    parts = auth_header.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer":
        return None
    return parts[1]


def validate_api_key(auth_header: Optional[str], api_key: Optional[str]) -> bool:
    """Check a request's Authorization header against the configured key.

    Args:
        auth_header: Raw Authorization header value, if any.
        api_key: Configured key; when empty, every request is allowed.

    Returns:
        True if the request may proceed.
    """
    if not api_key:
        return True
    token = extract_bearer_token(auth_header)
    if token is None:
        return False
    # Use constant-time comparison to prevent timing attacks
    return hmac.compare_digest(token.encode("utf-8"), api_key.encode("utf-8"))


class ApiKeyMiddleware:
    """HTTP middleware rejecting requests without the configured bearer key."""

    def __init__(self, api_key: Optional[str]) -> None:
        self.api_key = api_key

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def __call__(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        if not self.enabled or request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        if not validate_api_key(request.headers.get("Authorization"), self.api_key):
            logger.warning(
                "Request rejected: missing or invalid API key for %s %s",
                request.method,
                request.url.path,
            )
            return error_response(AuthenticationError("Unauthorized"))
        return await call_next(request)
