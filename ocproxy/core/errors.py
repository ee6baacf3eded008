"""Mapping of failures onto OpenAI-compatible error envelopes.

Every failure the gateway can surface is classified into one of four error
types, each tied to an HTTP status:

    invalid_request_error  400  body is not JSON / not a JSON object
    authentication_error   401  missing or wrong bearer credential
    provider_error         504  backend deadline exceeded
    server_error           500  anything else

The mapper is pure: it neither logs nor retries, callers decide what to do
with the result.
"""

from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse

from ..types import ErrorEnvelope
from .exceptions import AuthenticationError, BackendTimeoutError, InvalidRequestError

INVALID_REQUEST_ERROR = "invalid_request_error"
AUTHENTICATION_ERROR = "authentication_error"
PROVIDER_ERROR = "provider_error"
SERVER_ERROR = "server_error"

TIMEOUT_MESSAGE = "provider timeout"


def build_error_payload(message: str, error_type: str = SERVER_ERROR) -> ErrorEnvelope:
    """Build an OpenAI error envelope."""
    return {
        "error": {
            "message": message,
            "type": error_type,
            "param": None,
            "code": None,
        }
    }


def _describe(exc: BaseException) -> str:
    message = getattr(exc, "message", None) or str(exc)
    return message or type(exc).__name__


def is_timeout(exc: BaseException) -> bool:
    """Return True when the failure represents an exceeded deadline.

    BackendTimeoutError is the explicit signal. Errors raised by third-party
    code are only known by their text, so a "timeout" mention counts too.
    """
    if isinstance(exc, BackendTimeoutError):
        return True
    return "timeout" in str(exc).lower()


def map_exception(exc: BaseException) -> tuple[int, ErrorEnvelope]:
    """Classify a failure into ``(http_status, error_envelope)``."""
    if isinstance(exc, InvalidRequestError):
        return 400, build_error_payload(_describe(exc), INVALID_REQUEST_ERROR)
    if isinstance(exc, AuthenticationError):
        return 401, build_error_payload(_describe(exc), AUTHENTICATION_ERROR)
    if is_timeout(exc):
        return 504, build_error_payload(TIMEOUT_MESSAGE, PROVIDER_ERROR)
    return 500, build_error_payload(_describe(exc), SERVER_ERROR)


def error_response(exc: BaseException, headers: dict[str, Any] | None = None) -> JSONResponse:
    """Render a failure as a JSON error response."""
    status_code, payload = map_exception(exc)
    return JSONResponse(payload, status_code=status_code, headers=headers)
