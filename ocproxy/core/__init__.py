"""Core module initialization."""

from .errors import build_error_payload, error_response, is_timeout, map_exception
from .exceptions import (
    AuthenticationError,
    BackendError,
    BackendTimeoutError,
    ConfigurationError,
    InvalidRequestError,
    ProxyError,
)
from .invoker import BackendInvoker, Deadline
from .sse import DONE_EVENT, SSE_MEDIA_TYPE, format_sse_data, iter_sse_json

__all__ = [
    "AuthenticationError",
    "BackendError",
    "BackendInvoker",
    "BackendTimeoutError",
    "ConfigurationError",
    "DONE_EVENT",
    "Deadline",
    "InvalidRequestError",
    "ProxyError",
    "SSE_MEDIA_TYPE",
    "build_error_payload",
    "error_response",
    "format_sse_data",
    "is_timeout",
    "iter_sse_json",
    "map_exception",
]
