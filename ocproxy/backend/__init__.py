"""Session backend clients."""

from .base import BackendClient
from .mock import StaticBackendClient
from .opencode import DEFAULT_BACKEND_URL, OpencodeClient
from .transports import (
    clear_backend_transports,
    mounted_transport,
    register_backend_transport,
    transport_for,
    unregister_backend_transport,
)

BACKEND_TYPES = ("opencode", "mock")


def build_backend_client(
    backend: str = "opencode",
    backend_url: str = DEFAULT_BACKEND_URL,
) -> BackendClient:
    """Create the backend client named by the configuration."""
    if backend == "mock":
        return StaticBackendClient()
    if backend == "opencode":
        return OpencodeClient(backend_url)
    raise ValueError(f"Unknown backend type: {backend}")


__all__ = [
    "BACKEND_TYPES",
    "BackendClient",
    "DEFAULT_BACKEND_URL",
    "OpencodeClient",
    "StaticBackendClient",
    "build_backend_client",
    "clear_backend_transports",
    "mounted_transport",
    "register_backend_transport",
    "transport_for",
    "unregister_backend_transport",
]
