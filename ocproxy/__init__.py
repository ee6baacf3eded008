"""ocproxy - OpenAI compatible proxy for OpenCode

Exposes an OpenAI chat-completions surface in front of an opencode server,
translating requests into backend sessions and replies back into OpenAI
completions or SSE chunk streams.

This module provides:
- create_app: FastAPI application factory
- ProxyServer: explicit start/stop handle around the HTTP listener
- ProxySettings / load_settings: layered configuration
- BackendClient implementations for opencode and a static mock

Example:
    >>> from ocproxy import ProxyServer, create_app, load_settings
    >>> settings = load_settings()
    >>> ProxyServer(create_app(settings), settings).run()
"""

from .backend import BackendClient, OpencodeClient, StaticBackendClient, build_backend_client
from .config_loader import ProxySettings, load_config, load_settings
from .core import BackendInvoker, Deadline
from .logging import logger, setup_logging
from .main import create_app
from .server import ProxyServer

__version__ = "0.1.0"

__all__ = [
    "BackendClient",
    "BackendInvoker",
    "build_backend_client",
    "create_app",
    "Deadline",
    "load_config",
    "load_settings",
    "logger",
    "OpencodeClient",
    "ProxyServer",
    "ProxySettings",
    "setup_logging",
    "StaticBackendClient",
]
