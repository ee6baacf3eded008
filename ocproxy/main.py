"""Main FastAPI application for the OpenAI-compatible opencode proxy."""

from contextlib import asynccontextmanager
import logging
from typing import Optional

from fastapi import FastAPI

from .api.routes import chat_completions, health, list_models
from .auth import ApiKeyMiddleware
from .backend import BackendClient, build_backend_client
from .config_loader import ProxySettings, load_settings
from .core import BackendInvoker

logger = logging.getLogger("ocproxy")

API_TITLE = "OpenCode OpenAI Proxy"
API_VERSION = "0.1.0"
API_DESCRIPTION = "OpenAI compatible proxy for OpenCode models"

ENDPOINTS = (
    ("POST", "/v1/chat/completions"),
    ("GET", "/v1/models"),
    ("GET", "/health"),
    ("GET", "/openapi.json"),
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log startup details and release the backend client on shutdown."""
    settings: ProxySettings = app.state.settings
    backend: BackendClient = app.state.backend
    logger.info("OpenAI proxy starting up...")
    logger.info(f"Backend: {backend.describe()}")
    logger.info(f"Backend timeout: {settings.timeout_ms}ms")
    if settings.auth_enabled:
        logger.info("API key authentication enabled")
    try:
        yield
    finally:
        await backend.aclose()
        logger.info("OpenAI proxy stopped")


def create_app(
    settings: Optional[ProxySettings] = None,
    client: Optional[BackendClient] = None,
) -> FastAPI:
    """Factory function to create the FastAPI application.

    Args:
        settings: Proxy settings; loaded from config/environment when omitted.
        client: Backend client; built from the settings when omitted.

    Returns:
        The configured FastAPI application instance.
    """
    if settings is None:
        settings = load_settings()
    if client is None:
        client = build_backend_client(settings.backend, settings.backend_url)

    app = FastAPI(
        title=API_TITLE,
        version=API_VERSION,
        description=API_DESCRIPTION,
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.backend = client
    app.state.invoker = BackendInvoker(client, timeout_ms=settings.timeout_ms)

    app.middleware("http")(ApiKeyMiddleware(settings.api_key))

    app.post(
        "/v1/chat/completions",
        summary="Chat completions (compat)",
        operation_id="chat.completions",
    )(chat_completions)
    app.get(
        "/v1/models",
        summary="List models (compat)",
        operation_id="models.list",
    )(list_models)
    app.get("/health", summary="Health check", operation_id="health")(health)

    logger.debug("FastAPI application created")
    return app


__all__ = ["API_TITLE", "API_VERSION", "ENDPOINTS", "create_app", "lifespan"]
