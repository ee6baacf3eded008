"""Models listing endpoint - OpenAI compatible."""

import logging

from fastapi import Request, Response
from fastapi.responses import JSONResponse

from ...core import build_error_payload
from ...types import ModelEntry, ProviderInfo

logger = logging.getLogger("ocproxy")


def provider_models(providers: list[ProviderInfo]) -> list[ModelEntry]:
    """Flatten providers into ``provider/model`` entries."""
    models: list[ModelEntry] = []
    for provider in providers:
        provider_id = provider.get("id")
        model_map = provider.get("models") or {}
        if not provider_id or not isinstance(model_map, dict):
            continue
        for model_id in model_map:
            models.append({
                "id": f"{provider_id}/{model_id}",
                "object": "model",
                "owned_by": provider_id,
            })
    return models


async def list_models(request: Request) -> Response:
    """List available models in OpenAI API format.

    GET /v1/models

    Any backend failure is reported as a 500 ``server_error``.
    """
    logger.info("Received models list request")
    client = request.app.state.backend

    try:
        providers = await client.list_providers()
    except Exception as exc:
        logger.error(f"Failed to list models: {exc}")
        message = str(exc) or "Failed to list models"
        return JSONResponse(build_error_payload(message, "server_error"), status_code=500)

    return JSONResponse({
        "object": "list",
        "data": provider_models(providers),
    })
