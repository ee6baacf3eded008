"""HTTP client for an opencode server.

Speaks the opencode server's session API:

    POST /session                  -> {"id": "ses_..."}
    POST /session/{id}/message     -> {"info": {...}, "parts": [...]}
                                      or a text/event-stream of chunks
    GET  /provider                 -> {"all": [{"id": ..., "models": {...}}]}
                                      (optionally wrapped in {"data": ...})
"""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, Optional

import httpx

from ..core.exceptions import BackendError, BackendTimeoutError
from ..core.sse import SSE_MEDIA_TYPE, iter_sse_json
from ..types import BackendPart, BackendReply, BackendSession, ProviderInfo, StreamChunk
from .base import BackendClient
from .transports import transport_for

logger = logging.getLogger("ocproxy")

DEFAULT_BACKEND_URL = "http://127.0.0.1:4096"


def format_httpx_error(exc: Any, url: Optional[str] = None) -> str:
    """Produce a detailed, user-facing description of an httpx error."""
    parts = [exc.__class__.__name__]
    message = str(exc).strip()
    if message:
        parts.append(message)

    request = getattr(exc, "request", None) if isinstance(exc, httpx.RequestError) else None
    if request is not None:
        parts.append(f"request={request.method} {request.url}")
    elif url:
        parts.append(f"url={url}")

    return "; ".join(parts)


def _split_model(model: Optional[str]) -> Optional[dict[str, str]]:
    """Split "provider/model" into the backend's model selector."""
    if not isinstance(model, str) or "/" not in model:
        return None
    provider_id, model_id = model.split("/", 1)
    if not provider_id or not model_id:
        return None
    return {"providerID": provider_id, "modelID": model_id}


def normalize_reply(payload: Any) -> BackendReply:
    """Flatten an opencode message reply into ``{"parts", "model"}``."""
    if not isinstance(payload, dict):
        return {"parts": []}
    reply: BackendReply = {"parts": payload.get("parts") or []}
    model = payload.get("model")
    info = payload.get("info")
    if not model and isinstance(info, dict):
        provider_id = info.get("providerID")
        model_id = info.get("modelID")
        if provider_id and model_id:
            model = f"{provider_id}/{model_id}"
    if isinstance(model, str) and model:
        reply["model"] = model
    return reply


class OpencodeClient(BackendClient):
    """Backend client talking to an opencode server over HTTP."""

    name = "opencode"

    def __init__(
        self,
        base_url: str = DEFAULT_BACKEND_URL,
        *,
        timeout: Optional[float] = None,
        directory: Optional[str] = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: opencode server URL
            timeout: Per-request HTTP timeout in seconds (None = no limit;
                the gateway's deadline still applies)
            directory: Optional project directory forwarded to the server
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.directory = directory

    def build_url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _params(self) -> dict[str, str]:
        return {"directory": self.directory} if self.directory else {}

    def _client(self, url: str) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=transport_for(url),
            follow_redirects=True,
        )

    async def _request_json(self, method: str, path: str, body: Any = None) -> Any:
        url = self.build_url(path)
        try:
            async with self._client(url) as client:
                response = await client.request(method, url, json=body, params=self._params())
        except httpx.TimeoutException as exc:
            raise BackendTimeoutError(format_httpx_error(exc, url), timeout_s=self.timeout) from exc
        except httpx.HTTPError as exc:
            raise BackendError(format_httpx_error(exc, url)) from exc
        _raise_for_status(response)
        try:
            return response.json()
        except json.JSONDecodeError as exc:
            raise BackendError(f"Backend returned invalid JSON from {method} {path}") from exc

    async def create_session(self) -> BackendSession:
        session = await self._request_json("POST", "/session", {})
        if not isinstance(session, dict) or not session.get("id"):
            raise BackendError("Backend did not return a session id")
        logger.debug("Created backend session %s", session["id"])
        return session

    async def send_message(
        self,
        session_id: str,
        parts: list[BackendPart],
        *,
        stream: bool = False,
        model: Optional[str] = None,
    ) -> BackendReply | AsyncIterator[StreamChunk]:
        path = f"/session/{session_id}/message"
        body: dict[str, Any] = {"parts": parts}
        selector = _split_model(model)
        if selector:
            body["model"] = selector
        if not stream:
            return normalize_reply(await self._request_json("POST", path, body))

        body["stream"] = True
        url = self.build_url(path)
        client = self._client(url)
        try:
            request = client.build_request("POST", url, json=body, params=self._params())
            response = await client.send(request, stream=True)
        except httpx.TimeoutException as exc:
            await client.aclose()
            raise BackendTimeoutError(format_httpx_error(exc, url), timeout_s=self.timeout) from exc
        except httpx.HTTPError as exc:
            await client.aclose()
            raise BackendError(format_httpx_error(exc, url)) from exc
        except BaseException:
            await client.aclose()
            raise

        content_type = response.headers.get("content-type", "")
        if response.status_code < 400 and SSE_MEDIA_TYPE in content_type:
            return self._iter_chunks(client, response, url)

        # Backend doesn't stream - read the full reply
        try:
            await response.aread()
        except httpx.HTTPError as exc:
            raise BackendError(format_httpx_error(exc, url)) from exc
        finally:
            await response.aclose()
            await client.aclose()
        _raise_for_status(response)
        try:
            return normalize_reply(response.json())
        except json.JSONDecodeError as exc:
            raise BackendError(f"Backend returned invalid JSON from POST {path}") from exc

    async def _iter_chunks(
        self,
        client: httpx.AsyncClient,
        response: httpx.Response,
        url: str,
    ) -> AsyncIterator[StreamChunk]:
        try:
            async for chunk in iter_sse_json(response.aiter_lines()):
                error = chunk.get("error")
                if error:
                    message = error.get("message") if isinstance(error, dict) else str(error)
                    raise BackendError(message or "Backend stream error")
                yield chunk
        except httpx.TimeoutException as exc:
            raise BackendTimeoutError(format_httpx_error(exc, url), timeout_s=self.timeout) from exc
        except httpx.HTTPError as exc:
            raise BackendError(format_httpx_error(exc, url)) from exc
        finally:
            await response.aclose()
            await client.aclose()

    async def list_providers(self) -> list[ProviderInfo]:
        payload = await self._request_json("GET", "/provider")
        if isinstance(payload, dict) and isinstance(payload.get("data"), dict):
            payload = payload["data"]
        if not isinstance(payload, dict):
            raise BackendError("Backend returned an invalid provider listing")
        providers = payload.get("all")
        if providers is None:
            providers = payload.get("providers")
        if not isinstance(providers, list):
            raise BackendError("Backend returned an invalid provider listing")
        return [p for p in providers if isinstance(p, dict) and p.get("id")]

    def describe(self) -> dict[str, Any]:
        return {"name": self.name, "base_url": self.base_url}


def _raise_for_status(response: httpx.Response) -> None:
    if response.status_code < 400:
        return
    detail = response.text.strip()[:500]
    message = f"Backend returned HTTP {response.status_code}"
    if detail:
        message = f"{message}: {detail}"
    raise BackendError(message, status_code=response.status_code)
