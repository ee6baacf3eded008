"""OpenAI-compatible chat completions endpoint."""

import json
import logging
import time
import uuid
from typing import Any, Mapping

from fastapi import Request, Response
from fastapi.responses import JSONResponse, StreamingResponse

from ...core import BackendInvoker, InvalidRequestError, SSE_MEDIA_TYPE, error_response
from ...translation import ChatCompletionStreamAdapter, normalize_chat_request, to_chat_completion

logger = logging.getLogger("ocproxy")

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _get_invoker(request: Request) -> BackendInvoker:
    return request.app.state.invoker


async def _read_payload(request: Request, req_id: str) -> Mapping[str, Any]:
    body = await request.body()
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.error(f"[{req_id}] Invalid JSON payload: {exc}")
        raise InvalidRequestError("Invalid JSON payload", code="invalid_json") from exc

    if not isinstance(payload, Mapping):
        logger.error(f"[{req_id}] Payload must be a JSON object")
        raise InvalidRequestError(
            "Request body must be a JSON object", code="invalid_json_shape"
        )
    return payload


async def chat_completions(request: Request) -> Response:
    """Chat completions endpoint - OpenAI compatible.

    POST /v1/chat/completions

    Non-streaming requests get a single ``chat.completion`` object. Streaming
    requests get ``chat.completion.chunk`` SSE frames closed by
    ``data: [DONE]``; failures after the stream has started are reported
    in-band.
    """
    req_id = uuid.uuid4().hex[:8]
    start_time = time.perf_counter()
    logger.info(f"[{req_id}] Received chat completions request")

    try:
        payload = await _read_payload(request, req_id)
    except InvalidRequestError as exc:
        return error_response(exc)

    chat_request = normalize_chat_request(payload)
    is_stream = chat_request["stream"]
    model = chat_request.get("model")
    invoker = _get_invoker(request)
    logger.info(
        f"[{req_id}] Processing request for model {model or 'default'}, "
        f"stream={is_stream}, messages={len(chat_request['messages'])}"
    )

    if is_stream:
        adapter = ChatCompletionStreamAdapter(model if isinstance(model, str) else None)

        async def event_stream():
            async for frame in adapter.adapt_stream(invoker.open_stream(chat_request)):
                yield frame
            elapsed = time.perf_counter() - start_time
            outcome = "error" if adapter.failed else "success"
            logger.info(
                f"[{req_id}] Stream finished ({outcome}) with {adapter.frames_sent} "
                f"chunk(s) in {elapsed:.3f}s"
            )

        return StreamingResponse(
            event_stream(),
            media_type=SSE_MEDIA_TYPE,
            headers=STREAM_HEADERS,
        )

    try:
        reply = await invoker.complete(chat_request)
    except Exception as exc:
        elapsed = time.perf_counter() - start_time
        logger.error(f"[{req_id}] Backend error after {elapsed:.3f}s: {exc}")
        return error_response(exc)

    completion = to_chat_completion(reply)
    elapsed = time.perf_counter() - start_time
    logger.info(f"[{req_id}] Request completed successfully in {elapsed:.3f}s")
    return JSONResponse(completion)
