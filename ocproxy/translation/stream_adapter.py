"""Stream adapter for converting backend reply chunks to OpenAI chat SSE.

The backend streams chunks that each carry zero or more parts:

    {"parts": [{"type": "text", "text": "Hel"}]}
    {"parts": [{"type": "text", "text": "lo"}, {"type": "tool", ...}]}

Every non-empty text part becomes one OpenAI chat completion chunk:

    data: {"object":"chat.completion.chunk","choices":[{"index":0,"delta":{"content":"Hel"},"finish_reason":null}],...}
    data: {"object":"chat.completion.chunk","choices":[{"index":0,"delta":{"content":"lo"},"finish_reason":null}],...}
    data: [DONE]

When the backend answers a streaming request with a single reply, that reply
is emitted as one chunk holding its full text. Failures are reported in-band
as one error frame, since the HTTP status is already committed by then, and
the stream is always closed with exactly one [DONE].
"""

from __future__ import annotations

import logging
import time
from typing import Any, AsyncIterator, Awaitable, Optional

from ..core.errors import map_exception
from ..core.sse import DONE_EVENT, format_sse_data
from ..types import ChatCompletionChunk
from .response import DEFAULT_MODEL, extract_text, new_completion_id

logger = logging.getLogger("ocproxy")


class ChatCompletionStreamAdapter:
    """Converts a backend chunk stream into OpenAI chat completion SSE frames.

    State is per stream: one completion id shared by all chunks, a frame
    counter, and a flag guarding the terminal sentinel.
    """

    def __init__(self, model: Optional[str] = None, completion_id: Optional[str] = None):
        """Initialize the stream adapter.

        Args:
            model: Model name reported on every chunk (defaults to "opencode")
            completion_id: Completion id to use (e.g. "chatcmpl-xxx")
        """
        self.model = model or DEFAULT_MODEL
        self.completion_id = completion_id or new_completion_id()
        self.frames_sent = 0
        self.failed = False
        self.done_sent = False

    async def adapt_stream(self, source: Awaitable[Any]) -> AsyncIterator[bytes]:
        """Resolve the backend call and stream it as SSE frames.

        Args:
            source: Awaitable resolving to an async iterator of backend
                chunks, or to a single backend reply.

        Yields:
            SSE frames as bytes, ending with ``data: [DONE]``.
        """
        try:
            result = await source
            if hasattr(result, "__aiter__"):
                try:
                    async for chunk in result:
                        for frame in self._process_chunk(chunk):
                            yield frame
                finally:
                    aclose = getattr(result, "aclose", None)
                    if aclose is not None:
                        await aclose()
            else:
                frame = self._fallback_frame(result)
                if frame is not None:
                    yield frame
        except Exception as exc:
            yield self.error_event(exc)
        yield self.done_event()

    def _process_chunk(self, chunk: Any) -> list[bytes]:
        """Build one frame per non-empty text part of a backend chunk."""
        parts = chunk.get("parts") if isinstance(chunk, dict) else None
        if not isinstance(parts, list):
            return []
        frames = []
        for part in parts:
            if not isinstance(part, dict) or part.get("type") != "text":
                continue
            text = part.get("text")
            if isinstance(text, str) and text:
                frames.append(self.content_event(text))
        return frames

    def _fallback_frame(self, reply: Any) -> Optional[bytes]:
        logger.debug("Backend answered a streaming request in one shot")
        parts = reply.get("parts") if isinstance(reply, dict) else None
        text = extract_text(parts)
        if not text:
            return None
        return self.content_event(text)

    def build_chunk(self, content: str) -> ChatCompletionChunk:
        return {
            "id": self.completion_id,
            "object": "chat.completion.chunk",
            "created": int(time.time()),
            "model": self.model,
            "choices": [
                {
                    "index": 0,
                    "delta": {"content": content},
                    "finish_reason": None,
                }
            ],
        }

    def content_event(self, content: str) -> bytes:
        self.frames_sent += 1
        return format_sse_data(self.build_chunk(content))

    def error_event(self, exc: BaseException) -> bytes:
        """Build the in-band error frame for a failure."""
        self.failed = True
        _status, payload = map_exception(exc)
        logger.error(
            f"Stream {self.completion_id} failed after {self.frames_sent} frame(s): "
            f"{payload['error']['message']}"
        )
        return format_sse_data(payload)

    def done_event(self) -> bytes:
        """Return the terminal sentinel; empty once it has been sent."""
        if self.done_sent:
            return b""
        self.done_sent = True
        return DONE_EVENT
