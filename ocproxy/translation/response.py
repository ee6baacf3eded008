"""Backend reply -> OpenAI chat completion translation."""

from __future__ import annotations

import time
import uuid
from typing import Any, Iterable

from ..types import ChatCompletionResponse

DEFAULT_MODEL = "opencode"


def new_completion_id() -> str:
    return f"chatcmpl-{uuid.uuid4().hex}"


def extract_text(parts: Any) -> str:
    """Concatenate the text of all ``text`` parts, in order, with no separator."""
    if not isinstance(parts, list):
        return ""
    return "".join(
        part["text"]
        for part in _text_parts(parts)
        if isinstance(part.get("text"), str)
    )


def _text_parts(parts: Iterable[Any]) -> Iterable[dict[str, Any]]:
    return (part for part in parts if isinstance(part, dict) and part.get("type") == "text")


def to_chat_completion(reply: Any) -> ChatCompletionResponse:
    """Translate a one-shot backend reply into a ``chat.completion`` object.

    The reply carries optional ``parts`` and ``model``; a reply without a
    model is attributed to "opencode".
    """
    if not isinstance(reply, dict):
        reply = {}
    return {
        "id": new_completion_id(),
        "object": "chat.completion",
        "created": int(time.time()),
        "model": reply.get("model") or DEFAULT_MODEL,
        "choices": [
            {
                "index": 0,
                "message": {
                    "role": "assistant",
                    "content": extract_text(reply.get("parts")),
                },
                "finish_reason": "stop",
            }
        ],
    }
