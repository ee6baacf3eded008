"""OpenAI chat request normalization.

Turns an untrusted OpenAI-style chat completion payload into a normalized
ChatRequest. Decoding is lenient: every field is checked for its expected
shape and treated as absent when the check fails, so malformed input ends up
as "no messages" rather than an exception. Provider extensions (unknown
roles, unknown content part types) are dropped silently.

Per-role rules:
- system: non-empty string content only, otherwise the message is dropped
- user: string content, or a list of text / image_url parts; a lone text
  part collapses to a plain string
- assistant: optional string content plus optional tool_calls list
- tool: tool_call_id and content, passed through as-is
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional

from ..types import BackendPart, ChatMessage, ChatRequest, ContentPart

logger = logging.getLogger("ocproxy")

PASSTHROUGH_FIELDS = ("model", "max_tokens", "temperature", "top_p", "stop", "tool_choice")


def _decode_system(message: Mapping[str, Any]) -> Optional[ChatMessage]:
    content = message.get("content")
    if isinstance(content, str) and content:
        return {"role": "system", "content": content}
    return None


def _decode_content_part(part: Any) -> Optional[ContentPart]:
    if not isinstance(part, Mapping) or not part.get("type"):
        return None
    part_type = part["type"]
    if part_type == "text" and isinstance(part.get("text"), str):
        return {"type": "text", "text": part["text"]}
    if part_type == "image_url":
        return {"type": "image_url", "image_url": part.get("image_url")}
    return None


def _decode_user(message: Mapping[str, Any]) -> Optional[ChatMessage]:
    content = message.get("content")
    if isinstance(content, str):
        return {"role": "user", "content": content}
    if not isinstance(content, list):
        return None

    parts = [decoded for decoded in map(_decode_content_part, content) if decoded]
    if len(parts) == 1 and parts[0]["type"] == "text":
        return {"role": "user", "content": parts[0]["text"]}
    if parts:
        return {"role": "user", "content": parts}
    return None


def _decode_assistant(message: Mapping[str, Any]) -> Optional[ChatMessage]:
    decoded: ChatMessage = {"role": "assistant"}
    content = message.get("content")
    if isinstance(content, str):
        decoded["content"] = content
    tool_calls = message.get("tool_calls")
    if isinstance(tool_calls, list):
        decoded["tool_calls"] = tool_calls
    return decoded


def _decode_tool(message: Mapping[str, Any]) -> Optional[ChatMessage]:
    return {
        "role": "tool",
        "tool_call_id": message.get("tool_call_id"),
        "content": message.get("content"),
    }


_ROLE_DECODERS: dict[str, Callable[[Mapping[str, Any]], Optional[ChatMessage]]] = {
    "system": _decode_system,
    "user": _decode_user,
    "assistant": _decode_assistant,
    "tool": _decode_tool,
}


def normalize_message(message: Any) -> Optional[ChatMessage]:
    """Decode one message, returning None when it should be dropped."""
    if not isinstance(message, Mapping):
        return None
    role = message.get("role")
    decoder = _ROLE_DECODERS.get(role) if isinstance(role, str) else None
    if decoder is None:
        if role:
            logger.debug(f"Dropping message with unsupported role: {role}")
        return None
    return decoder(message)


def normalize_chat_request(body: Any) -> ChatRequest | Any:
    """Normalize an OpenAI chat completion payload.

    Args:
        body: Parsed JSON request body. Anything that is not an object is
            returned unchanged.

    Returns:
        The normalized ChatRequest. Message order is preserved.
    """
    if not isinstance(body, Mapping):
        return body

    raw_messages = body.get("messages")
    if not isinstance(raw_messages, list):
        raw_messages = []

    messages: list[ChatMessage] = []
    for raw in raw_messages:
        decoded = normalize_message(raw)
        if decoded is not None:
            messages.append(decoded)

    request: ChatRequest = {field: body.get(field) for field in PASSTHROUGH_FIELDS}  # type: ignore[assignment]
    if not isinstance(request["model"], str):
        request["model"] = None
    tools = body.get("tools")
    request["tools"] = tools if isinstance(tools, list) else None
    request["messages"] = messages
    request["stream"] = bool(body.get("stream"))
    return request


def project_backend_parts(messages: list[ChatMessage]) -> list[BackendPart]:
    """Project normalized messages onto backend text parts.

    Only user text is forwarded: string content becomes one part and text
    parts are forwarded in order. Images and other roles are not sent.
    """
    parts: list[BackendPart] = []
    for message in messages:
        if message.get("role") != "user":
            continue
        content = message.get("content")
        if isinstance(content, str):
            parts.append({"type": "text", "text": content})
        elif isinstance(content, list):
            for part in content:
                if part.get("type") == "text":
                    parts.append({"type": "text", "text": part.get("text", "")})
    return parts
