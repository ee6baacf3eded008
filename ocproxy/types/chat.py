"""Types for the two chat representations the gateway translates between.

Types are separated into:
- OpenAI-compatible types: inbound requests and the responses we emit
- Session backend types: message parts, replies and stream chunks exchanged
  with the session-based chat backend
"""

from typing import Any
from typing_extensions import TypedDict


# =============================================================================
# OpenAI-Compatible Types
# =============================================================================


class ContentPart(TypedDict, total=False):
    """A content part of a multi-modal user message (OpenAI format).

    Attributes:
        type: Type of content part, "text" or "image_url".
        text: Text content (for "text" type).
        image_url: Image URL object (for "image_url" type).
            Contains "url" and optionally "detail" fields.
    """
    type: str
    text: str
    image_url: Any


class ChatMessage(TypedDict, total=False):
    """A normalized message in a chat conversation.

    Which fields are present depends on the role:
        - "system": content (non-empty string)
        - "user": content (string or list of ContentPart)
        - "assistant": optional content string and optional tool_calls
        - "tool": tool_call_id and content, passed through untouched

    Attributes:
        role: Role of the message sender.
        content: Text content, or content parts for user messages.
        tool_calls: Opaque tool calls requested by the assistant.
        tool_call_id: ID of the tool call a tool message answers.
    """
    role: str
    content: str | list[ContentPart] | None
    tool_calls: list[Any] | None
    tool_call_id: Any


class ChatRequest(TypedDict, total=False):
    """A normalized chat completion request.

    Only ``messages`` and ``stream`` are used by the gateway itself; the
    sampling fields are carried along for completeness.
    """
    model: str | None
    messages: list[ChatMessage]
    stream: bool
    max_tokens: Any
    temperature: Any
    top_p: Any
    stop: Any
    tools: list[Any] | None
    tool_choice: Any


class Delta(TypedDict, total=False):
    """A streamed delta of the assistant message."""
    content: str


class Choice(TypedDict, total=False):
    """A choice in a chat completion response (OpenAI format).

    Attributes:
        index: Always 0; only one choice is produced.
        delta: The incremental content for streaming responses.
        message: The complete message for non-streaming responses.
        finish_reason: "stop" for complete responses, None for chunks.
    """
    index: int
    delta: Delta
    message: ChatMessage
    finish_reason: str | None


class ChatCompletionChunk(TypedDict, total=False):
    """A streamed chunk of a chat completion response (OpenAI format)."""
    id: str
    object: str
    created: int
    model: str
    choices: list[Choice]


class ChatCompletionResponse(TypedDict, total=False):
    """A complete (non-streaming) chat completion response (OpenAI format)."""
    id: str
    object: str
    created: int
    model: str
    choices: list[Choice]


class ErrorBody(TypedDict):
    """Body of an OpenAI error envelope."""
    message: str
    type: str
    param: None
    code: None


class ErrorEnvelope(TypedDict):
    """OpenAI-compatible error payload: ``{"error": {...}}``."""
    error: ErrorBody


class ModelEntry(TypedDict):
    """An entry of the ``/v1/models`` listing."""
    id: str
    object: str
    owned_by: str


# =============================================================================
# Session Backend Types
# =============================================================================
# The backend speaks in sessions: a session is created per request and a
# message made of parts is sent to it. Replies carry parts as well.


class BackendPart(TypedDict, total=False):
    """A message part sent to or received from the backend.

    Attributes:
        type: Part type. Only "text" parts are forwarded and translated.
        text: Text of the part.
    """
    type: str
    text: str


class BackendReply(TypedDict, total=False):
    """A one-shot backend reply.

    Attributes:
        parts: Ordered parts of the assistant message.
        model: Model that produced the reply, if the backend reports it.
    """
    parts: list[BackendPart]
    model: str


class StreamChunk(TypedDict, total=False):
    """An incremental chunk of a streamed backend reply."""
    parts: list[BackendPart]


class BackendSession(TypedDict, total=False):
    """A backend session; only ``id`` is used."""
    id: str


class ProviderInfo(TypedDict, total=False):
    """A provider entry as returned by the backend provider listing.

    Attributes:
        id: Provider identifier (e.g. "anthropic").
        models: Mapping of model id to provider-specific model metadata.
    """
    id: str
    models: dict[str, Any]
