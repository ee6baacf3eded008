"""Type definitions for the proxy."""

from .chat import (
    BackendPart,
    BackendReply,
    BackendSession,
    ChatCompletionChunk,
    ChatCompletionResponse,
    ChatMessage,
    ChatRequest,
    Choice,
    ContentPart,
    Delta,
    ErrorBody,
    ErrorEnvelope,
    ModelEntry,
    ProviderInfo,
    StreamChunk,
)

__all__ = [
    "BackendPart",
    "BackendReply",
    "BackendSession",
    "ChatCompletionChunk",
    "ChatCompletionResponse",
    "ChatMessage",
    "ChatRequest",
    "Choice",
    "ContentPart",
    "Delta",
    "ErrorBody",
    "ErrorEnvelope",
    "ModelEntry",
    "ProviderInfo",
    "StreamChunk",
]
