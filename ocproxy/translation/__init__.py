"""OpenAI chat <-> session backend translation helpers.

Provides request normalization, one-shot reply translation and the
streaming chunk adapter.
"""

from .request import normalize_chat_request, normalize_message, project_backend_parts
from .response import extract_text, to_chat_completion
from .stream_adapter import ChatCompletionStreamAdapter

__all__ = [
    "ChatCompletionStreamAdapter",
    "extract_text",
    "normalize_chat_request",
    "normalize_message",
    "project_backend_parts",
    "to_chat_completion",
]
