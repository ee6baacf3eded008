"""Canned in-process backend for running the proxy without an opencode server."""

from __future__ import annotations

import uuid
from typing import Any, AsyncIterator, Optional

from ..types import BackendPart, BackendReply, BackendSession, ProviderInfo, StreamChunk
from .base import BackendClient

MOCK_REPLY_TEXT = "Hello from OpenCode!"
MOCK_DEFAULT_MODEL = "opencode/default"

MOCK_PROVIDERS: list[ProviderInfo] = [
    {
        "id": "opencode",
        "models": {
            "default": {"name": "OpenCode Default"},
            "gpt-4": {"name": "GPT-4"},
        },
    }
]


class StaticBackendClient(BackendClient):
    """Answers every message with the same text, in one shot."""

    name = "mock"

    def __init__(self, reply_text: str = MOCK_REPLY_TEXT) -> None:
        self.reply_text = reply_text

    async def create_session(self) -> BackendSession:
        return {"id": f"ses_mock_{uuid.uuid4().hex[:12]}"}

    async def send_message(
        self,
        session_id: str,
        parts: list[BackendPart],
        *,
        stream: bool = False,
        model: Optional[str] = None,
    ) -> BackendReply | AsyncIterator[StreamChunk]:
        return {
            "parts": [{"type": "text", "text": self.reply_text}],
            "model": model or MOCK_DEFAULT_MODEL,
        }

    async def list_providers(self) -> list[ProviderInfo]:
        return [dict(provider) for provider in MOCK_PROVIDERS]  # type: ignore[misc]

    def describe(self) -> dict[str, Any]:
        return {"name": self.name, "reply_text": self.reply_text}
