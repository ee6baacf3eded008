"""Backend capability used by the gateway."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Optional

from ..types import BackendPart, BackendReply, BackendSession, ProviderInfo, StreamChunk


class BackendClient(ABC):
    """A session-oriented chat backend.

    One client instance is shared by all requests; implementations must not
    keep per-request state on it.
    """

    name: str = "backend"

    @abstractmethod
    async def create_session(self) -> BackendSession:
        """Create a fresh session and return it (at least ``{"id": ...}``)."""

    @abstractmethod
    async def send_message(
        self,
        session_id: str,
        parts: list[BackendPart],
        *,
        stream: bool = False,
        model: Optional[str] = None,
    ) -> BackendReply | AsyncIterator[StreamChunk]:
        """Send a message to a session.

        Returns the full reply, or an async iterator of chunks when
        ``stream`` is requested and the backend supports it. A backend may
        answer a streaming request with a full reply.
        """

    @abstractmethod
    async def list_providers(self) -> list[ProviderInfo]:
        """Return the providers known to the backend with their models."""

    async def aclose(self) -> None:
        """Release any resources held by the client."""
        return None

    def describe(self) -> dict[str, Any]:
        return {"name": self.name}
