"""Backend invocation under a per-request deadline.

Each chat request gets its own backend session and its own deadline. The
deadline covers the whole exchange: session creation, the message send, and
for streaming calls the consumption of every chunk. Every suspension point
awaits only for the budget that is left, so an expired deadline cancels the
pending await and surfaces as BackendTimeoutError instead of a hung request.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, AsyncIterator, Awaitable, TypeVar

from ..translation.request import project_backend_parts
from .exceptions import BackendError, BackendTimeoutError

if TYPE_CHECKING:
    from ..backend.base import BackendClient
    from ..types import BackendReply, ChatRequest, StreamChunk

logger = logging.getLogger("ocproxy")

DEFAULT_TIMEOUT_MS = 60000

T = TypeVar("T")


class Deadline:
    """A wall-clock budget shared by all awaits of one backend call."""

    def __init__(self, timeout_s: float) -> None:
        self.timeout_s = timeout_s
        self._loop = asyncio.get_running_loop()
        self._expires_at = self._loop.time() + timeout_s

    def remaining(self) -> float:
        return max(0.0, self._expires_at - self._loop.time())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await ``awaitable`` within the remaining budget."""
        try:
            return await asyncio.wait_for(awaitable, timeout=self.remaining())
        except asyncio.TimeoutError as exc:
            raise BackendTimeoutError(timeout_s=self.timeout_s) from exc


def is_chunk_stream(value: Any) -> bool:
    """Return True when the backend answered with an async chunk sequence."""
    return hasattr(value, "__aiter__") and not isinstance(value, dict)


class BackendInvoker:
    """Issues normalized chat requests to the backend client.

    The client is shared across requests and only read from; sessions are
    created per call and never reused.
    """

    def __init__(self, client: "BackendClient", timeout_ms: int = DEFAULT_TIMEOUT_MS) -> None:
        self.client = client
        self.timeout_ms = timeout_ms

    @property
    def timeout_s(self) -> float:
        return self.timeout_ms / 1000.0

    async def _create_session(self, deadline: Deadline) -> str:
        session = await deadline.run(self.client.create_session())
        session_id = session.get("id") if isinstance(session, dict) else None
        if not session_id:
            raise BackendError("Backend did not return a session id")
        return session_id

    async def complete(self, chat_request: "ChatRequest") -> "BackendReply":
        """Send a non-streaming request and return the raw backend reply."""
        deadline = Deadline(self.timeout_s)
        session_id = await self._create_session(deadline)
        parts = project_backend_parts(chat_request.get("messages", []))
        logger.debug("Sending %d part(s) to session %s", len(parts), session_id)
        return await deadline.run(
            self.client.send_message(
                session_id,
                parts,
                stream=False,
                model=chat_request.get("model"),
            )
        )

    async def open_stream(
        self, chat_request: "ChatRequest"
    ) -> "BackendReply | AsyncIterator[StreamChunk]":
        """Send a streaming request.

        Returns an async iterator of chunks bounded by the same deadline, or
        the plain reply when the backend answered in one shot.
        """
        deadline = Deadline(self.timeout_s)
        session_id = await self._create_session(deadline)
        parts = project_backend_parts(chat_request.get("messages", []))
        logger.debug("Streaming %d part(s) to session %s", len(parts), session_id)
        result = await deadline.run(
            self.client.send_message(
                session_id,
                parts,
                stream=True,
                model=chat_request.get("model"),
            )
        )
        if is_chunk_stream(result):
            return _bounded_stream(result, deadline)
        return result


async def _bounded_stream(
    chunks: AsyncIterator["StreamChunk"], deadline: Deadline
) -> AsyncIterator["StreamChunk"]:
    iterator = chunks.__aiter__()
    try:
        while True:
            try:
                chunk = await deadline.run(iterator.__anext__())
            except StopAsyncIteration:
                return
            yield chunk
    finally:
        aclose = getattr(iterator, "aclose", None)
        if aclose is not None:
            await aclose()
