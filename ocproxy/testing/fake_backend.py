"""Scripted in-process backend client for simulation tests."""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Deque, Iterable, Optional

from ..backend.base import BackendClient
from ..types import BackendPart, BackendReply, BackendSession, ProviderInfo, StreamChunk


class StreamError(Exception):
    """Raised to simulate mid-stream backend errors."""

    pass


@dataclass
class BackendScript:
    """A queued answer for the next ``send_message`` call.

    Standard fields:
        parts: Reply parts for one-shot answers
        chunks: Stream chunks; used when the caller asks to stream
        model: Model reported on the reply
        one_shot: Answer streaming requests with a full reply instead of chunks

    Timing fields:
        delay_s: Delay before the answer is returned
        chunk_delay_s: Delay before each stream chunk

    Error simulation fields:
        error: Exception raised instead of answering
        error_after_chunks: Raise StreamError after N chunks
    """

    parts: list[BackendPart] = field(default_factory=list)
    chunks: list[StreamChunk] | None = None
    model: str | None = None
    one_shot: bool = False

    delay_s: float | None = None
    chunk_delay_s: float | None = None

    error: BaseException | None = None
    error_after_chunks: int | None = None

    def reply(self) -> BackendReply:
        reply: BackendReply = {"parts": list(self.parts)}
        if self.model:
            reply["model"] = self.model
        return reply


@dataclass
class SentMessage:
    """A message received by the fake backend."""

    session_id: str
    parts: list[BackendPart]
    stream: bool
    model: Optional[str]


class FakeBackend(BackendClient):
    """BackendClient answering from a queue of BackendScript entries.

    Supports:
    - Deterministic reply and chunk-stream queueing
    - Request tracking (sessions created, messages sent)
    - Delays for deadline tests, on the session, the reply or each chunk
    - Error simulation before answering or mid-stream
    - Streaming requests answered in one shot

    When the queue is empty every message is answered with ``default``.
    """

    name = "fake"

    def __init__(
        self,
        scripts: Optional[Iterable[BackendScript]] = None,
        *,
        default: Optional[BackendScript] = None,
        providers: Optional[list[ProviderInfo]] = None,
        session_delay_s: float | None = None,
    ) -> None:
        self._queue: Deque[BackendScript] = deque(scripts or [])
        self.default = default or BackendScript(parts=[{"type": "text", "text": "ok"}])
        self.providers: list[ProviderInfo] = list(providers or [])
        self.providers_error: BaseException | None = None
        self.session_delay_s = session_delay_s
        self.sessions: list[str] = []
        self.received: list[SentMessage] = []
        self.closed = False
        self.streams_closed = 0

    def enqueue(self, script: BackendScript) -> None:
        """Add an answer to the queue."""
        self._queue.append(script)

    def enqueue_text(self, *texts: str, model: str | None = None) -> None:
        """Queue a reply made of one text part per argument."""
        parts: list[BackendPart] = [{"type": "text", "text": text} for text in texts]
        self.enqueue(BackendScript(parts=parts, model=model))

    def enqueue_stream(self, *texts: str, chunk_delay_s: float | None = None) -> None:
        """Queue a chunk stream with one text part per chunk."""
        chunks: list[StreamChunk] = [
            {"parts": [{"type": "text", "text": text}]} for text in texts
        ]
        self.enqueue(BackendScript(chunks=chunks, chunk_delay_s=chunk_delay_s))

    def enqueue_error(self, error: BaseException) -> None:
        self.enqueue(BackendScript(error=error))

    def clear(self) -> None:
        """Clear queued answers and recorded traffic."""
        self._queue.clear()
        self.sessions.clear()
        self.received.clear()

    # -------------------------------------------------------------------------
    # BackendClient
    # -------------------------------------------------------------------------

    async def create_session(self) -> BackendSession:
        if self.session_delay_s:
            await asyncio.sleep(self.session_delay_s)
        session_id = f"ses_fake_{len(self.sessions) + 1}"
        self.sessions.append(session_id)
        return {"id": session_id}

    async def send_message(
        self,
        session_id: str,
        parts: list[BackendPart],
        *,
        stream: bool = False,
        model: Optional[str] = None,
    ) -> BackendReply | AsyncIterator[StreamChunk]:
        self.received.append(
            SentMessage(session_id=session_id, parts=list(parts), stream=stream, model=model)
        )
        script = self._queue.popleft() if self._queue else self.default
        if script.delay_s:
            await asyncio.sleep(script.delay_s)
        if script.error is not None:
            raise script.error
        if stream and script.chunks is not None and not script.one_shot:
            return self._iter_chunks(script)
        return script.reply()

    async def _iter_chunks(self, script: BackendScript) -> AsyncIterator[StreamChunk]:
        try:
            for index, chunk in enumerate(script.chunks or []):
                if script.error_after_chunks is not None and index >= script.error_after_chunks:
                    raise StreamError("Simulated backend stream failure")
                if script.chunk_delay_s:
                    await asyncio.sleep(script.chunk_delay_s)
                yield chunk
            if script.error_after_chunks is not None and script.error_after_chunks >= len(
                script.chunks or []
            ):
                raise StreamError("Simulated backend stream failure")
        finally:
            self.streams_closed += 1

    async def list_providers(self) -> list[ProviderInfo]:
        if self.providers_error is not None:
            raise self.providers_error
        return list(self.providers)

    async def aclose(self) -> None:
        self.closed = True

    # -------------------------------------------------------------------------
    # Inspection helpers
    # -------------------------------------------------------------------------

    @property
    def last_message(self) -> SentMessage:
        if not self.received:
            raise AssertionError("FakeBackend received no messages")
        return self.received[-1]

    def describe(self) -> dict[str, Any]:
        return {"name": self.name, "queued": len(self._queue)}
