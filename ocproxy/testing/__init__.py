"""Testing utilities for in-process proxy simulations."""

from .assertions import (
    assert_chat_chunk_valid,
    assert_chat_stream_valid,
    assert_error_envelope,
    assert_openai_chat_valid,
    parse_sse_frames,
    stream_text,
)
from .fake_backend import BackendScript, FakeBackend, SentMessage, StreamError
from .fake_opencode import FakeOpencodeServer, OpencodeReply
from .proxy_harness import ProxyHarness

__all__ = [
    # Core simulation classes
    "BackendScript",
    "FakeBackend",
    "FakeOpencodeServer",
    "OpencodeReply",
    "ProxyHarness",
    "SentMessage",
    "StreamError",
    # Assertions
    "assert_chat_chunk_valid",
    "assert_chat_stream_valid",
    "assert_error_envelope",
    "assert_openai_chat_valid",
    "parse_sse_frames",
    "stream_text",
]
