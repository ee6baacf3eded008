"""Pytest configuration and fixtures for testing."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable, Generator

import httpx
import pytest

# Make the package importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent))

from ocproxy.backend import clear_backend_transports, mounted_transport
from ocproxy.testing import FakeBackend, FakeOpencodeServer, ProxyHarness


# =============================================================================
# Transport Registry Fixtures
# =============================================================================


@pytest.fixture
def clear_transport_registry() -> Generator[None, None, None]:
    """Clear the backend transport registry after test.

    Use this fixture in tests that mount fake backend transports.
    """
    yield
    clear_backend_transports()


@pytest.fixture
def clean_proxy_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove OPENAI_PROXY_* variables so tests see built-in defaults."""
    for name in (
        "OPENAI_PROXY_CONFIG",
        "OPENAI_PROXY_HOST",
        "OPENAI_PROXY_PORT",
        "OPENAI_PROXY_API_KEY",
        "OPENAI_PROXY_TIMEOUT",
        "OPENAI_PROXY_BACKEND",
        "OPENAI_PROXY_BACKEND_URL",
        "OPENAI_PROXY_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


# =============================================================================
# Harness Fixtures
# =============================================================================


@pytest.fixture
def fake_backend() -> FakeBackend:
    """A scripted backend with no queued answers."""
    return FakeBackend()


@pytest.fixture
def make_harness(fake_backend: FakeBackend) -> Callable[..., ProxyHarness]:
    """Factory building a ProxyHarness around the ``fake_backend`` fixture.

    Usage:
        async def test_chat(make_harness, fake_backend):
            fake_backend.enqueue_text("Hi")
            harness = make_harness(api_key="secret")
            async with harness.make_async_client(api_key="secret") as client:
                ...
    """

    def _make(**kwargs: Any) -> ProxyHarness:
        kwargs.setdefault("backend", fake_backend)
        return ProxyHarness(**kwargs)

    return _make


@pytest.fixture
def fake_opencode() -> Generator[FakeOpencodeServer, None, None]:
    """A fake opencode server reachable at http://opencode.test."""
    server = FakeOpencodeServer()
    with mounted_transport("http://opencode.test", httpx.ASGITransport(app=server.app)):
        yield server
