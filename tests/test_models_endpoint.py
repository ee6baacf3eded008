"""Tests for GET /v1/models."""

import pytest

from ocproxy.api.routes import provider_models
from ocproxy.core import BackendError, BackendTimeoutError
from ocproxy.testing import FakeBackend, assert_error_envelope

PROVIDERS = [
    {"id": "anthropic", "models": {"claude-sonnet": {}, "claude-haiku": {}}},
    {"id": "openai", "models": {"gpt-4o": {"name": "GPT-4o"}}},
]


class TestProviderModels:
    """Tests for provider_models."""

    def test_flattens_provider_model_pairs(self):
        assert [m["id"] for m in provider_models(PROVIDERS)] == [
            "anthropic/claude-sonnet",
            "anthropic/claude-haiku",
            "openai/gpt-4o",
        ]

    def test_entry_shape(self):
        entry = provider_models(PROVIDERS)[-1]
        assert entry == {"id": "openai/gpt-4o", "object": "model", "owned_by": "openai"}

    def test_malformed_providers_skipped(self):
        providers = [
            {"models": {"orphan": {}}},
            {"id": "broken", "models": ["not", "a", "map"]},
            {"id": "empty"},
        ]
        assert provider_models(providers) == []


class TestModelsEndpoint:
    """Tests for the models listing route."""

    @pytest.mark.asyncio
    async def test_lists_backend_models(self, make_harness, fake_backend):
        fake_backend.providers = PROVIDERS
        harness = make_harness()

        async with harness.make_async_client() as client:
            response = await client.get("/v1/models")

        assert response.status_code == 200
        data = response.json()
        assert data["object"] == "list"
        assert len(data["data"]) == 3
        assert data["data"][0] == {
            "id": "anthropic/claude-sonnet",
            "object": "model",
            "owned_by": "anthropic",
        }

    @pytest.mark.asyncio
    async def test_shape_stable_across_calls(self, make_harness, fake_backend):
        fake_backend.providers = PROVIDERS
        harness = make_harness()

        async with harness.make_async_client() as client:
            first = (await client.get("/v1/models")).json()
            second = (await client.get("/v1/models")).json()

        assert first == second

    @pytest.mark.asyncio
    async def test_no_providers(self, make_harness):
        harness = make_harness()

        async with harness.make_async_client() as client:
            response = await client.get("/v1/models")

        assert response.json() == {"object": "list", "data": []}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [BackendError("connection refused"), BackendTimeoutError()],
    )
    async def test_backend_failure_is_server_error(self, make_harness, error):
        backend = FakeBackend()
        backend.providers_error = error
        harness = make_harness(backend=backend)

        async with harness.make_async_client() as client:
            response = await client.get("/v1/models")

        assert response.status_code == 500
        assert_error_envelope(response.json(), "server_error")
