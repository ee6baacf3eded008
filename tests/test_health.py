"""Tests for GET /health."""

from datetime import datetime

import pytest


class TestHealthEndpoint:
    """Tests for the health probe."""

    @pytest.mark.asyncio
    async def test_status_ok(self, make_harness, fake_backend):
        harness = make_harness()

        async with harness.make_async_client() as client:
            response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert fake_backend.sessions == []

    @pytest.mark.asyncio
    async def test_timestamp_is_iso8601_utc(self, make_harness):
        harness = make_harness()

        async with harness.make_async_client() as client:
            timestamp = (await client.get("/health")).json()["timestamp"]

        assert timestamp.endswith("Z")
        parsed = datetime.fromisoformat(timestamp[:-1] + "+00:00")
        assert parsed.utcoffset().total_seconds() == 0

    @pytest.mark.asyncio
    async def test_shape_stable_across_calls(self, make_harness):
        harness = make_harness()

        async with harness.make_async_client() as client:
            payloads = [(await client.get("/health")).json() for _ in range(3)]

        assert all(set(p) == {"status", "timestamp"} for p in payloads)
