"""
Tutorium Backend — Middleware Tests
=====================================

What:  Tests for the per-IP rate limiter, the request id header and the
       catch-all error handler.
How:   The suite runs with RATE_LIMIT_ENABLED=false; these tests switch it
       on with a tiny limit for the duration of one test.
"""

from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient

from tutorium.config import settings
from tutorium.main import create_app


class TestRateLimit:

    @pytest.fixture(autouse=True)
    def small_limit(self):
        with patch.object(settings, "rate_limit_enabled", True), \
                patch.object(settings, "rate_limit_requests", 3), \
                patch.object(settings, "rate_limit_window", 60):
            yield

    @pytest.mark.asyncio
    async def test_requests_over_the_limit_get_429(self, client):
        for _ in range(3):
            response = await client.get("/api/status")
            assert response.status_code == 200

        response = await client.get("/api/status")

        assert response.status_code == 429
        assert 1 <= int(response.headers["retry-after"]) <= 61
        body = response.json()
        assert body["error"] == "rate_limit_exceeded"
        assert body["details"]["retry_after"] == int(response.headers["retry-after"])

    @pytest.mark.asyncio
    async def test_health_is_never_limited(self, client):
        """Load balancer probes must keep working while a client is throttled."""
        for _ in range(5):
            await client.get("/api/status")

        response = await client.get("/health")
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_disabled_limiter_lets_everything_through(self, client):
        with patch.object(settings, "rate_limit_enabled", False):
            for _ in range(6):
                assert (await client.get("/api/status")).status_code == 200


class TestRequestID:

    @pytest.mark.asyncio
    async def test_generated_when_missing(self, client):
        response = await client.get("/api/status")
        assert len(response.headers["x-request-id"]) == 8

    @pytest.mark.asyncio
    async def test_ids_differ_between_requests(self, client):
        first = await client.get("/api/status")
        second = await client.get("/api/status")
        assert first.headers["x-request-id"] != second.headers["x-request-id"]

    @pytest.mark.asyncio
    async def test_error_envelope_carries_client_id(self, client):
        response = await client.get("/api/courses/user", headers={"X-Request-ID": "trace-42"})
        assert response.status_code == 401
        assert response.json()["request_id"] == "trace-42"


class TestUnexpectedErrors:

    @pytest.mark.asyncio
    async def test_crash_uses_the_server_error_envelope(self):
        """Bugs outside the domain errors still answer with the shared error code."""
        app = create_app()

        @app.get("/api/crash")
        async def crash():
            raise RuntimeError("boom")

        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.get("/api/crash")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "server_error"
        assert "boom" not in body["message"]
