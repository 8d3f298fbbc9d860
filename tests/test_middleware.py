"""Middleware tests: request ID, rate limiting, CORS, error handling."""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from runera.config import get_settings
from runera.main import create_app


@pytest.mark.asyncio
async def test_request_id_generated(client: AsyncClient) -> None:
    """Request ID is auto-generated when not provided."""
    response = await client.get("/health")
    assert "x-request-id" in response.headers
    assert len(response.headers["x-request-id"]) == 36  # UUID format


@pytest.mark.asyncio
async def test_request_id_preserved(client: AsyncClient) -> None:
    """Custom request ID is echoed back in response."""
    response = await client.get("/health", headers={"X-Request-Id": "test-abc-123"})
    assert response.headers["x-request-id"] == "test-abc-123"


@pytest.mark.asyncio
async def test_rate_limit_headers(client: AsyncClient) -> None:
    """Rate limit headers are present on non-exempt endpoints."""
    response = await client.get("/api/v1/events")
    assert response.headers["x-ratelimit-limit"] == "100"
    assert response.headers["x-ratelimit-remaining"] == "99"


@pytest_asyncio.fixture
async def strict_client(monkeypatch, database, fake_redis) -> AsyncGenerator[AsyncClient, None]:
    """Client for an app allowing only 3 requests per window."""
    monkeypatch.setenv("RUNERA_RATE_LIMIT_REQUESTS", "3")
    get_settings.cache_clear()
    app = create_app()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    monkeypatch.undo()
    get_settings.cache_clear()


@pytest.mark.asyncio
async def test_rate_limit_blocks_excess(strict_client: AsyncClient) -> None:
    """4th request returns 429 with Retry-After and the error envelope."""
    for _ in range(3):
        assert (await strict_client.get("/api/v1/events")).status_code == 200
    response = await strict_client.get("/api/v1/events")
    assert response.status_code == 429
    assert "retry-after" in response.headers
    assert response.json()["error"]["code"] == "ERR_RATE_LIMITED"


@pytest.mark.asyncio
async def test_health_exempt_from_rate_limit(strict_client: AsyncClient) -> None:
    for _ in range(10):
        response = await strict_client.get("/health")
        assert response.status_code == 200


@pytest.mark.asyncio
async def test_cors_preflight(client: AsyncClient) -> None:
    response = await client.options(
        "/api/v1/run/submit",
        headers={
            "Origin": "http://localhost:5173",
            "Access-Control-Request-Method": "POST",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"


@pytest.mark.asyncio
async def test_404_returns_error_envelope(client: AsyncClient) -> None:
    response = await client.get("/nonexistent-path")
    assert response.status_code == 404
    assert response.json() == {"error": {"code": "ERR_NOT_FOUND", "message": "Not Found"}}


@pytest.mark.asyncio
async def test_405_returns_error_envelope(client: AsyncClient) -> None:
    response = await client.get("/api/v1/run/submit")
    assert response.status_code == 405
    assert response.json()["error"]["code"] == "ERR_METHOD_NOT_ALLOWED"


@pytest.mark.asyncio
async def test_500_returns_error_envelope(app, database, fake_redis) -> None:
    """Unhandled exceptions are logged and rendered without internals."""

    @app.get("/boom")
    async def boom() -> None:
        raise RuntimeError("secret internals")

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        response = await ac.get("/boom")

    assert response.status_code == 500
    assert response.json() == {"error": {"code": "ERR_INTERNAL", "message": "Internal server error"}}
