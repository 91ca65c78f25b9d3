"""Shared test fixtures."""

import os

# Settings require JWT_SECRET; set it before anything imports config.settings
os.environ.setdefault("JWT_SECRET", "test-secret-do-not-use")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_dummy")

from collections.abc import AsyncIterator  # noqa: E402
from unittest.mock import AsyncMock, patch  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from src.main import app  # noqa: E402


@pytest.fixture
async def client() -> AsyncIterator[AsyncClient]:
    """Async HTTP client for testing FastAPI endpoints (no lifespan, no DB).

    The rate limiter talks to an in-memory counter that never trips.
    """
    fake_redis = AsyncMock()
    fake_redis.incr.return_value = 1
    transport = ASGITransport(app=app)
    with patch(
        "src.br_gateway.middleware.rate_limit.get_redis",
        AsyncMock(return_value=fake_redis),
    ):
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
