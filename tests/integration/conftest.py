"""Integration-test fixtures.

Requires PostgreSQL with `alembic upgrade head` applied, at the URL in
config.settings. Every test in this directory is skipped when the database is
unreachable. Redis is optional: the rate limiter fails open without it.

All integration tests share a single event loop so the module-level
SQLAlchemy engine pool stays valid across the session.
"""

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from src.br_common.database import engine
from src.main import app
from tests.integration.helpers import SeededStand, seed_stand


@pytest_asyncio.fixture(loop_scope="session", scope="session", autouse=True)
async def _require_database() -> None:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1 FROM bookings LIMIT 1"))
    except (OSError, SQLAlchemyError) as exc:
        pytest.skip(f"database not available: {exc}")


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncIterator[AsyncClient]:  # type: ignore[override]
    """Session-scoped async HTTP client, overrides the unit-level one."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(loop_scope="session")
async def stand() -> SeededStand:
    return await seed_stand()
