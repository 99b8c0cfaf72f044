"""Integration-test fixtures.

All integration tests share a single event-loop so that the module-level
SQLAlchemy async engine pool and Redis pool (both created at import time)
remain valid across the entire test session.
"""

import uuid

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text

from src.cn_common.database import async_session_factory
from src.main import app


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client; keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(loop_scope="session")
async def seeded() -> dict[str, str]:
    """A fresh wallet holder with ₱100 and a fresh ₱50 item with 3 in stock."""
    suffix = uuid.uuid4().hex[:8]
    user_id = f"U-{suffix}"
    item_id = f"ITM-{suffix}"
    async with async_session_factory() as db:
        await db.execute(
            text(
                "INSERT INTO users (id, name, email, balance)"
                " VALUES (:id, :name, :email, 10000)"
            ),
            {"id": user_id, "name": f"Student {suffix}", "email": f"{suffix}@school.test"},
        )
        await db.execute(
            text(
                "INSERT INTO menu_items (id, name, category, price, stock)"
                " VALUES (:id, :name, 'Meals', 5000, 3)"
            ),
            {"id": item_id, "name": f"Adobo {suffix}"},
        )
        await db.commit()
    return {"user_id": user_id, "item_id": item_id}
