"""Integration-test fixtures.

Requires PostgreSQL and Redis with migrations applied (alembic upgrade head).
All integration tests share one event loop so the module-level SQLAlchemy
engine pool stays valid for the whole session.

Users and listings belong to other services, so tests seed them directly.
"""

import uuid
from collections.abc import Awaitable, Callable

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text

from src.main import app
from src.mp_common.database import async_session_factory

_INSERT_USER_SQL = text("""
    INSERT INTO users (id, email, email_verified, banned, role)
    VALUES (:id, :email, :email_verified, FALSE, :role)
""")

_INSERT_ITEM_SQL = text("""
    INSERT INTO items (id, seller_id, title, price, status, payout_account)
    VALUES (:id, :seller_id, :title, :price, 'APPROVED', :payout_account)
""")


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def client() -> AsyncClient:  # type: ignore[override]
    """Session-scoped async HTTP client — keeps the engine pool alive."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def make_user(issue_token) -> Callable[..., Awaitable[tuple[str, str]]]:
    """Insert a fresh user; returns (user_id, bearer token)."""

    async def _make(role: str = "BUYER", email_verified: bool = True) -> tuple[str, str]:
        user_id = f"u_{uuid.uuid4().hex[:12]}"
        email = f"{user_id}@example.com"
        async with async_session_factory() as db:
            await db.execute(
                _INSERT_USER_SQL,
                {"id": user_id, "email": email, "email_verified": email_verified, "role": role},
            )
            await db.commit()
        return user_id, issue_token(user_id, email, role)

    return _make


@pytest_asyncio.fixture(loop_scope="session", scope="session")
async def make_item() -> Callable[..., Awaitable[str]]:
    """Insert an APPROVED listing for `seller_id`; returns the item id."""

    async def _make(seller_id: str, price: int, payout_account: str | None = None) -> str:
        item_id = f"i_{uuid.uuid4().hex[:12]}"
        async with async_session_factory() as db:
            await db.execute(
                _INSERT_ITEM_SQL,
                {
                    "id": item_id,
                    "seller_id": seller_id,
                    "title": f"Listing {item_id}",
                    "price": price,
                    "payout_account": payout_account,
                },
            )
            await db.commit()
        return item_id

    return _make
