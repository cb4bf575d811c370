"""Shared test fixtures."""

import os

# Settings() requires a signing secret at import time
os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")
os.environ.setdefault("SWEEPER_ENABLED", "false")

from collections.abc import Callable  # noqa: E402
from datetime import UTC, datetime, timedelta  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from jose import jwt  # noqa: E402

from config.settings import settings  # noqa: E402
from src.main import app  # noqa: E402


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client for testing FastAPI endpoints."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture(scope="session")
def issue_token() -> Callable[..., str]:
    """Signs access tokens the way the identity service does."""

    def _issue(user_id: str, email: str, role: str = "BUYER") -> str:
        now = datetime.now(UTC)
        payload = {
            "sub": user_id,
            "email": email,
            "role": role,
            "type": "access",
            "iat": now,
            "exp": now + timedelta(minutes=settings.JWT_EXPIRE_MINUTES),
        }
        return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM))

    return _issue
