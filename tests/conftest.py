"""Shared test fixtures.

Every test gets a fresh in-memory SQLite database created from the ORM
metadata. Redis stays disabled, so the rate limiter steps aside unless a test
patches it in.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path
from typing import Any

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "SecurePass1"


def _write_test_keys() -> tuple[str, str]:
    """Generate an RSA key pair for JWT signing in a temp directory."""
    tmpdir = Path(tempfile.mkdtemp(prefix="donatehub_test_keys_"))
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    private_path = tmpdir / "jwt_private.pem"
    public_path = tmpdir / "jwt_public.pem"
    private_path.write_bytes(
        key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
    )
    public_path.write_bytes(
        key.public_key().public_bytes(
            serialization.Encoding.PEM,
            serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    )
    return str(private_path), str(public_path)


_private_key_path, _public_key_path = _write_test_keys()
os.environ["DONATEHUB_DATABASE_URL"] = TEST_DATABASE_URL
os.environ["DONATEHUB_REDIS_URL"] = ""
os.environ["DONATEHUB_LOG_FORMAT"] = "console"
os.environ["DONATEHUB_JWT_PRIVATE_KEY_PATH"] = _private_key_path
os.environ["DONATEHUB_JWT_PUBLIC_KEY_PATH"] = _public_key_path

import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession  # noqa: E402

from donatehub.auth.jwt import reset_keys  # noqa: E402
from donatehub.config import get_settings  # noqa: E402
from donatehub.database import close_db, get_engine, get_session, init_db  # noqa: E402
from donatehub.db.base import Base  # noqa: E402
from donatehub.db import models  # noqa: E402, F401
from donatehub.main import create_app  # noqa: E402

get_settings.cache_clear()
reset_keys()

Account = dict[str, Any]


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[None, None]:
    """Fresh schema per test; disposing the engine drops the in-memory database."""
    await init_db(TEST_DATABASE_URL)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_db()


@pytest_asyncio.fixture
async def client(database: None) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to a fresh app (lifespan not run; the database fixture covers it)."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def db_session(database: None) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for service calls and assertions."""
    sessions = get_session()
    session = await anext(sessions)
    yield session
    await sessions.aclose()


async def _register_and_login(client: AsyncClient, username: str, role: str) -> Account:
    """Register a user via the API and log in. Returns id, token and auth headers."""
    response = await client.post(
        "/api/v1/users/register",
        json={
            "username": username,
            "email": f"{username}@example.com",
            "full_name": f"{username.title()} Account",
            "password": TEST_PASSWORD,
            "role": role,
        },
    )
    assert response.status_code == 201, response.text
    login = await client.post("/api/v1/users/login", json={"username": username, "password": TEST_PASSWORD})
    assert login.status_code == 200, login.text
    data = login.json()["data"]
    return {
        "id": data["user"]["id"],
        "username": username,
        "role": role,
        "access_token": data["access_token"],
        "refresh_token": data["refresh_token"],
        "headers": {"Authorization": f"Bearer {data['access_token']}"},
    }


@pytest_asyncio.fixture
async def make_user(client: AsyncClient) -> Callable[[str, str], Awaitable[Account]]:
    """Factory: ``await make_user("alice", "donor")``."""

    async def _make(username: str, role: str = "donor") -> Account:
        return await _register_and_login(client, username, role)

    return _make


@pytest_asyncio.fixture
async def ngo(make_user: Callable[[str, str], Awaitable[Account]]) -> Account:
    return await make_user("helpinghands", "ngo")


@pytest_asyncio.fixture
async def other_ngo(make_user: Callable[[str, str], Awaitable[Account]]) -> Account:
    return await make_user("cleanwater", "ngo")


@pytest_asyncio.fixture
async def donor(make_user: Callable[[str, str], Awaitable[Account]]) -> Account:
    return await make_user("generous", "donor")


@pytest_asyncio.fixture
async def other_donor(make_user: Callable[[str, str], Awaitable[Account]]) -> Account:
    return await make_user("kindheart", "donor")


@pytest_asyncio.fixture
async def make_campaign(client: AsyncClient) -> Callable[..., Awaitable[dict[str, Any]]]:
    """Factory: create a campaign as ``owner`` and return its data."""

    async def _make(owner: Account, **overrides: Any) -> dict[str, Any]:
        body = {
            "title": "Clean water for villages",
            "description": "Wells and filters for rural schools",
            "category": "health",
            "goal_amount": 1000,
            **overrides,
        }
        response = await client.post("/api/v1/campaigns/create", json=body, headers=owner["headers"])
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make


@pytest_asyncio.fixture
async def donate(client: AsyncClient) -> Callable[..., Awaitable[Any]]:
    """Factory: post a donation as ``account``; returns the raw response."""

    async def _donate(account: Account, campaign_id: str, amount: Any) -> Any:  # noqa: ANN401
        return await client.post(
            "/api/v1/donations/donate",
            json={"campaign_id": campaign_id, "amount": amount},
            headers=account["headers"],
        )

    return _donate
