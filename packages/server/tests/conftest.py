"""
Shared fixtures: a throwaway SQLite database, sessions, an HTTP client and
small factories for users, channels and threads.
"""

import os
import tempfile
import uuid

# Point the app at a scratch database before anything imports forum.core.config.
os.environ.setdefault(
    "FORUM_DATABASE_URL",
    f"sqlite+aiosqlite:///{os.path.join(tempfile.gettempdir(), f'forum_test_{os.getpid()}.db')}",
)
os.environ.setdefault("FORUM_SECRET_KEY", "test-secret-key-with-enough-bytes-for-hs256")
os.environ.setdefault("FORUM_REDIS_URL", "redis://localhost:6379/15")
os.environ.setdefault("FORUM_LOG_LEVEL", "warning")
os.environ.setdefault("FORUM_LOG_FORMAT", "text")

import pytest
from httpx import ASGITransport, AsyncClient

from forum.core.auth import create_jwt, hash_password
from forum.core.database import async_session_factory, drop_db, engine, init_db
from forum.main import app
from forum.models.channel import Channel
from forum.models.user import User
from forum.services import threads


@pytest.fixture(autouse=True)
async def database():
    """Fresh tables for every test."""
    await init_db()
    yield
    await drop_db()
    await engine.dispose()


@pytest.fixture
async def session():
    async with async_session_factory() as s:
        yield s


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def create_user(session):
    async def _create(name: str = None, password: str = "password123") -> User:
        name = name or f"user_{uuid.uuid4().hex[:8]}"
        user = User(name=name, email=f"{name}@example.com", password_hash=hash_password(password))
        session.add(user)
        await session.commit()
        return user

    return _create


@pytest.fixture
def create_channel(session):
    async def _create(slug: str = "general", name: str = None) -> Channel:
        channel = Channel(name=name or slug.title(), slug=slug)
        session.add(channel)
        await session.commit()
        return channel

    return _create


@pytest.fixture
def create_thread(session):
    async def _create(author: User, channel: Channel, title: str = "Hello", body: str = "First post"):
        thread = await threads.create_thread(session, author.id, channel.id, title, body)
        await session.commit()
        return thread

    return _create


def auth_headers(user: User) -> dict:
    """Bearer token plus a JSON Accept header."""
    token, _ = create_jwt(user.id, user.name)
    return {"Authorization": f"Bearer {token}", "Accept": "application/json"}


@pytest.fixture
def headers_for():
    return auth_headers
