# tests/conftest.py

import os

# Settings are read at import time; point them at throwaway values first.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["ENVIRONMENT"] = "test"

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from taskhub.core.database import Base, get_db
from taskhub.core.security import get_password_hash
from taskhub.main import app
from taskhub.models.task import Notification, Task  # noqa: F401  (registers tables)
from taskhub.models.user import User
from taskhub.schemas.user import Principal
from taskhub.services.notifications import NotificationLedger
from taskhub.services.repository import TaskRepository
from taskhub.services.tasks import TaskLifecycleManager


@pytest.fixture()
async def engine():
    """A private in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
async def db(session_factory):
    async with session_factory() as session:
        yield session


async def _add_user(db: AsyncSession, name: str, email: str) -> Principal:
    user = User(name=name, email=email, hashed_password=get_password_hash("secret123"))
    db.add(user)
    await db.commit()
    return Principal(id=user.id, name=user.name, email=user.email)


@pytest.fixture()
async def alice(db) -> Principal:
    return await _add_user(db, "Alice", "alice@example.com")


@pytest.fixture()
async def bob(db) -> Principal:
    return await _add_user(db, "Bob", "bob@example.com")


@pytest.fixture()
async def carol(db) -> Principal:
    return await _add_user(db, "Carol", "carol@example.com")


@pytest.fixture()
def repo(db) -> TaskRepository:
    return TaskRepository(db)


@pytest.fixture()
def manager(repo) -> TaskLifecycleManager:
    return TaskLifecycleManager(repo)


@pytest.fixture()
def ledger(repo) -> NotificationLedger:
    return NotificationLedger(repo)


@pytest.fixture()
async def client(session_factory):
    """HTTP client talking to the ASGI app, backed by the per-test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def register(client):
    """Register a user over HTTP; returns (auth headers, user json)."""

    async def _register(name: str, email: str, password: str = "secret123"):
        resp = await client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert resp.status_code == 201, resp.text
        data = resp.json()
        return {"Authorization": f"Bearer {data['token']}"}, data["user"]

    return _register
