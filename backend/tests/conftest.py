# tests/conftest.py — Shared test fixtures
import os
import uuid

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

# Use SQLite for tests
TEST_DB_URL = "sqlite+aiosqlite:///./test.db"
os.environ["DATABASE_URL"] = TEST_DB_URL
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-unit-tests-only-min-32-chars"
os.environ["ENVIRONMENT"] = "test"

from models import Base, User
from auth import AuthService
from database import get_db_session
from main import app

TEST_PASSWORD = "TestPassword123!"


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    engine = create_async_engine(TEST_DB_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_engine):
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def client(db_engine):
    """HTTP test client with overridden DB dependency"""
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def _make_user(db_session, email: str, display_name: str) -> User:
    user = User(
        id=str(uuid.uuid4()),
        email=email,
        display_name=display_name,
        password_hash=AuthService.hash_password(TEST_PASSWORD),
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def owner_user(db_session):
    """Owns the workspaces in most tests"""
    return await _make_user(db_session, "owner@boardshare.dev", "Owner")


@pytest_asyncio.fixture
async def other_user(db_session):
    """A signed-in user who owns nothing of the owner's"""
    return await _make_user(db_session, "other@boardshare.dev", "Other")


@pytest_asyncio.fixture
async def third_user(db_session):
    return await _make_user(db_session, "third@boardshare.dev", "Third")


def get_auth_headers(user: User) -> dict:
    """Generate auth headers for a user"""
    token = AuthService.create_access_token({"sub": user.id, "email": user.email})
    return {"Authorization": f"Bearer {token}"}


async def create_workspace(client: AsyncClient, user: User, name: str = "Board") -> dict:
    resp = await client.post(
        "/api/v1/workspaces", json={"name": name}, headers=get_auth_headers(user),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


async def share_workspace(client: AsyncClient, user: User, workspace_id: str, mode: str) -> dict:
    resp = await client.post(
        f"/api/v1/workspaces/{workspace_id}/sharing",
        json={"share_mode": mode},
        headers=get_auth_headers(user),
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


async def first_stage_id(client: AsyncClient, user: User, workspace_id: str) -> str:
    resp = await client.get(
        f"/api/v1/workspaces/{workspace_id}/stages", headers=get_auth_headers(user),
    )
    assert resp.status_code == 200, resp.text
    return resp.json()[0]["id"]


async def create_task(client: AsyncClient, user: User, workspace_id: str, title: str = "Task") -> dict:
    stage_id = await first_stage_id(client, user, workspace_id)
    resp = await client.post(
        f"/api/v1/workspaces/{workspace_id}/tasks",
        json={"stage_id": stage_id, "title": title},
        headers=get_auth_headers(user),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


async def create_tag(client: AsyncClient, user: User, name: str = "Tag", color: str = "#123456") -> dict:
    resp = await client.post(
        "/api/v1/tags", json={"name": name, "color": color}, headers=get_auth_headers(user),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()
