"""Test fixtures: a fresh app and a throwaway database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own in-memory SQLite database (aiosqlite). StaticPool
   keeps the single connection alive so every session sees the same data.
2. Each test gets its own app from create_app(), so the connection
   registry and the verification code store start empty.
3. get_db is overridden to hand out the test session; get_current_user
   is overridden to a fixed identity so routes work without real tokens.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from fitcoach.auth.dependencies import CurrentIdentity, get_current_user
from fitcoach.auth.jwt import create_access_token
from fitcoach.db.engine import get_db
from fitcoach.db.models import Base
from fitcoach.main import create_app

TEST_DB_URL = "sqlite+aiosqlite://"
TEST_USER_ID = "user-1"


def auth_headers(user_id: str) -> dict[str, str]:
    """Authorization header with a real access token for user_id."""
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest_asyncio.fixture()
async def db_engine():
    engine = create_async_engine(TEST_DB_URL, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(db_engine):
    session = AsyncSession(bind=db_engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()


@pytest.fixture()
def app():
    return create_app()


@pytest_asyncio.fixture()
async def client(app, db_session):
    """HTTP client with get_db and auth overridden.

    Every request is made as TEST_USER_ID.
    """
    async def override_get_db():
        yield db_session

    def override_get_current_user():
        return CurrentIdentity(user_id=TEST_USER_ID)

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def unauthenticated_client(app, db_session):
    """HTTP client WITHOUT the auth override: for real JWT flows.

    Pass auth_headers(user_id) per request to act as different users.
    """
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
