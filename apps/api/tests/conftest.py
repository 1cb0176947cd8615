import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from unittest.mock import patch

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from config import settings
from database import Base, get_db
from main import app
from routers import rate_limit
from routers.auth_scope import AuthContext, get_optional_auth_context
from services import clerk_auth


TEST_USER_ID = "user_2test0000000000000000000"


@pytest.fixture(autouse=True)
def reset_local_rate_limit_counters():
    """Keep in-memory rate-limit state isolated between tests."""
    previous = getattr(app.state, "disable_rate_limits", False)
    app.state.disable_rate_limits = True
    rate_limit._local_counters.clear()
    clerk_auth.clear_jwks_cache()
    yield
    rate_limit._local_counters.clear()
    clerk_auth.clear_jwks_cache()
    app.state.disable_rate_limits = previous


@pytest.fixture
def cloudinary_configured():
    with (
        patch.object(settings, "CLOUDINARY_CLOUD_NAME", "demo"),
        patch.object(settings, "CLOUDINARY_API_KEY", "test-api-key"),
        patch.object(settings, "CLOUDINARY_API_SECRET", "test-api-secret"),
    ):
        yield


@pytest.fixture
def cloudinary_missing():
    with (
        patch.object(settings, "CLOUDINARY_CLOUD_NAME", ""),
        patch.object(settings, "CLOUDINARY_API_KEY", ""),
        patch.object(settings, "CLOUDINARY_API_SECRET", ""),
    ):
        yield


@pytest.fixture
def signed_in():
    app.dependency_overrides[get_optional_auth_context] = lambda: AuthContext(user_id=TEST_USER_ID)
    yield TEST_USER_ID
    app.dependency_overrides.pop(get_optional_auth_context, None)


@pytest_asyncio.fixture
async def session_maker(tmp_path):
    db_path = tmp_path / "videos.db"
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}")
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield maker
    await engine.dispose()


@pytest_asyncio.fixture
async def api_client(session_maker):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.pop(get_db, None)
