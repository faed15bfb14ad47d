import os
import shutil
import tempfile
import itertools

# Configure the app for testing before anything imports the settings
UPLOAD_ROOT = tempfile.mkdtemp(prefix="social-feed-uploads-")
os.environ["ENVIRONMENT"] = "testing"
os.environ["TEST_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["UPLOAD_DIR"] = UPLOAD_ROOT

import pytest
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession

from app import models  # noqa: F401
from app.main import app
from app.db.base import Base
from app.db.session import build_engine, build_session_factory, get_db
from app.schemas.user_schema import UserCreate
from app.schemas.post_schema import PostCreate
from app.services.auth_service import AuthService
from app.services.post_service import PostService

# Test database URL - in-memory SQLite
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

DEFAULT_PASSWORD = "Password123"

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64

@pytest.fixture
async def test_engine():
    """Fresh schema for every test"""
    engine = build_engine(TEST_DATABASE_URL)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()

@pytest.fixture
def session_factory(test_engine):
    return build_session_factory(test_engine)

@pytest.fixture
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session"""
    async with session_factory() as session:
        yield session

@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client talking to the app in-process"""
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client
    app.dependency_overrides.clear()

@pytest.fixture(autouse=True)
def clean_uploads():
    yield
    for entry in os.listdir(UPLOAD_ROOT):
        shutil.rmtree(os.path.join(UPLOAD_ROOT, entry), ignore_errors=True)

@pytest.fixture
def make_user(test_db: AsyncSession):
    """Factory creating registered users"""
    sequence = itertools.count(1)

    async def _make_user(username: str = None, password: str = DEFAULT_PASSWORD, **fields):
        username = username or f"user{next(sequence)}"
        user_data = UserCreate(
            first_name=fields.get("first_name", "Test"),
            paternal_surname=fields.get("paternal_surname", "User"),
            maternal_surname=fields.get("maternal_surname"),
            username=username,
            email=fields.get("email", f"{username}@example.com"),
            password=password,
            phone=fields.get("phone")
        )
        return await AuthService(test_db).create_user(user_data)

    return _make_user

@pytest.fixture
def make_post(test_db: AsyncSession):
    """Factory creating posts without uploading files"""
    async def _make_post(user_id: int, title: str = "A post", description: str = None, image_urls=None):
        post_data = PostCreate(user_id=user_id, title=title, description=description)
        return await PostService(test_db).create_post(post_data, image_urls)

    return _make_post
