from pathlib import Path
from unittest.mock import AsyncMock, patch

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from services.personality_engine.loader import load_assessment_spec_from_file
from src.db.models import Base

ASSESSMENT_FILE = Path(__file__).resolve().parents[1] / "assets" / "mbti_assessment.yml"

# Use in-memory SQLite for testing
# Note: This won't test PG-specific features.
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(autouse=True)
def no_redis():
    """Redis is disabled unless a test patches get_redis itself; the cache decorator fails open."""
    with patch("src.cache.connection.get_redis", new=AsyncMock(return_value=None)) as mocked:
        yield mocked


@pytest_asyncio.fixture
async def test_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(test_engine):
    return async_sessionmaker(bind=test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    """Provides a database session for each test function."""
    async with session_factory() as session:
        yield session


@pytest.fixture(scope="session")
def assessment_spec():
    return load_assessment_spec_from_file(str(ASSESSMENT_FILE))


@pytest_asyncio.fixture
async def assessment(session_factory, assessment_spec):
    """The published seed assessment, committed."""
    from src.services.assessments import create_assessment_from_spec

    async with session_factory() as s:
        created = await create_assessment_from_spec(s, assessment_spec)
        await s.commit()
        return created


@pytest_asyncio.fixture
async def api_client(session_factory):
    """HTTPX client bound to the FastAPI app with db_session pointed at the test database."""
    from main import app
    from src.db.session import db_session

    async def override_db_session():
        async with session_factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[db_session] = override_db_session
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def build_answers(assessment_spec):
    """Returns a helper building answers in question order; chooser(index, question) picks option 0 or 1."""
    def _build(chooser):
        return [q.options[chooser(i, q)].value for i, q in enumerate(assessment_spec.questions)]
    return _build
