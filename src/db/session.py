import logging
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from src.core.config import get_app_settings
from src.core.single_flight import once

logger = logging.getLogger(__name__)


def build_engine(db_url: str, echo: bool = False) -> AsyncEngine:
    """Creates an asynchronous SQLAlchemy engine instance."""
    if db_url.startswith("sqlite"):
        # SQLite has no server-side pool to tune.
        return create_async_engine(db_url, echo=echo)
    return create_async_engine(
        db_url,
        pool_size=10,
        max_overflow=20,
        pool_pre_ping=True,
        pool_recycle=1800, # 30 minutes
        echo=echo,
    )


def get_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Creates an asynchronous session factory."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False, # Important for async usage, especially with FastAPI
    )


@once
async def _create_engine() -> AsyncEngine:
    settings = get_app_settings()
    logger.info("Creating database engine.")
    return build_engine(settings.database_url, echo=settings.database_echo)


async def get_engine() -> AsyncEngine:
    """
    Returns the process-wide engine, creating it on first use.
    Concurrent first callers share one creation.
    """
    return await _create_engine()  # type: ignore


_session_factory: Optional[async_sessionmaker] = None


async def get_sessionmaker() -> async_sessionmaker:
    global _session_factory
    engine = await get_engine()
    if _session_factory is None or _session_factory.kw.get("bind") is not engine:
        _session_factory = get_session_factory(engine)
    return _session_factory


async def dispose_engine() -> None:
    """Disposes the cached engine. The next get_engine() call creates a fresh one."""
    global _session_factory
    engine = await _create_engine.reset()  # type: ignore
    _session_factory = None
    if engine is not None:
        logger.info("Disposing database engine.")
        await engine.dispose()


async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency to provide a database session.

    Handles session creation, commit, rollback, and closing.
    """
    factory = await get_sessionmaker()
    async with factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
