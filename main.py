import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import text

from src.cache.connection import close_redis, get_redis
from src.core.config import get_app_settings
from src.core.logging_config import setup_logging
from src.db.models import Base
from src.db.session import db_session, dispose_engine, get_engine
from src.routers import assessments as assessments_router
from src.routers import content as content_router
from src.routers import results as results_router
from src.routers import users as users_router

setup_logging(get_app_settings().log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_app_settings()
    if settings.database_url.startswith("sqlite"):
        # Local development: create tables directly.
        engine = await get_engine()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    yield
    await close_redis()
    await dispose_engine()
    logger.info("Shutdown complete.")


app = FastAPI(title="Persona MBTI Assessment API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Include Routers ---
app.include_router(assessments_router.router, prefix="/api/v1")
app.include_router(results_router.router, prefix="/api/v1")
app.include_router(users_router.router, prefix="/api/v1")
app.include_router(content_router.router, prefix="/api/v1")


@app.get("/", tags=["Health Check"])
async def read_root():
    """
    Root endpoint for basic health check.
    """
    return {
        "status": "ok",
        "message": "Persona MBTI Assessment API is running.",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.get("/health/db", tags=["Health Check"])
async def health_check_db(session: AsyncSession = Depends(db_session)):
    """
    Performs a database connection health check.
    """
    try:
        result = (await session.execute(text("SELECT 1"))).scalar_one()
        return {"status": "ok", "db_check": result}
    except Exception as e:
        logger.error(f"DB health check failed: {e}", exc_info=True)
        raise HTTPException(status_code=503, detail=f"Database connection error: {e}")


@app.get("/health/cache", tags=["Health Check"])
async def health_check_cache():
    """
    Performs a cache connection health check by setting and getting a key.
    """
    key = "persona:health:ping"
    value = b"pong"
    redis_conn = await get_redis()
    if redis_conn is None:
        raise HTTPException(status_code=503, detail="Cache error: Redis unavailable")
    try:
        await redis_conn.set(key, value, ex=60)
        retrieved_value = await redis_conn.get(key)
    except Exception as e:
        logger.error(f"Cache health check failed with exception: {e}", exc_info=True)
        raise HTTPException(status_code=503, detail=f"Cache connection error: {e}")

    if retrieved_value != value:
        logger.error(f"Cache health check failed: Retrieved value '{retrieved_value}' does not match expected '{value}'")
        raise HTTPException(status_code=503, detail="Cache error: Value mismatch")
    return {"status": "ok", "cache_check": "set_get_successful"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=False)
