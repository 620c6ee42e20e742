import asyncio
import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError, ConnectionError, TimeoutError

from src.core.config import get_app_settings
from src.core.single_flight import once

_log = logging.getLogger(__name__)


@once
async def _create_redis_connection() -> aioredis.Redis | None:
    """Creates the Redis client. Returns None (cache disabled) if that fails."""
    url = get_app_settings().redis_url
    _log.info(f"Attempting to create Redis connection to: {url}")
    try:
        client = aioredis.from_url(
            url,
            decode_responses=False,
            socket_connect_timeout=1,   # 1-second TCP connect cap
            socket_timeout=2,           # 2-second op cap
        )
        _log.info(f"Successfully created Redis client for {url}")
        return client
    except (RedisError, ConnectionError, TimeoutError, asyncio.TimeoutError, ValueError) as exc:
        _log.error(f"Failed to create Redis client for {url}: cache disabled ({exc})")
        return None


async def get_redis() -> aioredis.Redis | None:
    """
    Return a live Redis client using the single-flight initialiser.
    Returns None if the client could not be created.
    """
    return await _create_redis_connection() # type: ignore


async def close_redis() -> None:
    """Close and discard the cached client."""
    client_to_close = await _create_redis_connection.reset() # type: ignore

    if client_to_close:
        _log.info("Closing Redis connection pool...")
        try:
            await client_to_close.aclose()
            _log.info("Redis connection pool closed.")
        except RedisError as e:
            _log.warning(f"Error closing Redis connection: {e}")
