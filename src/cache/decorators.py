import asyncio
import functools
import hashlib
import inspect
import logging
import pickle
from typing import Any, Callable, Coroutine, Iterable, TypeVar

from redis.exceptions import RedisError

from src.cache import connection as _conn

# Every key this service writes starts with NAMESPACE.
NAMESPACE = "persona:"

logger = logging.getLogger(__name__)

R = TypeVar('R')


def _build_cache_key(func: Callable, key_prefix: str, args: tuple, kwargs: dict) -> str:
    arg_key_part = pickle.dumps((args, sorted(kwargs.items())), protocol=5)
    hashed_args = hashlib.sha1(arg_key_part).hexdigest()
    return f"{NAMESPACE}{key_prefix}{func.__module__}.{func.__qualname__}:{hashed_args}"


def redis_cache(
    ttl: int = 3600,
    key_prefix: str = "",
    ignore: Iterable[str] = (),
) -> Callable[[Callable[..., Coroutine[Any, Any, R]]], Callable[..., Coroutine[Any, Any, R]]]:
    """
    Asynchronous caching decorator using Redis. Fails open: any Redis problem
    falls back to calling the wrapped function.

    Args:
        ttl: Time-to-live for the cache entry in seconds. If <= 0, caching is skipped.
        key_prefix: Optional prefix to add to the cache key namespace.
        ignore: Keyword argument names left out of the cache key (e.g. a DB session).
    """
    ignored = frozenset(ignore)

    def decorator(func: Callable[..., Coroutine[Any, Any, R]]) -> Callable[..., Coroutine[Any, Any, R]]:
        if not inspect.iscoroutinefunction(func):
            raise TypeError("The decorated function must be an async function.")

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> R:
            if ttl <= 0:
                logger.debug(f"TTL <= 0, skipping cache for {func.__qualname__}")
                return await func(*args, **kwargs)

            # fetch the live helper each call, so early-decorated functions still work
            redis_conn = await _conn.get_redis()
            if not redis_conn:
                logger.warning(f"Redis unavailable, executing live function {func.__qualname__}")
                return await func(*args, **kwargs)

            key_kwargs = {k: v for k, v in kwargs.items() if k not in ignored}
            try:
                cache_key = _build_cache_key(func, key_prefix, args, key_kwargs)
            except (pickle.PicklingError, TypeError, AttributeError) as e:
                logger.warning(f"Failed to pickle arguments for {func.__qualname__}: {e}. Executing live function.")
                return await func(*args, **kwargs)

            try:
                cached_result = await asyncio.wait_for(redis_conn.get(cache_key), timeout=2.0)
            except (asyncio.TimeoutError, RedisError) as e:
                logger.warning(f"Redis lookup failed for {func.__qualname__}: {e!r}. Executing live function.")
                return await func(*args, **kwargs)

            if cached_result is not None:
                try:
                    logger.debug(f"Cache hit for {func.__qualname__} with key {cache_key}")
                    return pickle.loads(cached_result)
                except (pickle.UnpicklingError, TypeError, EOFError) as e:
                    logger.warning(f"Failed to unpickle cached data for key {cache_key}: {e}. Fetching live data.")

            logger.debug(f"Cache miss for {func.__qualname__} with key {cache_key}")
            result = await func(*args, **kwargs)

            try:
                serialized_result = pickle.dumps(result, protocol=5)
                await asyncio.wait_for(redis_conn.setex(cache_key, ttl, serialized_result), timeout=2.0)
                logger.debug(f"Stored result for {func.__qualname__} in cache with key {cache_key}, TTL={ttl}")
            except (pickle.PicklingError, TypeError) as e:
                logger.warning(f"Failed to pickle result for {func.__qualname__} key {cache_key}: {e}. Result not cached.")
            except (asyncio.TimeoutError, RedisError) as e:
                logger.warning(f"Redis error during SET for key {cache_key}: {e!r}. Result not cached.")

            return result

        return wrapper
    return decorator


async def _unlink_all(redis_conn, match_pattern: str) -> int:
    """Scans and unlinks keys matching a pattern."""
    deleted_count = 0
    try:
        async for key in redis_conn.scan_iter(match=match_pattern, count=100):
            try:
                deleted_count += await asyncio.wait_for(redis_conn.unlink(key), timeout=2.0)
            except (asyncio.TimeoutError, RedisError) as e:
                logger.warning(f"Unlink failed for key {key!r}: {e!r}. Stopping scan.")
                break
    except RedisError as e:
        logger.error(f"Redis error during SCAN for pattern '{match_pattern}': {e}")
    return deleted_count


async def invalidate(pattern: str) -> int:
    """
    Deletes cache keys matching the given pattern using SCAN and UNLINK.

    Args:
        pattern: Pattern relative to NAMESPACE (e.g. "assessment:*"). A trailing
                 wildcard is added when missing.

    Returns:
        The number of deleted keys; 0 when Redis is unavailable.
    """
    redis_conn = await _conn.get_redis()
    if not redis_conn:
        logger.warning("Redis unavailable, cannot invalidate cache.")
        return 0

    clean_pattern = pattern.removeprefix(NAMESPACE)
    full_pattern = f"{NAMESPACE}{clean_pattern}"
    if not full_pattern.endswith('*'):
        full_pattern += '*'

    deleted_count = await _unlink_all(redis_conn, full_pattern)
    logger.info(f"Invalidation complete for pattern '{full_pattern}'. Deleted {deleted_count} keys.")
    return deleted_count
