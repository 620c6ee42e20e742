import fnmatch
import pickle

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from src.cache.decorators import NAMESPACE, invalidate, redis_cache


class FakeRedis:
    """In-memory stand-in for the handful of redis.asyncio calls the cache uses."""

    def __init__(self, fail_get: bool = False, fail_set: bool = False):
        self.store = {}
        self.ttls = {}
        self.fail_get = fail_get
        self.fail_set = fail_set

    async def get(self, key):
        if self.fail_get:
            raise RedisConnectionError("down")
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        if self.fail_set:
            raise RedisConnectionError("down")
        self.store[key] = value
        self.ttls[key] = ttl

    async def scan_iter(self, match="*", count=None):
        for key in list(self.store):
            if fnmatch.fnmatchcase(key, match):
                yield key

    async def unlink(self, key):
        return 1 if self.store.pop(key, None) is not None else 0


@pytest.fixture
def fake_redis(no_redis):
    fake = FakeRedis()
    no_redis.return_value = fake
    return fake


def _counting(ttl=60, key_prefix="test:", ignore=()):
    calls = []

    @redis_cache(ttl=ttl, key_prefix=key_prefix, ignore=ignore)
    async def compute(x, *, session=None):
        calls.append(x)
        return {"value": x * 2}

    return compute, calls


@pytest.mark.asyncio
async def test_cache_hit_skips_function(fake_redis):
    compute, calls = _counting()

    assert await compute(2) == {"value": 4}
    assert await compute(2) == {"value": 4}
    assert calls == [2]

    (key,) = fake_redis.store
    assert key.startswith(f"{NAMESPACE}test:")
    assert fake_redis.ttls[key] == 60
    assert pickle.loads(fake_redis.store[key]) == {"value": 4}


@pytest.mark.asyncio
async def test_different_arguments_use_different_keys(fake_redis):
    compute, calls = _counting()
    await compute(1)
    await compute(2)
    assert calls == [1, 2]
    assert len(fake_redis.store) == 2


@pytest.mark.asyncio
async def test_ignored_kwargs_are_left_out_of_the_key(fake_redis):
    compute, calls = _counting(ignore=("session",))
    await compute(3, session=object())
    await compute(3, session=object())
    assert calls == [3]


@pytest.mark.asyncio
async def test_unpicklable_kwargs_execute_live(fake_redis):
    compute, calls = _counting()
    # Lambdas cannot be pickled into a key.
    await compute(3, session=lambda: None)
    await compute(3, session=lambda: None)
    assert calls == [3, 3]
    assert fake_redis.store == {}


@pytest.mark.asyncio
async def test_redis_unavailable_fails_open(no_redis):
    no_redis.return_value = None
    compute, calls = _counting()
    assert await compute(5) == {"value": 10}
    assert await compute(5) == {"value": 10}
    assert calls == [5, 5]


@pytest.mark.asyncio
async def test_redis_errors_fail_open(no_redis):
    no_redis.return_value = FakeRedis(fail_get=True)
    compute, calls = _counting()
    assert await compute(1) == {"value": 2}

    broken_set = FakeRedis(fail_set=True)
    no_redis.return_value = broken_set
    assert await compute(1) == {"value": 2}
    assert broken_set.store == {}
    assert calls == [1, 1]


@pytest.mark.asyncio
async def test_zero_ttl_disables_cache(fake_redis):
    compute, calls = _counting(ttl=0)
    await compute(1)
    await compute(1)
    assert calls == [1, 1]
    assert fake_redis.store == {}


@pytest.mark.asyncio
async def test_corrupt_entry_is_recomputed(fake_redis):
    compute, calls = _counting()
    await compute(7)
    (key,) = fake_redis.store
    fake_redis.store[key] = b"not a pickle"

    assert await compute(7) == {"value": 14}
    assert calls == [7, 7]


def test_sync_functions_rejected():
    with pytest.raises(TypeError):
        @redis_cache(ttl=10)
        def not_async():
            return 1


@pytest.mark.asyncio
async def test_invalidate_removes_matching_keys(fake_redis):
    fake_redis.store = {
        f"{NAMESPACE}assessment:a": b"1",
        f"{NAMESPACE}assessment:b": b"2",
        f"{NAMESPACE}other:c": b"3",
        "foreign:assessment:d": b"4",
    }

    assert await invalidate("assessment:") == 2
    assert sorted(fake_redis.store) == ["foreign:assessment:d", f"{NAMESPACE}other:c"]
    # An already-namespaced pattern is not double-prefixed.
    assert await invalidate(f"{NAMESPACE}other:*") == 1


@pytest.mark.asyncio
async def test_invalidate_without_redis(no_redis):
    no_redis.return_value = None
    assert await invalidate("assessment:") == 0
