import asyncio
from typing import Any, Awaitable, Callable, Optional
import uuid
from redis.exceptions import RedisError
from goryl.cache import _cache
from goryl.cache._cache import REDIS_LOCK_TIMEOUT
from goryl.cache.utils import KEY_PREFIX, build_key, deserialize, release_lock, serialize
from goryl.cache import logger


def _client():
    return _cache.redis_client


async def _read(client, key: str) -> Optional[Any]:
    raw = await client.get(key)
    if raw is None:
        return None
    try:
        return deserialize(raw)
    except ValueError:
        await client.delete(key)
        return None


async def _store(client, key: str, value: Any, ttl: int):
    try:
        await client.set(key, serialize(value), ex=ttl)
    except RedisError as e:
        logger.warning("cache.store_failed", extra={"key": key, "error": str(e)})


async def cache_get_or_set(
    namespace: str,
    key_suffix: str,
    ttl: int,
    loader: Callable[[], Awaitable[Any]],
    lock_timeout: int = REDIS_LOCK_TIMEOUT,
) -> Any:
    """Read-through cache keyed by namespace + suffix. One caller computes, the others wait for the value."""

    client = _client()
    if client is None:
        return await loader()

    key = build_key(KEY_PREFIX, namespace, key_suffix)
    try:
        cached = await _read(client, key)
        if cached is not None:
            logger.debug("cache.hit", extra={"key": key})
            return cached

        lock_key = key + ":lock"
        token = uuid.uuid4().hex
        locked = await client.set(lock_key, token, nx=True, ex=lock_timeout)
    except RedisError as e:
        logger.warning("cache.unavailable", extra={"key": key, "error": str(e)})
        return await loader()

    if locked:
        try:
            # another worker may have filled the key between our miss and the lock
            cached = await _read(client, key)
            if cached is not None:
                return cached
            value = await loader()
            await _store(client, key, value, ttl)
            return value
        finally:
            await release_lock(client, lock_key, token)

    # someone else is computing, poll until the value shows up or give up and compute
    waited = 0.0
    interval = 0.05
    while waited < lock_timeout + 1:
        await asyncio.sleep(interval)
        waited += interval
        cached = await _read(client, key)
        if cached is not None:
            return cached

    value = await loader()
    await _store(client, key, value, ttl)
    return value


async def invalidate(namespace: str, key_suffix: str = ""):
    client = _client()
    if client is None:
        return
    key = build_key(KEY_PREFIX, namespace, key_suffix)
    try:
        await client.delete(key)
    except RedisError as e:
        logger.warning("cache.invalidate_failed", extra={"key": key, "error": str(e)})
