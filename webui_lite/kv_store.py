"""Durable key-value store used for shared counters."""

import logging
from typing import Any, Optional, Protocol, Union

from redis import RedisError
from redis.asyncio import from_url as redis_from_url

logger = logging.getLogger(__name__)


class KeyValueUnavailable(Exception):
    """The bound backend could not serve a read."""


class KeyValueStore(Protocol):
    async def get(self, key: str) -> Optional[Union[bytes, str]]: ...

    async def set(
        self, key: str, value: str, ttl_seconds: Optional[int] = None
    ) -> bool: ...


class RedisKeyValueStore:
    """KeyValueStore backed by a redis.asyncio client."""

    def __init__(self, redis_client: Any) -> None:
        self._redis = redis_client

    async def get(self, key: str) -> Optional[Union[bytes, str]]:
        try:
            value = await self._redis.get(key)
        except RedisError as exc:
            raise KeyValueUnavailable(str(exc)) from exc
        if isinstance(value, (bytes, str)):
            return value
        return None

    async def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> bool:
        try:
            await self._redis.set(key, value, ex=ttl_seconds)
        except RedisError as exc:
            logger.warning("KV write failed (key=%s): %s", key, exc)
            return False
        return True

    async def aclose(self) -> None:
        await self._redis.aclose()


def build_kv_store(redis_url: str) -> Optional[KeyValueStore]:
    """Bind a store for the given URL, or None when no backend is configured."""
    if not redis_url:
        return None
    client = redis_from_url(redis_url, decode_responses=False)
    return RedisKeyValueStore(redis_client=client)
