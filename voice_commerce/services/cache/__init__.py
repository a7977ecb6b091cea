"""
Session Cache Service.
Key-value store with per-key expiration backing the conversation context store.
"""

import asyncio
import json
import logging
import time
from typing import Callable, Dict, Optional, Tuple

from redis.asyncio import Redis
from redis.exceptions import WatchError

logger = logging.getLogger(__name__)


def stored_version(payload: Optional[str], field: str) -> int:
    """Version stored inside a cached JSON payload; absent entries count as 0."""
    if not payload:
        return 0
    try:
        return int(json.loads(payload).get(field, 0))
    except (ValueError, TypeError, AttributeError):
        return 0


class InMemorySessionCache:
    """
    Process-local cache with sliding expiry.

    Used when no Redis is configured (single worker deployments, tests).
    Expired keys are dropped on access, and writes sweep the whole map at
    most once per `purge_interval` seconds.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, purge_interval: float = 60.0):
        self._entries: Dict[str, Tuple[str, float]] = {}
        self._clock = clock
        self._lock = asyncio.Lock()
        self._purge_interval = purge_interval
        self._next_purge = clock() + purge_interval

    def size(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        if entry is None:
            return None

        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None

        return value

    async def set(self, key: str, value: str, ttl: int):
        now = self._clock()
        if now >= self._next_purge:
            self.purge_expired(now)
        self._entries[key] = (value, now + ttl)

    async def delete(self, key: str):
        self._entries.pop(key, None)

    async def set_if_version(
        self,
        key: str,
        value: str,
        ttl: int,
        version_field: str,
        expected_version: int
    ) -> Tuple[bool, int]:
        """Write only if the cached version still equals expected_version."""
        async with self._lock:
            actual = stored_version(await self.get(key), version_field)
            if actual != expected_version:
                return False, actual

            await self.set(key, value, ttl)
            return True, actual

    def purge_expired(self, now: Optional[float] = None) -> int:
        now = self._clock() if now is None else now
        expired = [k for k, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        self._next_purge = now + self._purge_interval
        if expired:
            logger.debug(f"Purged {len(expired)} expired session entries")
        return len(expired)

    async def ping(self) -> bool:
        return True

    async def close(self):
        self._entries.clear()


class RedisSessionCache:
    """Session cache on Redis; expiry is delegated to the server."""

    def __init__(self, url: str, client: Optional[Redis] = None):
        self._url = url
        self._client = client or Redis.from_url(url, decode_responses=True)

    async def get(self, key: str) -> Optional[str]:
        return await self._client.get(key)

    async def set(self, key: str, value: str, ttl: int):
        await self._client.set(key, value, ex=ttl)

    async def delete(self, key: str):
        await self._client.delete(key)

    async def set_if_version(
        self,
        key: str,
        value: str,
        ttl: int,
        version_field: str,
        expected_version: int
    ) -> Tuple[bool, int]:
        """Optimistic write inside WATCH/MULTI."""
        async with self._client.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(key)
                actual = stored_version(await pipe.get(key), version_field)
                if actual != expected_version:
                    await pipe.unwatch()
                    return False, actual

                pipe.multi()
                pipe.set(key, value, ex=ttl)
                await pipe.execute()
                return True, actual

            except WatchError:
                logger.warning(f"Concurrent write detected on {key}")
                return False, stored_version(await self._client.get(key), version_field)

    async def ping(self) -> bool:
        return bool(await self._client.ping())

    async def close(self):
        await self._client.aclose()


def create_session_cache(redis_url: Optional[str] = None):
    """Redis cache when a URL is configured, in-process cache otherwise."""
    if redis_url:
        logger.info("Session cache: redis")
        return RedisSessionCache(redis_url)

    logger.warning("REDIS_URL not configured, using in-process session cache")
    return InMemorySessionCache()
