"""
Cache strategies using Strategy Pattern.

The redirect workflow caches record snapshots by short code so repeated
redirects skip the database lookup. Backends: Redis, in-memory, null.
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple


logger = logging.getLogger(__name__)


class CacheStrategy(ABC):
    """
    Abstract base class for cache strategies.

    All methods are async because cache operations involve I/O (network for Redis).
    A cache failure must never fail a request: implementations log and
    report a miss instead of raising.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Get value from cache.

        Returns:
            Cached value or None if not found
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int = 3600) -> bool:
        """
        Set value in cache with TTL (Time To Live) in seconds.

        Returns:
            True if successful, False otherwise
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Returns True if the key was deleted"""
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    async def clear(self) -> bool:
        pass


class RedisCache(CacheStrategy):
    """
    Redis cache implementation.

    Shared between app processes and honours TTLs natively.
    """

    def __init__(self, redis_client):
        """
        Args:
            redis_client: Redis client instance (redis.Redis)
        """
        self.redis = redis_client

    async def get(self, key: str) -> Optional[str]:
        try:
            value = self.redis.get(key)
            return value.decode("utf-8") if value else None
        except Exception:
            logger.warning("Redis get failed for %s", key, exc_info=True)
            return None

    async def set(self, key: str, value: str, ttl: int = 3600) -> bool:
        try:
            return bool(self.redis.setex(key, ttl, value))
        except Exception:
            logger.warning("Redis set failed for %s", key, exc_info=True)
            return False

    async def delete(self, key: str) -> bool:
        try:
            return bool(self.redis.delete(key))
        except Exception:
            logger.warning("Redis delete failed for %s", key, exc_info=True)
            return False

    async def exists(self, key: str) -> bool:
        try:
            return bool(self.redis.exists(key))
        except Exception:
            logger.warning("Redis exists failed for %s", key, exc_info=True)
            return False

    async def clear(self) -> bool:
        """Flush the whole Redis database (use with caution!)"""
        try:
            self.redis.flushdb()
            return True
        except Exception:
            logger.warning("Redis flush failed", exc_info=True)
            return False


class InMemoryCache(CacheStrategy):
    """
    In-memory cache using a dict of (value, expiry deadline).

    Not shared between processes and lost on restart; meant for development
    and tests. Expired entries are dropped lazily when read.
    """

    def __init__(self):
        self._cache: Dict[str, Tuple[str, float]] = {}

    async def get(self, key: str) -> Optional[str]:
        entry = self._cache.get(key)
        if entry is None:
            return None
        value, deadline = entry
        if time.monotonic() >= deadline:
            del self._cache[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl: int = 3600) -> bool:
        self._cache[key] = (value, time.monotonic() + ttl)
        return True

    async def delete(self, key: str) -> bool:
        return self._cache.pop(key, None) is not None

    async def exists(self, key: str) -> bool:
        return await self.get(key) is not None

    async def clear(self) -> bool:
        self._cache.clear()
        return True


class NullCache(CacheStrategy):
    """
    Null Object Pattern - cache that does nothing.

    Every read is a miss, so the service always goes to the store.
    """

    async def get(self, key: str) -> Optional[str]:
        return None

    async def set(self, key: str, value: str, ttl: int = 3600) -> bool:
        return True

    async def delete(self, key: str) -> bool:
        return True

    async def exists(self, key: str) -> bool:
        return False

    async def clear(self) -> bool:
        return True
