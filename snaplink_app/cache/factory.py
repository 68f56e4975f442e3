"""
Factory for creating cache instances with singleton caching.
"""

import logging
from enum import Enum

from .strategies import CacheStrategy, RedisCache, InMemoryCache, NullCache
from snaplink_app.config import settings


logger = logging.getLogger(__name__)


class CacheBackend(Enum):
    """Available cache backends"""
    REDIS = "redis"
    MEMORY = "memory"
    NULL = "null"


class CacheFactory:
    """
    Creates the process-wide cache instance once and reuses it.

    Connection details come from settings. An unreachable Redis falls back
    to the in-memory cache so the service still starts.
    """

    _instance: CacheStrategy = None

    @classmethod
    def create(cls, backend: CacheBackend) -> CacheStrategy:
        if cls._instance is not None:
            return cls._instance

        if backend == CacheBackend.REDIS:
            import redis

            try:
                redis_client = redis.from_url(
                    settings.redis_url,
                    decode_responses=False,
                    socket_connect_timeout=2,
                    socket_timeout=2,
                )
                redis_client.ping()
                cls._instance = RedisCache(redis_client)
                logger.info("Redis cache initialized at %s", settings.redis_url)

            except redis.RedisError as e:
                logger.warning("Redis connection failed (%s), falling back to in-memory cache", e)
                cls._instance = InMemoryCache()

        elif backend == CacheBackend.MEMORY:
            cls._instance = InMemoryCache()
            logger.info("In-memory cache initialized")

        elif backend == CacheBackend.NULL:
            cls._instance = NullCache()
            logger.info("Null cache initialized")

        else:
            raise ValueError(f"Unknown cache backend: {backend}")

        return cls._instance

    @classmethod
    def clear_instance(cls):
        """Clear cached instance (for testing)"""
        cls._instance = None
