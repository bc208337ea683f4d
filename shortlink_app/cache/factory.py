"""
Builds the cache backend the Resolver reads through.

dependencies.get_cache memoizes the result, so each process connects once.
"""

import logging
from enum import Enum

import redis

from .strategies import CacheStrategy, InMemoryCache, NullCache, RedisCache
from shortlink_app.config import Settings, settings
from shortlink_app.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


class CacheBackend(Enum):
    """Available cache backends"""
    REDIS = "redis"
    MEMORY = "memory"
    NULL = "null"


def connect_redis(config: Settings) -> redis.Redis:
    """Open a client and ping it, so a dead server is noticed at startup"""
    client = redis.from_url(
        config.redis_url,
        socket_connect_timeout=config.redis_socket_timeout,
        socket_timeout=config.redis_socket_timeout,
    )
    client.ping()
    return client


def create_cache(backend: CacheBackend, config: Settings = settings) -> CacheStrategy:
    """
    Create the cache for a backend.

    An unreachable Redis raises StoreUnavailableError unless
    cache_fallback_to_memory is set. The fallback cache lives in this
    process only: expired markers and cached URLs stop being shared
    between workers, and each worker keeps its own negative cache.

    Raises:
        StoreUnavailableError: Redis unreachable and no fallback allowed
        ValueError: unknown backend
    """
    if backend == CacheBackend.MEMORY:
        logger.info("In-memory link cache initialized")
        return InMemoryCache()

    if backend == CacheBackend.NULL:
        logger.info("Link cache disabled")
        return NullCache()

    if backend != CacheBackend.REDIS:
        raise ValueError(f"Unknown cache backend: {backend}")

    try:
        client = connect_redis(config)
    except redis.RedisError as e:
        if not config.cache_fallback_to_memory:
            logger.error("Redis link cache unreachable: %s", e)
            raise StoreUnavailableError(f"Redis link cache unreachable: {e}") from e
        logger.warning(
            "Redis link cache unreachable (%s); falling back to a per-process "
            "in-memory cache, not shared with other workers", e
        )
        return InMemoryCache()

    logger.info("Redis link cache connected")
    return RedisCache(client)
