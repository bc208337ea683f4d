"""
Cache strategies using Strategy Pattern.
Allows switching between different cache backends (Redis, In-Memory, Null).
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, Dict, Optional, Tuple

import redis

from shortlink_app.clock import utc_now
from shortlink_app.exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)


class CacheStrategy(ABC):
    """
    Abstract base class for cache strategies.

    This is the Strategy Pattern interface - allows multiple cache implementations
    without changing the service layer code.

    All methods are async because cache operations involve I/O (network for Redis).
    Entries are never deleted explicitly; each one lives until its own TTL runs out.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """
        Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl: int) -> bool:
        """
        Set value in cache with TTL (Time To Live).

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds

        Returns:
            True if successful
        """
        pass


class RedisCache(CacheStrategy):
    """
    Redis cache implementation.

    Production-ready cache with:
    - Distributed caching (multiple servers can share cache)
    - Native per-key TTL (SETEX)

    Redis errors and timeouts are raised as StoreUnavailableError.
    """

    def __init__(self, redis_client):
        """
        Initialize Redis cache.

        Args:
            redis_client: Redis client instance (redis.Redis)
        """
        self.redis = redis_client

    async def get(self, key: str) -> Optional[str]:
        try:
            value = self.redis.get(key)
        except redis.RedisError as e:
            logger.error("Redis get error for %s: %s", key, e)
            raise StoreUnavailableError(f"Cache read failed: {e}") from e
        if value is None:
            return None
        return value.decode("utf-8") if isinstance(value, bytes) else value

    async def set(self, key: str, value: str, ttl: int) -> bool:
        try:
            return bool(self.redis.setex(key, ttl, value))
        except redis.RedisError as e:
            logger.error("Redis set error for %s: %s", key, e)
            raise StoreUnavailableError(f"Cache write failed: {e}") from e


class InMemoryCache(CacheStrategy):
    """
    In-memory cache implementation using Python dict.

    Pros:
    - Very fast (no network overhead)
    - Simple (no external dependencies)
    - Good for development and testing

    Cons:
    - Not distributed (each server has its own cache)
    - Lost on restart

    TTLs are enforced lazily on read against the injected clock,
    so tests can move time forward without sleeping.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        """
        Initialize in-memory cache.

        Args:
            clock: Returns the current time (timezone-aware)
        """
        self.clock = clock
        self._cache: Dict[str, Tuple[str, datetime]] = {}

    async def get(self, key: str) -> Optional[str]:
        entry = self._cache.get(key)
        if entry is None:
            return None
        value, deadline = entry
        if self.clock() >= deadline:
            del self._cache[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl: int) -> bool:
        self._cache[key] = (value, self.clock() + timedelta(seconds=ttl))
        return True


class NullCache(CacheStrategy):
    """
    Null Object Pattern - cache that does nothing.

    Used for:
    - Testing (when you want every lookup to hit the store)
    - Disabling cache in certain environments
    """

    async def get(self, key: str) -> Optional[str]:
        """Always returns None (cache miss)"""
        return None

    async def set(self, key: str, value: str, ttl: int) -> bool:
        """Pretends to set but does nothing"""
        return True
