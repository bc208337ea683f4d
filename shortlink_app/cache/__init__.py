"""
Cache module for the short-link service.
Implements Strategy Pattern for flexible cache backends.
"""

from .strategies import CacheStrategy, RedisCache, InMemoryCache, NullCache
from .factory import CacheBackend, create_cache
from .link_cache import LinkCache, CachedUrl, CachedExpired

__all__ = [
    "CacheStrategy",
    "RedisCache",
    "InMemoryCache",
    "NullCache",
    "CacheBackend",
    "create_cache",
    "LinkCache",
    "CachedUrl",
    "CachedExpired",
]
