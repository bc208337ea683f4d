"""
Typed view of the cache for link resolution.

The cache stores plain strings, either the original URL or an expiry
sentinel. LinkCache is the only place that knows about the sentinel:
callers get back a CachedUrl, a CachedExpired, or None on a miss.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from .strategies import CacheStrategy

logger = logging.getLogger(__name__)

EXPIRED_SENTINEL = "__expired__"


@dataclass(frozen=True)
class CachedUrl:
    """Positive entry: identifier resolves to this URL"""
    url: str


@dataclass(frozen=True)
class CachedExpired:
    """Negative entry: identifier is known to be expired"""


CacheEntry = Union[CachedUrl, CachedExpired]


class LinkCache:
    """Encodes and decodes link cache entries on top of any CacheStrategy"""

    def __init__(self, cache: CacheStrategy):
        self.cache = cache

    @staticmethod
    def key_for(link_id: str) -> str:
        return link_id

    async def lookup(self, link_id: str) -> Optional[CacheEntry]:
        value = await self.cache.get(self.key_for(link_id))
        if value is None:
            return None
        if value == EXPIRED_SENTINEL:
            return CachedExpired()
        return CachedUrl(value)

    async def remember_url(self, link_id: str, url: str, ttl: int) -> None:
        await self.cache.set(self.key_for(link_id), url, ttl=ttl)

    async def remember_expired(self, link_id: str, ttl: int) -> None:
        await self.cache.set(self.key_for(link_id), EXPIRED_SENTINEL, ttl=ttl)
