import logging
import math
from datetime import datetime
from typing import Callable

from shortlink_app.cache.link_cache import CachedExpired, CachedUrl, LinkCache
from shortlink_app.clock import utc_now
from shortlink_app.exceptions import LinkExpiredError, LinkNotFoundError
from shortlink_app.models.link import LinkRecord
from shortlink_app.services.click_tracker import ClickTracker
from shortlink_app.storage.strategies import LinkStoreStrategy

logger = logging.getLogger(__name__)


class Resolver:
    """
    Resolves identifiers to original URLs using the Cache-Aside pattern.

    Flow:
    1. Check cache first
       - expired marker -> Expired, no store read
       - URL -> count the click in the background, return the URL
    2. On a miss, read the store
       - no record -> NotFound
       - expired record -> delete it, cache an expired marker, Expired
       - live record -> cache the URL, count the click, return the URL

    A cached URL lives for positive_cache_ttl regardless of the link's own
    expires_at, so a short-lived link can keep redirecting from cache until
    that entry times out. Set cap_cache_ttl_to_expiry to bound the entry by
    the link's remaining lifetime instead.
    """

    def __init__(
        self,
        store: LinkStoreStrategy,
        cache: LinkCache,
        click_tracker: ClickTracker,
        clock: Callable[[], datetime] = utc_now,
        positive_cache_ttl: int = 86400,
        negative_cache_ttl: int = 300,
        cap_cache_ttl_to_expiry: bool = False,
    ):
        self.store = store
        self.cache = cache
        self.click_tracker = click_tracker
        self.clock = clock
        self.positive_cache_ttl = positive_cache_ttl
        self.negative_cache_ttl = negative_cache_ttl
        self.cap_cache_ttl_to_expiry = cap_cache_ttl_to_expiry

    async def resolve(self, link_id: str) -> str:
        """
        Return the original URL for an identifier and count the click.

        Raises:
            LinkNotFoundError: identifier never existed (or was swept)
            LinkExpiredError: identifier existed but its lifetime has elapsed
            StoreUnavailableError: cache or store failure
        """
        entry = await self.cache.lookup(link_id)

        if isinstance(entry, CachedExpired):
            logger.debug("Negative cache hit for %s", link_id)
            raise LinkExpiredError(link_id)

        if isinstance(entry, CachedUrl):
            logger.debug("Cache hit for %s", link_id)
            self.click_tracker.record_click(link_id)
            return entry.url

        logger.debug("Cache miss for %s", link_id)
        record = await self.store.get_by_id(link_id)
        if record is None:
            raise LinkNotFoundError(link_id)

        now = self.clock()
        if record.is_expired(now):
            await self.store.delete(link_id)
            await self.cache.remember_expired(link_id, ttl=self.negative_cache_ttl)
            logger.info("Link %s expired at %s; removed", link_id, record.expires_at.isoformat())
            raise LinkExpiredError(link_id)

        await self.cache.remember_url(
            link_id, record.original_url, ttl=self._positive_ttl_for(record, now)
        )
        await self.store.increment_clicks(link_id)
        return record.original_url

    async def describe(self, link_id: str) -> LinkRecord:
        """
        Return the stored record without counting a click.

        Reads the store directly; an expired record is reported as expired
        but left for the Resolver or the cleanup sweep to remove.
        """
        record = await self.store.get_by_id(link_id)
        if record is None:
            raise LinkNotFoundError(link_id)
        if record.is_expired(self.clock()):
            raise LinkExpiredError(link_id)
        return record

    def _positive_ttl_for(self, record: LinkRecord, now: datetime) -> int:
        if not self.cap_cache_ttl_to_expiry:
            return self.positive_cache_ttl
        remaining = record.remaining_seconds(now)
        if remaining is None:
            return self.positive_cache_ttl
        return max(1, min(self.positive_cache_ttl, math.ceil(remaining)))
