"""
FastAPI dependencies for dependency injection.

This module provides singleton instances of the link store, cache, click
tracker and clock, and builds the Resolver and Shortener from them.

Pattern: Dependency Injection
- Loose coupling between components
- Easy to test (override get_link_store / get_cache / get_clock)
- Flexible (swap implementations via config)
"""

from datetime import datetime
from functools import lru_cache
from typing import Callable

from fastapi import Depends

from shortlink_app.cache.factory import CacheBackend, create_cache
from shortlink_app.cache.link_cache import LinkCache
from shortlink_app.cache.strategies import CacheStrategy
from shortlink_app.clock import utc_now
from shortlink_app.config import settings
from shortlink_app.services.click_tracker import ClickTracker
from shortlink_app.services.resolver import Resolver
from shortlink_app.services.short_code_strategies import RandomShortCodeStrategy
from shortlink_app.services.shortener import Shortener
from shortlink_app.storage.factory import LinkStoreBackend, LinkStoreFactory
from shortlink_app.storage.strategies import LinkStoreStrategy


@lru_cache()
def get_cache() -> CacheStrategy:
    """
    Get cache instance (singleton).

    @lru_cache keeps the first successful connection; a failed Redis
    connect is retried on the next request.
    """
    return create_cache(CacheBackend(settings.cache_backend))


@lru_cache()
def get_link_store() -> LinkStoreStrategy:
    """Get durable link store instance (singleton)."""
    backend = LinkStoreBackend(settings.store_backend)
    return LinkStoreFactory.create(backend)


def get_clock() -> Callable[[], datetime]:
    return utc_now


def get_click_tracker(
    store: LinkStoreStrategy = Depends(get_link_store),
) -> ClickTracker:
    """
    Get the click tracker bound to the link store.

    One tracker per store, so the app can drain every pending
    increment on shutdown.
    """
    return click_tracker_for(store)


@lru_cache()
def click_tracker_for(store: LinkStoreStrategy) -> ClickTracker:
    return ClickTracker(store)


def get_resolver(
    store: LinkStoreStrategy = Depends(get_link_store),
    cache: CacheStrategy = Depends(get_cache),
    click_tracker: ClickTracker = Depends(get_click_tracker),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> Resolver:
    """Get Resolver with all dependencies injected."""
    return Resolver(
        store=store,
        cache=LinkCache(cache),
        click_tracker=click_tracker,
        clock=clock,
        positive_cache_ttl=settings.positive_cache_ttl,
        negative_cache_ttl=settings.negative_cache_ttl,
        cap_cache_ttl_to_expiry=settings.cap_cache_ttl_to_expiry,
    )


def get_shortener(
    store: LinkStoreStrategy = Depends(get_link_store),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> Shortener:
    """Get Shortener with all dependencies injected."""
    return Shortener(
        store=store,
        code_strategy=RandomShortCodeStrategy(length=settings.short_id_length),
        base_url=settings.base_url,
        clock=clock,
        max_insert_retries=settings.max_insert_retries,
    )
