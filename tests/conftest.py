"""
Test configuration and fixtures for the short-link service.
This centralizes all test setup, making individual tests clean.
"""

import os

# Keep the app off Redis and the on-disk database while testing
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("CACHE_BACKEND", "memory")
os.environ.setdefault("CLEANUP_ENABLED", "false")
os.environ.setdefault("BASE_URL", "http://sho.rt")

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from main import app
from shortlink_app.cache.link_cache import LinkCache
from shortlink_app.cache.strategies import InMemoryCache
from shortlink_app.database.connection import Base
from shortlink_app.dependencies import (
    click_tracker_for,
    get_cache,
    get_clock,
    get_link_store,
)
from shortlink_app.services.click_tracker import ClickTracker
from shortlink_app.services.resolver import Resolver
from shortlink_app.services.short_code_strategies import RandomShortCodeStrategy
from shortlink_app.services.shortener import Shortener
from shortlink_app.storage.strategies import InMemoryLinkStore

# Test database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
)


class FakeClock:
    """Controllable clock: call it for 'now', advance it to simulate time passing"""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class CountingLinkStore(InMemoryLinkStore):
    """In-memory store that records how often each identifier was read"""

    def __init__(self):
        super().__init__()
        self.id_reads = 0

    async def get_by_id(self, link_id):
        self.id_reads += 1
        return await super().get_by_id(link_id)


class SequenceStrategy(RandomShortCodeStrategy):
    """Hands out identifiers from a fixed list (for collision tests)"""

    def __init__(self, codes):
        super().__init__(length=7)
        self.codes = list(codes)

    def generate(self) -> str:
        return self.codes.pop(0)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return CountingLinkStore()


@pytest.fixture
def memory_cache(clock):
    return InMemoryCache(clock=clock)


@pytest.fixture
def tracker(store):
    return ClickTracker(store)


@pytest.fixture
def resolver(store, memory_cache, tracker, clock):
    return Resolver(
        store=store,
        cache=LinkCache(memory_cache),
        click_tracker=tracker,
        clock=clock,
        positive_cache_ttl=86400,
        negative_cache_ttl=300,
    )


@pytest.fixture
def shortener(store, clock):
    return Shortener(
        store=store,
        code_strategy=RandomShortCodeStrategy(length=7),
        base_url="http://sho.rt",
        clock=clock,
    )


@pytest.fixture(scope="function")
def db_session_factory():
    """
    Fresh SQLite schema for each test.
    This ensures tests are isolated and don't affect each other.
    """
    Base.metadata.create_all(bind=engine)
    try:
        yield TestingSessionLocal
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(store, memory_cache, clock):
    """
    Create a test client with store, cache and clock overridden.
    This is the main fixture that API tests will use.
    """
    app.dependency_overrides[get_link_store] = lambda: store
    app.dependency_overrides[get_cache] = lambda: memory_cache
    app.dependency_overrides[get_clock] = lambda: clock

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    click_tracker_for.cache_clear()
