"""
Factory for creating link store instances.
Simple, clean factory with singleton caching.
"""

import logging
from enum import Enum

from .strategies import InMemoryLinkStore, LinkStoreStrategy, SQLAlchemyLinkStore

logger = logging.getLogger(__name__)


class LinkStoreBackend(Enum):
    """Available link store backends"""
    SQLALCHEMY = "sqlalchemy"
    MEMORY = "memory"


class LinkStoreFactory:
    """
    Simple factory for creating link store instances.

    The SQL backend takes its engine from shortlink_app.database.
    """

    _instance: LinkStoreStrategy = None  # Single cached instance

    @classmethod
    def create(cls, backend: LinkStoreBackend) -> LinkStoreStrategy:
        """
        Create or return cached link store instance.

        Args:
            backend: Type of store backend (from enum)

        Returns:
            Singleton link store instance
        """
        if cls._instance is not None:
            return cls._instance

        if backend == LinkStoreBackend.SQLALCHEMY:
            from shortlink_app.database.connection import Base, SessionLocal, engine

            Base.metadata.create_all(bind=engine)
            cls._instance = SQLAlchemyLinkStore(SessionLocal)
            logger.info("SQLAlchemy link store initialized (%s)", engine.url.get_backend_name())

        elif backend == LinkStoreBackend.MEMORY:
            cls._instance = InMemoryLinkStore()
            logger.info("In-memory link store initialized")

        else:
            raise ValueError(f"Unknown link store backend: {backend}")

        return cls._instance