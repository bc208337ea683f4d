"""
Link store strategies using Strategy Pattern.

The link store is the durable, authoritative home of every LinkRecord:
- SQLAlchemy: Any SQL database SQLAlchemy speaks (SQLite, PostgreSQL, ...)
- In-Memory: Development/testing
"""

import copy
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Dict, Optional

from sqlalchemy import delete, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from shortlink_app.exceptions import DuplicateLinkError, StoreUnavailableError
from shortlink_app.models.link import LinkRecord, LinkRow, to_utc_naive

logger = logging.getLogger(__name__)


class LinkStoreStrategy(ABC):
    """
    Abstract base class for durable link stores.

    All methods are async because store operations involve I/O.
    Implementations raise StoreUnavailableError when the backend fails and
    DuplicateLinkError when an insert collides on id or short_url.
    """

    @abstractmethod
    async def get_by_id(self, link_id: str) -> Optional[LinkRecord]:
        """Point lookup by identifier"""
        pass

    @abstractmethod
    async def get_by_original_url(
        self, original_url: str, now: Optional[datetime] = None
    ) -> Optional[LinkRecord]:
        """
        Find a record for an original URL.

        Several records may exist for one URL (creation is not atomic);
        the oldest one is returned. When now is given, records that have
        expired by then are skipped.
        """
        pass

    @abstractmethod
    async def insert(self, record: LinkRecord) -> LinkRecord:
        """
        Persist a new record.

        Raises:
            DuplicateLinkError: id or short_url already taken
        """
        pass

    @abstractmethod
    async def increment_clicks(self, link_id: str) -> Optional[int]:
        """
        Add one click to a record.

        Returns:
            New click count, or None if the record no longer exists
        """
        pass

    @abstractmethod
    async def delete(self, link_id: str) -> bool:
        """Delete one record. Returns True if it existed."""
        pass

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        """
        Delete every record whose expires_at is set and <= now.

        Returns:
            Number of records removed
        """
        pass


class SQLAlchemyLinkStore(LinkStoreStrategy):
    """
    SQLAlchemy implementation of the link store.

    Opens a short-lived session per operation, so one instance can be shared
    by every request and by background tasks that outlive a request.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        """
        Initialize SQLAlchemy link store.

        Args:
            session_factory: Callable returning a new Session (a sessionmaker)
        """
        self.session_factory = session_factory

    async def get_by_id(self, link_id: str) -> Optional[LinkRecord]:
        try:
            with self.session_factory() as session:
                row = session.get(LinkRow, link_id)
                return row.to_record() if row else None
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Link lookup failed: {e}") from e

    async def get_by_original_url(
        self, original_url: str, now: Optional[datetime] = None
    ) -> Optional[LinkRecord]:
        query = select(LinkRow).where(LinkRow.original_url == original_url)
        if now is not None:
            query = query.where(
                or_(LinkRow.expires_at.is_(None), LinkRow.expires_at > to_utc_naive(now))
            )
        try:
            with self.session_factory() as session:
                row = session.scalars(
                    query
                    .order_by(LinkRow.created_at)
                    .limit(1)
                ).first()
                return row.to_record() if row else None
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Link lookup failed: {e}") from e

    async def insert(self, record: LinkRecord) -> LinkRecord:
        try:
            with self.session_factory() as session:
                session.add(LinkRow.from_record(record))
                session.commit()
        except IntegrityError as e:
            raise DuplicateLinkError(
                f"Identifier '{record.id}' or its short URL already exists"
            ) from e
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Link insert failed: {e}") from e
        return record

    async def increment_clicks(self, link_id: str) -> Optional[int]:
        try:
            with self.session_factory() as session:
                # Single UPDATE so concurrent increments never lose a click
                result = session.execute(
                    update(LinkRow)
                    .where(LinkRow.id == link_id)
                    .values(clicks=LinkRow.clicks + 1)
                )
                session.commit()
                if result.rowcount == 0:
                    return None
                return session.scalar(
                    select(LinkRow.clicks).where(LinkRow.id == link_id)
                )
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Click increment failed: {e}") from e

    async def delete(self, link_id: str) -> bool:
        try:
            with self.session_factory() as session:
                result = session.execute(delete(LinkRow).where(LinkRow.id == link_id))
                session.commit()
                return result.rowcount > 0
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Link delete failed: {e}") from e

    async def delete_expired(self, now: datetime) -> int:
        try:
            with self.session_factory() as session:
                result = session.execute(
                    delete(LinkRow).where(
                        LinkRow.expires_at.is_not(None),
                        LinkRow.expires_at <= to_utc_naive(now),
                    )
                )
                session.commit()
                return result.rowcount
        except SQLAlchemyError as e:
            raise StoreUnavailableError(f"Expired link sweep failed: {e}") from e


class InMemoryLinkStore(LinkStoreStrategy):
    """
    In-memory link store using Python dicts.

    Enforces the same uniqueness rules as the SQL schema (id, short_url)
    and hands out copies so callers cannot mutate stored records.

    Used in development/testing environments.
    Note: Async for interface consistency, but operations are instant.
    """

    def __init__(self):
        """Initialize empty store"""
        self._records: Dict[str, LinkRecord] = {}

    async def get_by_id(self, link_id: str) -> Optional[LinkRecord]:
        record = self._records.get(link_id)
        return copy.copy(record) if record else None

    async def get_by_original_url(
        self, original_url: str, now: Optional[datetime] = None
    ) -> Optional[LinkRecord]:
        matches = [
            r for r in self._records.values()
            if r.original_url == original_url and (now is None or not r.is_expired(now))
        ]
        if not matches:
            return None
        return copy.copy(min(matches, key=lambda r: r.created_at))

    async def insert(self, record: LinkRecord) -> LinkRecord:
        if record.id in self._records or any(
            r.short_url == record.short_url for r in self._records.values()
        ):
            raise DuplicateLinkError(
                f"Identifier '{record.id}' or its short URL already exists"
            )
        self._records[record.id] = copy.copy(record)
        return record

    async def increment_clicks(self, link_id: str) -> Optional[int]:
        record = self._records.get(link_id)
        if record is None:
            return None
        record.clicks += 1
        return record.clicks

    async def delete(self, link_id: str) -> bool:
        return self._records.pop(link_id, None) is not None

    async def delete_expired(self, now: datetime) -> int:
        expired = [
            link_id for link_id, r in self._records.items()
            if r.expires_at is not None and r.expires_at <= now
        ]
        for link_id in expired:
            del self._records[link_id]
        return len(expired)

    def __len__(self) -> int:
        return len(self._records)
