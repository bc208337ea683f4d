from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, Integer, String

from shortlink_app.database.connection import Base

# Longest original URL accepted; the columns are sized to match
MAX_URL_LENGTH = 2048


@dataclass
class LinkRecord:
    """
    Authoritative mapping from a short identifier to its original URL.

    Created once by the Shortener. Only ``clicks`` changes afterwards.
    ``expires_at`` of None means the link is permanent.
    """
    id: str
    original_url: str
    short_url: str
    created_at: datetime
    expires_at: Optional[datetime] = None
    clicks: int = 0

    def is_expired(self, now: datetime) -> bool:
        """A link is expired from the instant now reaches expires_at"""
        return self.expires_at is not None and now >= self.expires_at

    def remaining_seconds(self, now: datetime) -> Optional[float]:
        if self.expires_at is None:
            return None
        return (self.expires_at - now).total_seconds()


def to_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps are stored as naive UTC so every backend compares them alike"""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def from_utc_naive(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class LinkRow(Base):
    """
    SQLAlchemy mapping of LinkRecord.

    id and short_url are unique; original_url is only indexed, so two
    concurrent creations for the same URL can both succeed.
    """
    __tablename__ = "links"

    id = Column(String(32), primary_key=True)
    original_url = Column(String(MAX_URL_LENGTH), nullable=False, index=True)
    short_url = Column(String(MAX_URL_LENGTH), unique=True, nullable=False)
    clicks = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=True, index=True)

    @classmethod
    def from_record(cls, record: LinkRecord) -> "LinkRow":
        return cls(
            id=record.id,
            original_url=record.original_url,
            short_url=record.short_url,
            clicks=record.clicks,
            created_at=to_utc_naive(record.created_at),
            expires_at=to_utc_naive(record.expires_at),
        )

    def to_record(self) -> LinkRecord:
        return LinkRecord(
            id=self.id,
            original_url=self.original_url,
            short_url=self.short_url,
            clicks=self.clicks or 0,
            created_at=from_utc_naive(self.created_at),
            expires_at=from_utc_naive(self.expires_at),
        )
