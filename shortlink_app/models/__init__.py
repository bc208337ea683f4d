"""
Data models for the short-link service.

LinkRecord is the domain object every service works with.
LinkRow is its SQLAlchemy mapping, used only inside the SQLAlchemy store.
"""

from .link import LinkRecord, LinkRow

__all__ = ["LinkRecord", "LinkRow"]
