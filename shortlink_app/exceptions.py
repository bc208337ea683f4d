"""
Error taxonomy for the short-link service.

Store and cache implementations translate their client errors into these
types at their boundary. The API layer maps each one to an HTTP status code,
so no driver exception ever reaches a response unchanged.
"""


class ShortlinkError(Exception):
    """Base class for all service errors"""


class InvalidInputError(ShortlinkError):
    """Malformed or missing original URL (400)"""


class LinkNotFoundError(ShortlinkError):
    """Identifier has no record and is not negatively cached (404)"""

    def __init__(self, link_id: str):
        super().__init__(f"No link found for '{link_id}'")
        self.link_id = link_id


class LinkExpiredError(ShortlinkError):
    """Identifier existed but its lifetime has elapsed (410)"""

    def __init__(self, link_id: str):
        super().__init__(f"Link '{link_id}' has expired")
        self.link_id = link_id


class StoreUnavailableError(ShortlinkError):
    """Durable store or cache failed or timed out (500)"""


class DuplicateLinkError(ShortlinkError):
    """
    Insert violated the uniqueness of id or short_url.

    Handled inside the Shortener by regenerating the identifier.
    """
