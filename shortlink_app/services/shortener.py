import logging
from datetime import datetime, timedelta
from typing import Callable, Optional, Tuple

from pydantic import HttpUrl, TypeAdapter, ValidationError

from shortlink_app.clock import utc_now
from shortlink_app.exceptions import (
    DuplicateLinkError,
    InvalidInputError,
    StoreUnavailableError,
)
from shortlink_app.models.link import MAX_URL_LENGTH, LinkRecord
from shortlink_app.services.short_code_strategies import ShortCodeStrategy
from shortlink_app.storage.strategies import LinkStoreStrategy

logger = logging.getLogger(__name__)

_http_url = TypeAdapter(HttpUrl)

# A century; anything longer is treated as a client mistake
MAX_TTL_HOURS = 24 * 365 * 100


def validate_original_url(original_url: Optional[str]) -> str:
    """
    Check that the input is an absolute http(s) URL.

    Returns the caller's string, whitespace-stripped but otherwise untouched,
    because dedup compares exactly what the caller sent.

    Raises:
        InvalidInputError: missing, blank, malformed or over-long URL
    """
    if not isinstance(original_url, str) or not original_url.strip():
        raise InvalidInputError("Invalid URL provided.")
    candidate = original_url.strip()
    if len(candidate) > MAX_URL_LENGTH:
        raise InvalidInputError("Invalid URL provided.")
    try:
        _http_url.validate_python(candidate)
    except ValidationError as e:
        raise InvalidInputError("Invalid URL provided.") from e
    return candidate


class Shortener:
    """
    Creates short links, one per distinct original URL.

    Dependencies are injected (store, id strategy, clock) so tests can swap
    in in-memory fakes and a controllable clock.
    """

    def __init__(
        self,
        store: LinkStoreStrategy,
        code_strategy: ShortCodeStrategy,
        base_url: str,
        clock: Callable[[], datetime] = utc_now,
        max_insert_retries: int = 3,
    ):
        """
        Args:
            store: Durable link store
            code_strategy: Generates candidate identifiers
            base_url: Prefix joined with the identifier to form short_url
            clock: Returns the current time (timezone-aware)
            max_insert_retries: Extra attempts after an identifier collision
        """
        self.store = store
        self.code_strategy = code_strategy
        self.base_url = base_url.rstrip("/")
        self.clock = clock
        self.max_insert_retries = max_insert_retries

    def build_short_url(self, link_id: str) -> str:
        return f"{self.base_url}/{link_id}"

    async def shorten(
        self,
        original_url: Optional[str],
        ttl_hours: Optional[float] = None,
    ) -> Tuple[LinkRecord, bool]:
        """Create (or reuse) the short link for a URL

        Process:
        1. Validate the URL
        2. Return the existing live record for this URL if there is one.
           Its expiration is left as it was, whatever ttl_hours says now.
           An expired record is never handed out; a new one is minted.
        3. Otherwise mint an identifier and insert a new record,
           regenerating the identifier on a collision

        Two concurrent calls for the same URL can both miss step 2 and
        create two records; only id and short_url are unique in the store.

        Returns:
            (record, created) - created is False when an existing record is returned

        Raises:
            InvalidInputError: malformed URL, or ttl_hours above MAX_TTL_HOURS
            StoreUnavailableError: store failure, or collisions on every attempt
        """
        original_url = validate_original_url(original_url)
        if ttl_hours is not None and ttl_hours > MAX_TTL_HOURS:
            raise InvalidInputError(f"ttl must be at most {MAX_TTL_HOURS} hours.")

        now = self.clock()
        existing = await self.store.get_by_original_url(original_url, now=now)
        if existing is not None:
            logger.info("Reusing link %s for %s", existing.id, original_url)
            return existing, False

        expires_at = None
        if ttl_hours is not None and ttl_hours > 0:
            expires_at = now + timedelta(hours=ttl_hours)

        attempts = self.max_insert_retries + 1
        for attempt in range(1, attempts + 1):
            link_id = self.code_strategy.generate()
            record = LinkRecord(
                id=link_id,
                original_url=original_url,
                short_url=self.build_short_url(link_id),
                created_at=now,
                expires_at=expires_at,
                clicks=0,
            )
            try:
                await self.store.insert(record)
            except DuplicateLinkError:
                logger.warning(
                    "Identifier collision on %s (attempt %d/%d)", link_id, attempt, attempts
                )
                continue

            logger.info(
                "Created link %s -> %s (expires %s)",
                link_id, original_url, expires_at.isoformat() if expires_at else "never",
            )
            return record, True

        raise StoreUnavailableError(
            f"Could not store a unique identifier after {attempts} attempts"
        )
